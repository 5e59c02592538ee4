"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('EMAIL_FROM_ADDRESS', 'PayUp <noreply@payup.test>')
os.environ.setdefault('APP_BASE_URL', 'https://payup.test')
os.environ.setdefault('EMAIL_QUEUE_DELAY_BETWEEN_EMAILS_MS', '0')
os.environ.setdefault('EMAIL_QUEUE_RETRY_DELAY_MS', '0')
os.environ.setdefault('ENVIRONMENT', 'test')


@pytest.fixture(autouse=True)
def reset_template_environment():
    """Start every test with a freshly loaded template environment."""
    from services import templates
    templates.reset_environment()
    yield
