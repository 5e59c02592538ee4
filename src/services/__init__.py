"""
Notification email services.

This package renders email templates and sends transactional PayUp
notifications through the SES integration.
"""

__all__ = ['notifications', 'templates']
