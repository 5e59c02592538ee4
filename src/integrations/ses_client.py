"""
Amazon SES email transport.

This module sends a single HTML email through the SES v2 API. It performs
no retries of its own: retrying and throttling are owned by the dispatch
queue (domain.email_queue), so a throttled request fails fast with a
RateLimitExceeded error the queue recognizes.

Usage:
    from integrations import ses_client

    message_id = ses_client.send_email(
        to="ana@example.com",
        subject="Payment Received",
        html_body="<p>Thanks!</p>"
    )
"""

import logging
import os
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

# Configure logging
logger = logging.getLogger(__name__)


# ============================================================================
# Custom Exception Classes
# ============================================================================

class ValidationException(Exception):
    """Raised when input validation fails."""
    pass


class RateLimitExceeded(Exception):
    """Raised when SES throttles the request (HTTP 429)."""
    pass


class EmailRejected(Exception):
    """Raised when SES rejects the message (unverified sender, bad content)."""
    pass


THROTTLING_ERROR_CODES = {
    'TooManyRequestsException',
    'LimitExceededException',
    'Throttling',
    'ThrottlingException',
}


# ============================================================================
# Module-Level Configuration and Initialization
# ============================================================================

FROM_EMAIL = os.environ.get('EMAIL_FROM_ADDRESS', 'PayUp <noreply@payup.app>')
CONFIGURATION_SET = os.environ.get('SES_CONFIGURATION_SET')


def _initialize_ses_client():
    """
    Initialize boto3 SES v2 client with timeout configuration.

    Returns:
        boto3.client: Configured SES v2 client
    """
    # One attempt per call: the dispatch queue retries with its own delays
    client_config = Config(
        retries={
            'max_attempts': 1,
            'mode': 'standard'
        },
        connect_timeout=5,
        read_timeout=15
    )

    region = os.environ.get('AWS_REGION', os.environ.get('AWS_DEFAULT_REGION', 'us-west-2'))

    client = boto3.client(
        'sesv2',
        region_name=region,
        config=client_config
    )

    logger.info(
        f"SES client initialized: region={region}, "
        f"connect_timeout=5s, read_timeout=15s, max_attempts=1 (no retries)"
    )
    return client


# Initialize at module import time (thread-safe, reused across invocations)
ses_client = _initialize_ses_client()


# ============================================================================
# Sending
# ============================================================================

def _build_content(subject: str, html_body: str, text_body: Optional[str]) -> Dict[str, Any]:
    body = {'Html': {'Data': html_body, 'Charset': 'UTF-8'}}
    if text_body:
        body['Text'] = {'Data': text_body, 'Charset': 'UTF-8'}

    return {
        'Simple': {
            'Subject': {'Data': subject, 'Charset': 'UTF-8'},
            'Body': body
        }
    }


def send_email(
    to: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None
) -> str:
    """
    Send one email through SES.

    Args:
        to: Recipient address
        subject: Subject line
        html_body: Rendered HTML body
        text_body: Optional plain text alternative

    Returns:
        str: SES message ID

    Raises:
        ValidationException: If to, subject or html_body is empty
        RateLimitExceeded: If SES throttled the request
        EmailRejected: If SES rejected the message
        ClientError: For other AWS service errors
    """
    if not to or not isinstance(to, str):
        raise ValidationException("Recipient address must be a non-empty string")
    if not subject:
        raise ValidationException("Subject cannot be empty")
    if not html_body:
        raise ValidationException("HTML body cannot be empty")

    request = {
        'FromEmailAddress': FROM_EMAIL,
        'Destination': {'ToAddresses': [to]},
        'Content': _build_content(subject, html_body, text_body),
    }
    if CONFIGURATION_SET:
        request['ConfigurationSetName'] = CONFIGURATION_SET

    try:
        response = ses_client.send_email(**request)
    except ClientError as e:
        error = e.response.get('Error', {})
        error_code = error.get('Code', 'Unknown')
        error_message = error.get('Message', str(e))
        status_code = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode')

        # Map AWS errors to domain-specific exceptions
        if error_code in THROTTLING_ERROR_CODES or status_code == 429:
            logger.warning(f"SES throttled request to {to}: {error_message}")
            raise RateLimitExceeded(f"SES rate limit exceeded (429): {error_message}")
        elif error_code == 'MessageRejected':
            logger.error(f"SES rejected message to {to}: {error_message}")
            raise EmailRejected(f"Message rejected by SES: {error_message}")
        else:
            logger.error(
                f"SES send failed: error_code={error_code}, "
                f"error_message={error_message}, to={to}"
            )
            raise

    message_id = response.get('MessageId', '')
    logger.info(f"SES accepted email to {to}: message_id={message_id}")
    return message_id
