"""
Rate-limited email dispatch queue.

Sends a batch of emails one at a time so outbound calls stay under the
provider's requests-per-second ceiling (SES sandbox and Resend free tier
both allow 2 req/s). Each email is retried with a fixed delay, and the
batch always produces a QueueResult: failures are reported, never raised.

Usage:
    from domain.email_queue import send_batched_emails

    result = await send_batched_emails([
        {'email': 'ana@example.com', 'send_fn': send_fn, 'data': payload},
    ])
    print(result.successful, result.failed)
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import QueuedEmail, QueueError, QueueResult, SendResult

logger = logging.getLogger(__name__)

# Default rate limit settings
# 600ms between emails = ~1.6 emails/sec (safe margin under 2/sec)
DEFAULT_DELAY_BETWEEN_EMAILS_MS = 600
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 2000

RATE_LIMIT_MARKERS = ('429', 'rate')


class ConfigurationError(Exception):
    """Raised when rate limit configuration is invalid."""
    pass


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got: '{raw}'")


@dataclass(frozen=True)
class RateLimitConfig:
    """
    Throttling and retry settings for the dispatch queue.

    Attributes:
        delay_between_emails_ms: Idle time after each email before the next one
        max_retries: Attempts per email before it is marked failed
        retry_delay_ms: Fixed wait before each retry attempt
    """
    delay_between_emails_ms: int = DEFAULT_DELAY_BETWEEN_EMAILS_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    def __post_init__(self):
        if self.delay_between_emails_ms < 0:
            raise ConfigurationError(
                f"delay_between_emails_ms cannot be negative, got: {self.delay_between_emails_ms}"
            )
        if self.retry_delay_ms < 0:
            raise ConfigurationError(
                f"retry_delay_ms cannot be negative, got: {self.retry_delay_ms}"
            )
        if self.max_retries < 1:
            raise ConfigurationError(
                f"max_retries must be at least 1, got: {self.max_retries}"
            )

    @classmethod
    def from_env(cls) -> 'RateLimitConfig':
        """
        Build configuration from environment variables.

        Reads EMAIL_QUEUE_DELAY_BETWEEN_EMAILS_MS, EMAIL_QUEUE_MAX_RETRIES and
        EMAIL_QUEUE_RETRY_DELAY_MS, falling back to the defaults.

        Raises:
            ConfigurationError: If a value is not an integer or out of range
        """
        return cls(
            delay_between_emails_ms=_read_int(
                'EMAIL_QUEUE_DELAY_BETWEEN_EMAILS_MS', DEFAULT_DELAY_BETWEEN_EMAILS_MS
            ),
            max_retries=_read_int('EMAIL_QUEUE_MAX_RETRIES', DEFAULT_MAX_RETRIES),
            retry_delay_ms=_read_int('EMAIL_QUEUE_RETRY_DELAY_MS', DEFAULT_RETRY_DELAY_MS),
        )


async def delay(ms: int) -> None:
    """Suspend for the given number of milliseconds."""
    await asyncio.sleep(ms / 1000)


def _safe_str(error: Any) -> str:
    # str() runs caller code (__str__) and must not abort the batch
    try:
        return str(error)
    except Exception:
        try:
            return repr(error)
        except Exception:
            return f"<unprintable {error.__class__.__name__}>"


def is_rate_limit_error(error: Any) -> bool:
    """
    Check whether an error looks like provider throttling.

    Detection is textual: the stringified error contains "429" or "rate".
    """
    text = _safe_str(error)
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


def describe_error(error: Any) -> str:
    """
    Render an error for the QueueResult error list.

    Exceptions use their message (class name if the message is empty);
    anything else is stringified. Objects that fail to stringify fall back
    to repr(), then to their class name.
    """
    if isinstance(error, BaseException):
        return _safe_str(error) or error.__class__.__name__
    return _safe_str(error)


def _coerce_result(response: Any) -> SendResult:
    # Send functions may return a plain {"success": ..., "error": ...} mapping
    if isinstance(response, dict):
        return SendResult(
            success=bool(response.get('success')),
            error=response.get('error'),
            message_id=response.get('message_id'),
        )
    if isinstance(response, SendResult):
        return response
    return SendResult(success=False, error=f"Invalid send result: {response!r}")


class EmailQueue:
    """
    Sequential, rate-limited dispatcher for a batch of emails.

    Emails are sent strictly one at a time in the order given. The queue
    holds no state between batches; concurrent dispatch() calls are not
    coordinated with each other, so callers needing a global ceiling must
    serialize them.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None):
        self.config = config or RateLimitConfig()

    async def dispatch(self, emails: Sequence[QueuedEmail]) -> QueueResult:
        """
        Send every email in the batch, respecting the rate limit.

        Args:
            emails: Emails to send, oldest first

        Returns:
            QueueResult with counts and per-failure error details.
            Never raises for send failures, even when every email fails.
        """
        total = len(emails)
        successful = 0
        errors: List[QueueError] = []

        for index, email in enumerate(emails):
            sent, last_error = await self._send_with_retry(email)

            if sent:
                successful += 1
                logger.info(f"Sent to {email.recipient_email} ({index + 1}/{total})")
            else:
                message = describe_error(last_error)
                errors.append(QueueError(email=email.recipient_email, error=message))
                logger.error(f"Failed to send to {email.recipient_email}: {message}")

            # No trailing wait after the last email
            if index < total - 1:
                await delay(self.config.delay_between_emails_ms)

        result = QueueResult(
            total=total,
            successful=successful,
            failed=len(errors),
            errors=tuple(errors),
        )
        logger.info(f"Complete: {result.successful}/{result.total} sent, {result.failed} failed")
        return result

    async def _send_with_retry(self, email: QueuedEmail) -> Tuple[bool, Any]:
        """
        Attempt one email up to max_retries times.

        Returns:
            (True, None) on success, (False, last_error) when exhausted
        """
        max_retries = self.config.max_retries
        retry_delay_ms = self.config.retry_delay_ms
        last_error: Any = None

        for attempt in range(1, max_retries + 1):
            try:
                response = _coerce_result(await email.send_fn())
            except Exception as e:
                logger.warning(
                    f"Send to {email.recipient_email} raised on attempt "
                    f"{attempt}/{max_retries}: {describe_error(e)}"
                )
                response = SendResult(success=False, error=e)

            if response.success:
                return True, None

            last_error = response.error

            if is_rate_limit_error(last_error):
                # Waits even after the final attempt
                logger.info(f"Rate limited, waiting {retry_delay_ms}ms before retry...")
                await delay(retry_delay_ms)
            elif attempt < max_retries:
                await delay(retry_delay_ms)

        return False, last_error


async def send_emails_with_rate_limit(
    emails: Sequence[QueuedEmail],
    config: Optional[RateLimitConfig] = None
) -> QueueResult:
    """
    Send emails sequentially with delays to stay under the provider rate limit.

    Args:
        emails: Emails to send, in order
        config: Rate limit settings (defaults to RateLimitConfig.from_env())

    Returns:
        QueueResult for the batch
    """
    queue = EmailQueue(config or RateLimitConfig.from_env())
    return await queue.dispatch(emails)


async def send_batched_emails(
    recipients: Iterable[Dict[str, Any]],
    config: Optional[RateLimitConfig] = None
) -> QueueResult:
    """
    Queue recipients for rate-limited sending.

    Use this instead of asyncio.gather() when sending emails, which would
    fire every request at once.

    Args:
        recipients: Mappings with 'email', 'send_fn' and optional 'data'
        config: Rate limit settings (defaults to RateLimitConfig.from_env())

    Returns:
        QueueResult for the batch

    Example:
        >>> result = await send_batched_emails([
        ...     {'email': 'ana@example.com', 'send_fn': send_fn, 'data': None},
        ... ])
        >>> result.total
        1
    """
    queued_emails = [
        QueuedEmail(
            recipient_email=r['email'],
            send_fn=r['send_fn'],
            data=r.get('data'),
        )
        for r in recipients
    ]

    return await send_emails_with_rate_limit(queued_emails, config)
