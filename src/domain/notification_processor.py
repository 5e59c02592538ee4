"""
Notification job pipeline - core business logic.

This module handles one SQS message describing a batch of notifications:
1. Parse the job (optionally SNS-wrapped) into a NotificationJob
2. Validate every recipient payload (fields and value types) before anything is sent
3. Build one QueuedEmail per recipient
4. Dispatch the batch through the rate-limited queue
5. Return result (success or failure)

All errors are caught and returned as ProcessingResult with success=False.
No exceptions propagate out of the public methods.
"""

import functools
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from .email_queue import EmailQueue, RateLimitConfig, delay
from .models import (
    NotificationJob,
    NotificationRecipient,
    ProcessingResult,
    QueuedEmail,
    validate_payload,
)
from services.notifications import NOTIFICATION_SENDERS

logger = logging.getLogger(__name__)


class NotificationProcessor:
    """
    Handles end-to-end processing of notification jobs.

    Jobs are dispatched one after another through a single EmailQueue, so
    every email sent by one processor respects the same rate limit.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None):
        """Initialize processor with rate limit settings (environment by default)."""
        self.config = config or RateLimitConfig.from_env()
        self.queue = EmailQueue(self.config)

    async def process_records(self, records: Sequence[Dict[str, Any]]) -> List[ProcessingResult]:
        """
        Process SQS records sequentially.

        Waits the inter-email delay between jobs so consecutive batches do not
        exceed the provider rate limit.
        """
        results = []
        for index, record in enumerate(records):
            results.append(await self.process_record(record))
            if index < len(records) - 1:
                await delay(self.config.delay_between_emails_ms)
        return results

    async def process_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single SQS record containing a notification job.

        Args:
            record: SQS record dict

        Returns:
            ProcessingResult with success=True only if every email was sent
        """
        message_id = record.get('messageId', 'UNKNOWN')
        logger.info(f"Processing SQS message: {message_id}")

        try:
            job = self._parse_job(record)
            logger.info(
                f"Parsed: type={job.notification_type}, "
                f"recipients={len(job.recipients)}"
            )
        except Exception as e:
            logger.error(f"Failed to parse {message_id}: {e}", exc_info=True)
            return ProcessingResult(
                success=False,
                message_id=message_id,
                error_message=str(e)
            )

        queue_result = await self.queue.dispatch(self._build_batch(job))

        error_message = None
        if not queue_result.all_sent:
            error_message = f"{queue_result.failed}/{queue_result.total} email(s) failed"

        return ProcessingResult(
            success=queue_result.all_sent,
            message_id=message_id,
            notification_type=job.notification_type,
            queue_result=queue_result,
            error_message=error_message
        )

    def _parse_job(self, record: Dict[str, Any]) -> NotificationJob:
        """
        Parse SQS record body into a NotificationJob.

        Expected body:
            {"type": "team_invite", "recipients": [{"email": "...", "data": {...}}]}

        Raises:
            ValueError: If the job structure or any recipient payload is invalid
            json.JSONDecodeError: If JSON parsing fails
        """
        body = json.loads(record['body'])

        # Check if wrapped in SNS (optional setup: SNS -> SQS)
        if body.get('Type') == 'Notification' and 'Message' in body:
            logger.info("Unwrapping SNS message (SNS -> SQS)")
            body = json.loads(body['Message'])

        notification_type = body.get('type')
        if notification_type not in NOTIFICATION_SENDERS:
            raise ValueError(f"Unknown notification type: {notification_type}")

        raw_recipients = body.get('recipients')
        if not isinstance(raw_recipients, list) or not raw_recipients:
            raise ValueError("Notification job must contain a non-empty 'recipients' list")

        data_class, _ = NOTIFICATION_SENDERS[notification_type]
        recipients = []
        for position, raw in enumerate(raw_recipients, start=1):
            email = raw.get('email') if isinstance(raw, dict) else None
            if not email or not isinstance(email, str):
                raise ValueError(f"Recipient {position} is missing an email address")

            try:
                data = data_class(**(raw.get('data') or {}))
                validate_payload(data)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid {notification_type} data for {email}: {e}")

            recipients.append(NotificationRecipient(email=email, data=data))

        return NotificationJob(notification_type=notification_type, recipients=recipients)

    def _build_batch(self, job: NotificationJob) -> List[QueuedEmail]:
        _, sender = NOTIFICATION_SENDERS[job.notification_type]
        return [
            QueuedEmail(
                recipient_email=recipient.email,
                send_fn=functools.partial(sender, recipient.email, recipient.data),
                data=recipient.data
            )
            for recipient in job.recipients
        ]
