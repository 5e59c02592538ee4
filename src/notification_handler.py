"""
AWS Lambda handler for sending PayUp notification emails from SQS.

Thin orchestration layer that delegates to NotificationProcessor.
Policy: Always delete messages (no redelivery). Each email was already
retried by the dispatch queue; failures are logged to CloudWatch.
"""

import asyncio
import logging
from typing import Dict, Any

from domain.notification_processor import NotificationProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
notification_processor = NotificationProcessor()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Send notification batches described by SQS records.

    Args:
        event: Lambda event with SQS records
        context: Lambda context

    Returns:
        Dict with batchItemFailures (always empty - no redelivery)
    """
    logger.info("=" * 70)
    logger.info("PayUp Notification Sender - Started")
    logger.info("=" * 70)

    records = event.get('Records', [])
    logger.info(f"Processing batch of {len(records)} job(s)")

    results = asyncio.run(notification_processor.process_records(records))

    emails_sent = 0
    emails_failed = 0
    for result in results:
        if result.queue_result:
            emails_sent += result.queue_result.successful
            emails_failed += result.queue_result.failed

        # Log outcome
        if result.success:
            logger.info(f"✓ Successfully processed job {result.message_id}")
        else:
            logger.warning(
                f"⚠ Processed job {result.message_id} with ERRORS: "
                f"{result.error_message}"
            )

    # Log summary
    logger.info("=" * 70)
    logger.info(f"Batch processing complete: {len(results)} job(s)")
    success_count = sum(1 for r in results if r.success)
    logger.info(f"  Jobs succeeded: {success_count}")
    logger.info(f"  Jobs with errors: {len(results) - success_count}")
    logger.info(f"  Emails sent: {emails_sent}")
    logger.info(f"  Emails failed: {emails_failed}")
    logger.info("=" * 70)

    return {"batchItemFailures": []}
