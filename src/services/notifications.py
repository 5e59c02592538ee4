"""
Transactional notification emails.

Each sender renders its Jinja2 template, hands the message to SES and
reports the outcome as a SendResult. Senders never raise: failures
(including payloads that cannot be formatted) are logged and returned with
success=False so the dispatch queue can decide whether to retry.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Type

from domain.email_queue import RateLimitConfig, send_batched_emails
from domain.models import (
    ExpenseNotificationData,
    ExpenseRecipient,
    PaymentReceiptData,
    PaymentReminderData,
    QueueResult,
    SendResult,
    SettlementConfirmationData,
    TeamInviteData,
)
from integrations import ses_client
from services import templates
from services.templates import format_amount

logger = logging.getLogger(__name__)

PAYMENT_METHOD_LABELS = {
    'GCASH': '💳 GCash',
    'CASH': '💵 Cash',
}


def _payment_method_label(payment_method: str) -> str:
    return PAYMENT_METHOD_LABELS.get(payment_method.upper(), payment_method)


async def _send(to: str, subject: str, html_body: str, kind: str) -> SendResult:
    """
    Send a rendered email without blocking the event loop.

    Returns:
        SendResult with the SES message ID, or the error on failure
    """
    try:
        message_id = await asyncio.to_thread(
            ses_client.send_email,
            to=to,
            subject=subject,
            html_body=html_body
        )
        return SendResult(success=True, message_id=message_id)
    except Exception as e:
        logger.error(f"Error sending {kind} email to {to}: {e}")
        return SendResult(success=False, error=e)


async def send_payment_receipt(to: str, data: PaymentReceiptData) -> SendResult:
    """
    Send a payment receipt to the creditor when a settlement is verified.

    Args:
        to: Creditor email address
        data: Receipt details

    Returns:
        SendResult
    """
    try:
        amount = format_amount(data.amount, data.currency)
        subject = f"Payment Received: {amount} from {data.payer_name}"
        html_body = templates.render_template(
            'payment_receipt.html',
            preview=f"Payment of {amount} received from {data.payer_name}",
            data=data,
            payment_method=_payment_method_label(data.payment_method),
        )
    except Exception as e:
        logger.error(f"Failed to render payment receipt email: {e}")
        return SendResult(success=False, error=e)

    return await _send(to, subject, html_body, 'payment receipt')


async def send_expense_notification(to: str, data: ExpenseNotificationData) -> SendResult:
    """Notify a team member that they were included in a new expense."""
    try:
        share = format_amount(data.your_share, data.currency)
        subject = f"New Expense: {data.expense_description} - Your share: {share}"
        html_body = templates.render_template(
            'expense_notification.html',
            preview=f"New expense: {data.expense_description} - Your share: {share}",
            data=data,
        )
    except Exception as e:
        logger.error(f"Failed to render expense notification email: {e}")
        return SendResult(success=False, error=e)

    return await _send(to, subject, html_body, 'expense notification')


async def send_settlement_confirmation(to: str, data: SettlementConfirmationData) -> SendResult:
    """Ask the creditor to verify a payment the debtor marked as complete."""
    try:
        amount = format_amount(data.amount, data.currency)
        subject = f"Verify Payment: {amount} from {data.debtor_name}"
        html_body = templates.render_template(
            'settlement_confirmation.html',
            preview=f"{data.debtor_name} marked payment of {amount} - Verify now",
            data=data,
            payment_method=_payment_method_label(data.payment_method),
        )
    except Exception as e:
        logger.error(f"Failed to render settlement confirmation email: {e}")
        return SendResult(success=False, error=e)

    return await _send(to, subject, html_body, 'settlement confirmation')


async def send_payment_reminder(to: str, data: PaymentReminderData) -> SendResult:
    """
    Remind a debtor about a pending settlement.

    Overdue reminders get a warning subject and red styling; a week or more
    overdue also changes the heading.
    """
    try:
        amount = format_amount(data.amount, data.currency)
        if data.is_overdue:
            subject = f"⚠️ Overdue: {amount} payment to {data.creditor_name}"
        else:
            subject = f"Reminder: {amount} pending to {data.creditor_name}"

        html_body = templates.render_template(
            'payment_reminder.html',
            preview=f"Reminder: {amount} pending payment to {data.creditor_name}",
            data=data,
        )
    except Exception as e:
        logger.error(f"Failed to render payment reminder email: {e}")
        return SendResult(success=False, error=e)

    return await _send(to, subject, html_body, 'payment reminder')


async def send_team_invite(to: str, data: TeamInviteData) -> SendResult:
    """Invite a new member to a team."""
    try:
        subject = f"{data.inviter_name} invited you to join {data.team_name} on PayUp"
        html_body = templates.render_template(
            'team_invite.html',
            preview=subject,
            data=data,
        )
    except Exception as e:
        logger.error(f"Failed to render team invite email: {e}")
        return SendResult(success=False, error=e)

    return await _send(to, subject, html_body, 'team invite')


async def send_bulk_expense_notifications(
    recipients: Sequence[ExpenseRecipient],
    config: Optional[RateLimitConfig] = None,
    **base_fields: Any
) -> QueueResult:
    """
    Notify every member included in a new expense, respecting the rate limit.

    Args:
        recipients: Members with their email, display name and share
        config: Rate limit settings (defaults to environment configuration)
        **base_fields: ExpenseNotificationData fields shared by all members
            (everything except recipient_name and your_share)

    Returns:
        QueueResult for the batch

    Raises:
        TypeError: If base_fields do not match ExpenseNotificationData
    """
    queued = []
    for recipient in recipients:
        data = ExpenseNotificationData(
            recipient_name=recipient.name,
            your_share=recipient.share,
            **base_fields
        )
        queued.append({
            'email': recipient.email,
            'send_fn': functools.partial(send_expense_notification, recipient.email, data),
            'data': data,
        })

    logger.info(f"Queueing expense notifications for {len(queued)} member(s)")
    return await send_batched_emails(queued, config)


# Notification type -> (payload class, sender)
NOTIFICATION_SENDERS: Dict[str, Tuple[Type, Callable[..., Any]]] = {
    'payment_receipt': (PaymentReceiptData, send_payment_receipt),
    'expense_notification': (ExpenseNotificationData, send_expense_notification),
    'settlement_confirmation': (SettlementConfirmationData, send_settlement_confirmation),
    'payment_reminder': (PaymentReminderData, send_payment_reminder),
    'team_invite': (TeamInviteData, send_team_invite),
}
