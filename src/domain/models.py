"""
Data models for the notification dispatch domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field, fields
from typing import (
    Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union,
    get_args, get_origin, get_type_hints,
)


@dataclass
class SendResult:
    """
    Outcome of a single send operation.

    Attributes:
        success: Whether the email was accepted by the provider
        error: Provider error or raised exception (None on success)
        message_id: Provider message identifier (None on failure)
    """
    success: bool
    error: Any = None
    message_id: Optional[str] = None


SendFn = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class QueuedEmail:
    """
    One unit of work for the dispatch queue.

    Attributes:
        recipient_email: Recipient address, used for reporting and logs only
        send_fn: Zero-argument callable returning an awaitable SendResult
        data: Opaque payload carried for the caller, unused by the queue
    """
    recipient_email: str
    send_fn: SendFn
    data: Any = None


@dataclass(frozen=True)
class QueueError:
    """Failure detail for one exhausted email."""
    email: str
    error: str


@dataclass(frozen=True)
class QueueResult:
    """
    Terminal report for one dispatched batch.

    Invariants: successful + failed == total and len(errors) == failed.
    Errors are kept in processing order, as an immutable tuple.
    """
    total: int
    successful: int
    failed: int
    errors: Tuple[QueueError, ...] = ()

    @property
    def all_sent(self) -> bool:
        """True when every email in the batch was sent."""
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'errors': [{'email': e.email, 'error': e.error} for e in self.errors],
        }


# ============================================================================
# Notification payloads
# ============================================================================

@dataclass
class PaymentReceiptData:
    """Receipt sent to a creditor once a settlement is verified."""
    recipient_name: str
    payer_name: str
    amount: float
    currency: str
    payment_method: str
    expense_description: str
    team_name: str
    paid_at: str
    transaction_id: Optional[str] = None


@dataclass
class ExpenseNotificationData:
    """Notice sent to each member included in a new expense split."""
    recipient_name: str
    creator_name: str
    expense_description: str
    total_amount: float
    your_share: float
    currency: str
    category: str
    team_name: str
    member_count: int
    deadline: Optional[str] = None


@dataclass
class SettlementConfirmationData:
    """Request for a creditor to verify a payment the debtor marked as done."""
    creditor_name: str
    debtor_name: str
    amount: float
    currency: str
    payment_method: str
    expense_description: str
    team_name: str
    settlement_id: str
    proof_url: Optional[str] = None


@dataclass
class PaymentReminderData:
    """
    Reminder sent to a debtor with a pending settlement.

    Attributes:
        days_overdue: Days past the deadline (None or 0 when not overdue)
        pending_count: Number of pending payments owed by the recipient
    """
    recipient_name: str
    creditor_name: str
    amount: float
    currency: str
    expense_description: str
    team_name: str
    days_overdue: Optional[int] = None
    deadline: Optional[str] = None
    pending_count: Optional[int] = None

    @property
    def is_overdue(self) -> bool:
        return bool(self.days_overdue and self.days_overdue > 0)

    @property
    def is_urgent(self) -> bool:
        """Overdue by a week or more."""
        return bool(self.days_overdue and self.days_overdue >= 7)


@dataclass
class TeamInviteData:
    """Invitation to join a team with its join code."""
    inviter_name: str
    team_name: str
    team_code: str
    recipient_name: Optional[str] = None
    member_count: Optional[int] = None


@dataclass
class ExpenseRecipient:
    """One member receiving a bulk expense notification."""
    email: str
    name: str
    share: float


def validate_payload(payload: Any) -> None:
    """
    Check a notification payload's field values against its annotations.

    Payloads built from JSON are not type-checked by their constructors, so
    "amount": "100" would otherwise only fail when the email is formatted.
    Numbers accept int or float (never bool); Optional fields accept None.

    Raises:
        ValueError: Naming the first field with a missing or mistyped value
    """
    hints = get_type_hints(type(payload))
    for f in fields(payload):
        value = getattr(payload, f.name)
        expected = hints[f.name]

        optional = False
        if get_origin(expected) is Union:
            args = [a for a in get_args(expected) if a is not type(None)]
            optional = len(args) < len(get_args(expected))
            expected = args[0]

        if value is None:
            if optional:
                continue
            raise ValueError(f"'{f.name}' is required")

        allowed = (int, float) if expected is float else (expected,)
        if isinstance(value, bool) or not isinstance(value, allowed):
            raise ValueError(
                f"'{f.name}' must be {expected.__name__}, got {type(value).__name__}"
            )


# ============================================================================
# Notification jobs (SQS)
# ============================================================================

@dataclass
class NotificationRecipient:
    """Recipient address plus the typed payload for its email."""
    email: str
    data: Any


@dataclass
class NotificationJob:
    """
    A batch of notifications of a single kind, parsed from an SQS message.

    Attributes:
        notification_type: Key into the sender registry (e.g. "team_invite")
        recipients: Recipients in the order they must be sent
    """
    notification_type: str
    recipients: List[NotificationRecipient] = field(default_factory=list)


@dataclass
class ProcessingResult:
    """
    Result of processing one SQS notification job.

    This explicit result type makes success/failure handling clear
    and prevents exceptions from being used for control flow.

    Attributes:
        success: Whether every email in the job was sent
        message_id: SQS message identifier
        notification_type: Job type (if parsing succeeded)
        queue_result: Dispatch report (if the batch was dispatched)
        error_message: Error description (if processing failed)
    """
    success: bool
    message_id: str
    notification_type: Optional[str] = None
    queue_result: Optional[QueueResult] = None
    error_message: Optional[str] = None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"ProcessingResult(success=True, message_id={self.message_id})"
        else:
            return f"ProcessingResult(success=False, message_id={self.message_id}, error={self.error_message})"
