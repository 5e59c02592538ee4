"""
Tests for domain models (data structures).
"""

import dataclasses

import pytest

from domain.models import (
    ExpenseNotificationData,
    PaymentReceiptData,
    PaymentReminderData,
    ProcessingResult,
    QueuedEmail,
    QueueError,
    QueueResult,
    SendResult,
    TeamInviteData,
    validate_payload,
)


class TestSendResult:
    """Test SendResult dataclass."""

    def test_defaults(self):
        result = SendResult(success=True)

        assert result.error is None
        assert result.message_id is None


class TestQueuedEmail:
    """Test QueuedEmail dataclass."""

    def test_queued_email_is_immutable(self):
        """Test that a queued email cannot be modified once created."""
        email = QueuedEmail(recipient_email="ana@example.com", send_fn=lambda: None)

        with pytest.raises(dataclasses.FrozenInstanceError):
            email.recipient_email = "other@example.com"

    def test_data_defaults_to_none(self):
        email = QueuedEmail(recipient_email="ana@example.com", send_fn=lambda: None)

        assert email.data is None


class TestQueueResult:
    """Test QueueResult dataclass."""

    def test_to_dict(self):
        """Test conversion to a JSON-friendly dict."""
        result = QueueResult(
            total=2,
            successful=1,
            failed=1,
            errors=(QueueError(email="ben@example.com", error="Mailbox unavailable"),)
        )

        assert result.to_dict() == {
            'total': 2,
            'successful': 1,
            'failed': 1,
            'errors': [{'email': 'ben@example.com', 'error': 'Mailbox unavailable'}],
        }

    def test_all_sent(self):
        assert QueueResult(total=3, successful=3, failed=0).all_sent is True
        assert QueueResult(
            total=1, successful=0, failed=1,
            errors=(QueueError(email="a@example.com", error="x"),)
        ).all_sent is False

    def test_empty_batch_counts_as_all_sent(self):
        assert QueueResult(total=0, successful=0, failed=0).all_sent is True

    def test_errors_are_an_immutable_tuple(self):
        result = QueueResult(total=0, successful=0, failed=0)

        assert result.errors == ()
        assert isinstance(result.errors, tuple)
        with pytest.raises(AttributeError):
            result.errors.append(QueueError(email="a@example.com", error="x"))


class TestPaymentReminderData:
    """Test overdue flags on PaymentReminderData."""

    def _reminder(self, days_overdue):
        return PaymentReminderData(
            recipient_name="Ben",
            creditor_name="Ana",
            amount=500,
            currency="PHP",
            expense_description="Team Lunch",
            team_name="Thesis Group",
            days_overdue=days_overdue
        )

    def test_not_overdue(self):
        reminder = self._reminder(None)

        assert reminder.is_overdue is False
        assert reminder.is_urgent is False

    def test_zero_days_is_not_overdue(self):
        assert self._reminder(0).is_overdue is False

    def test_overdue_but_not_urgent(self):
        reminder = self._reminder(3)

        assert reminder.is_overdue is True
        assert reminder.is_urgent is False

    def test_urgent_after_a_week(self):
        reminder = self._reminder(7)

        assert reminder.is_overdue is True
        assert reminder.is_urgent is True


class TestProcessingResult:
    """Test ProcessingResult dataclass."""

    def test_processing_result_success_repr(self):
        result = ProcessingResult(success=True, message_id="msg-123")

        assert repr(result) == "ProcessingResult(success=True, message_id=msg-123)"

    def test_processing_result_failure_repr(self):
        result = ProcessingResult(
            success=False,
            message_id="msg-456",
            error_message="Unknown notification type: foo"
        )

        assert "success=False" in repr(result)
        assert "Unknown notification type: foo" in repr(result)


class TestValidatePayload:
    """Test field type validation for notification payloads."""

    def _receipt(self, **overrides):
        fields = dict(
            recipient_name="Ana",
            payer_name="Ben",
            amount=1500,
            currency="PHP",
            payment_method="GCASH",
            expense_description="Team Lunch",
            team_name="Thesis Group",
            paid_at="March 3, 2025",
        )
        fields.update(overrides)
        return PaymentReceiptData(**fields)

    def test_valid_payload(self):
        validate_payload(self._receipt())
        validate_payload(self._receipt(amount=1500.5, transaction_id="TX-1"))

    def test_string_amount_is_rejected(self):
        with pytest.raises(ValueError, match="'amount' must be float, got str"):
            validate_payload(self._receipt(amount="100"))

    def test_bool_amount_is_rejected(self):
        with pytest.raises(ValueError, match="'amount' must be float, got bool"):
            validate_payload(self._receipt(amount=True))

    def test_required_field_cannot_be_none(self):
        with pytest.raises(ValueError, match="'payment_method' is required"):
            validate_payload(self._receipt(payment_method=None))

    def test_optional_field_type_is_checked(self):
        with pytest.raises(ValueError, match="'transaction_id' must be str, got int"):
            validate_payload(self._receipt(transaction_id=991))

    def test_int_field_rejects_float(self):
        data = ExpenseNotificationData(
            recipient_name="Ben",
            creator_name="Ana",
            expense_description="Team Lunch",
            total_amount=1200,
            your_share=300,
            currency="PHP",
            category="Food",
            team_name="Thesis Group",
            member_count=4.5
        )

        with pytest.raises(ValueError, match="'member_count' must be int, got float"):
            validate_payload(data)

    def test_optional_int_rejects_string(self):
        reminder = PaymentReminderData(
            recipient_name="Ben",
            creditor_name="Ana",
            amount=500,
            currency="PHP",
            expense_description="Team Lunch",
            team_name="Thesis Group",
            days_overdue="3"
        )

        with pytest.raises(ValueError, match="'days_overdue' must be int, got str"):
            validate_payload(reminder)

    def test_optional_fields_may_be_omitted(self):
        validate_payload(TeamInviteData(inviter_name="Ana", team_name="Thesis Group", team_code="ABC123"))
