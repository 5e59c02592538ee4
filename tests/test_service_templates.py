"""
Tests for email template rendering.
"""

import pytest
from jinja2 import TemplateNotFound, UndefinedError

from domain.models import PaymentReceiptData, TeamInviteData
from services import templates


@pytest.fixture
def invite_data():
    return TeamInviteData(inviter_name="Ana", team_name="Thesis Group", team_code="ABC123")


class TestTemplateEnvironment:
    """Test the lazily built Jinja2 environment."""

    def test_environment_is_reused(self):
        env = templates._get_env()

        assert templates._get_env() is env

    def test_reset_environment(self):
        env = templates._get_env()
        templates.reset_environment()

        assert templates._get_env() is not env

    def test_html_autoescape_enabled(self):
        env = templates._get_env()

        assert env.autoescape('payment_receipt.html') is True

    def test_missing_templates_directory(self, tmp_path, monkeypatch):
        monkeypatch.setattr(templates, 'TEMPLATES_DIR', tmp_path / 'missing')

        with pytest.raises(FileNotFoundError, match="Email templates directory not found"):
            templates._get_env()


class TestRenderTemplate:
    """Test rendering notification templates inside the base layout."""

    def test_render_wraps_content_in_layout(self, invite_data):
        html = templates.render_template(
            'team_invite.html',
            preview="Ana invited you to join Thesis Group on PayUp",
            data=invite_data
        )

        assert html.startswith('<!DOCTYPE html>')
        assert 'Ana invited you to join Thesis Group on PayUp' in html
        assert 'ABC123' in html
        assert 'Join Thesis Group' in html
        assert f"{templates.APP_BASE_URL}/team/join" in html
        assert f"{templates.APP_BASE_URL}/dashboard" in html

    def test_values_are_escaped(self):
        data = TeamInviteData(
            inviter_name="<script>alert('x')</script>",
            team_name="A & B",
            team_code="ABC123"
        )

        html = templates.render_template('team_invite.html', preview="x", data=data)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "A &amp; B" in html

    def test_missing_variable(self):
        with pytest.raises(UndefinedError):
            templates.render_template('team_invite.html', preview="x")

    def test_missing_template(self):
        with pytest.raises(TemplateNotFound):
            templates.render_template('does_not_exist.html')

    def test_detail_rows_skip_empty_values(self):
        data = PaymentReceiptData(
            recipient_name="Ana",
            payer_name="Ben",
            amount=1500,
            currency="PHP",
            payment_method="GCASH",
            expense_description="Pizza & Drinks",
            team_name="Thesis Group",
            paid_at="",
            transaction_id=None
        )

        html = templates.render_template(
            'payment_receipt.html',
            preview="x",
            data=data,
            payment_method="💳 GCash"
        )

        assert "Pizza &amp; Drinks" in html
        assert ">Team<" in html
        assert "Reference" not in html
        assert "Paid On" not in html
        assert "₱1,500.00" in html


class TestFormatAmount:
    """Test money formatting."""

    @pytest.mark.parametrize("amount,currency,expected", [
        (1500, 'PHP', '₱1,500.00'),
        (250.5, 'php', '₱250.50'),
        (1234567.891, 'USD', '$1,234,567.89'),
        (99, 'EUR', 'EUR 99.00'),
    ])
    def test_format_amount(self, amount, currency, expected):
        assert templates.format_amount(amount, currency) == expected

    def test_default_currency_is_php(self):
        assert templates.format_amount(10) == '₱10.00'

    def test_non_numeric_amount(self):
        with pytest.raises(ValueError):
            templates.format_amount('100', 'PHP')

    def test_money_filter(self):
        env = templates._get_env()

        assert env.from_string("{{ 42 | money('USD') }}").render() == '$42.00'
