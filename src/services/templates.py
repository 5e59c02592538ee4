"""
Email template rendering using Jinja2.

Templates are stored in services/email_templates/. Each notification
template extends base_layout.html; detail rows come from _macros.html.
HTML autoescaping is on, so payload values never need manual escaping.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

logger = logging.getLogger(__name__)

# src/services/templates.py -> src/services/email_templates/
TEMPLATES_DIR = Path(__file__).parent / 'email_templates'

APP_BASE_URL = os.environ.get('APP_BASE_URL', 'https://payup.vercel.app').rstrip('/')

CURRENCY_SYMBOLS = {
    'PHP': '₱',
    'USD': '$',
}

_env: Optional[Environment] = None


def format_amount(amount: float, currency: str = 'PHP') -> str:
    """
    Format a money amount for display.

    Example:
        >>> format_amount(1500, 'PHP')
        '₱1,500.00'
    """
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    return f"{symbol}{amount:,.2f}"


def _get_env() -> Environment:
    """Get or create the Jinja2 environment (lazy initialization)."""
    global _env
    if _env is None:
        if not TEMPLATES_DIR.exists():
            raise FileNotFoundError(f"Email templates directory not found: {TEMPLATES_DIR}")

        _env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(['html', 'xml']),
            undefined=StrictUndefined,
        )
        _env.globals['app_url'] = APP_BASE_URL
        _env.filters['money'] = format_amount
        logger.info(f"Email template environment initialized: {TEMPLATES_DIR}")
    return _env


def render_template(name: str, **variables: object) -> str:
    """
    Render an email template file.

    Args:
        name: Template file name (e.g. "team_invite.html")
        **variables: Template variables

    Returns:
        Rendered HTML document

    Raises:
        jinja2.TemplateNotFound: If template file not found
        jinja2.TemplateError: If rendering fails (including undefined variables)
    """
    template = _get_env().get_template(name)
    return template.render(**variables)


def reset_environment() -> None:
    """Drop the cached environment so templates and globals are reloaded."""
    global _env
    _env = None
