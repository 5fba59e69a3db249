"""Formatting utilities for display and logging."""

import re
from typing import Optional


def format_currency(amount: Optional[float], currency: str = "USD") -> str:
    """
    Format amount as currency.

    Args:
        amount: Amount to format
        currency: Currency code

    Returns:
        Formatted currency string
    """
    if amount is None:
        return "To be discussed"

    symbols = {
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
        "INR": "₹",
    }
    symbol = symbols.get(currency.upper())
    if symbol:
        return f"{symbol}{amount:,.0f}"
    return f"{amount:,.0f} {currency.upper()}"


def mask_email(email: str) -> str:
    """
    Mask email address for privacy.

    Args:
        email: Email address to mask

    Returns:
        Masked email (e.g., "j***@example.com")
    """
    if '@' not in email:
        return email

    local, domain = email.split('@', 1)

    if len(local) <= 2:
        masked_local = local[0] + '*'
    else:
        masked_local = local[0] + '*' * (len(local) - 2) + local[-1]

    return f"{masked_local}@{domain}"


def mask_token(token: str) -> str:
    """Keep the prefix and last four characters of an access token."""
    if not token:
        return token
    prefix, sep, rest = token.partition('_')
    body = rest if sep else token
    tail = body[-4:] if len(body) > 8 else ''
    return f"{prefix}{sep}***{tail}" if sep else f"***{tail}"


def strip_html(html: str) -> str:
    """Reduce an HTML email body to readable plain text."""
    text = re.sub(r'(?is)<(script|style).*?</\1>', ' ', html)
    text = re.sub(r'(?i)<br\s*/?>|</p>|</div>|</li>', '\n', text)
    text = re.sub(r'<[^>]+>', ' ', text)
    text = text.replace('&nbsp;', ' ').replace('&amp;', '&')
    text = text.replace('&lt;', '<').replace('&gt;', '>')
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'\n\s*\n+', '\n', text)
    return text.strip()
