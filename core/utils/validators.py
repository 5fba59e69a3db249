"""Validation utilities for common data types."""

import re
from typing import Optional
from email_validator import validate_email as _validate_email, EmailNotValidError

_ANGLE_ADDRESS = re.compile(r"<([^<>]+)>")


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


def extract_email_address(value: Optional[str]) -> Optional[str]:
    """
    Pull the bare address out of a header value such as ``Jane <jane@x.io>``.

    Returns the lower-cased address, or None when nothing address-like is present.
    """
    if not value:
        return None

    match = _ANGLE_ADDRESS.search(value)
    candidate = (match.group(1) if match else value).strip().strip('"').lower()
    if "@" not in candidate:
        return None
    return candidate


def validate_phone(phone: str) -> tuple[bool, Optional[str]]:
    """
    Validate phone number format (basic validation).

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone:
        return False, "Phone number is required"

    digits = re.findall(r'\d', phone)
    if len(digits) < 7 or len(digits) > 15:
        return False, "Phone number must be between 7 and 15 digits"

    return True, None


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename by removing dangerous characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Remove path separators and other dangerous chars
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', filename)
    sanitized = sanitized.replace(' ', '_').lstrip('.')

    if len(sanitized) > 255:
        name, ext = sanitized.rsplit('.', 1) if '.' in sanitized else (sanitized, '')
        sanitized = name[:250] + ('.' + ext if ext else '')

    return sanitized or "upload"
