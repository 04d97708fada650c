"""Shared validation utilities"""

import re
from datetime import datetime, time
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number loosely (Spanish and international formats).

    Keeps a leading "+" and the digits, drops spaces, dots, dashes and brackets.

    Raises:
        ValueError: If the number has too few or too many digits
    """
    if not phone:
        return phone

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if not 6 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 6 and 15 digits")

    return f"{prefix}{digits}"


def validate_instagram_handle(handle: Optional[str]) -> Optional[str]:
    """Normalize an Instagram handle, accepting it with or without the leading @"""
    if not handle:
        return handle

    handle = handle.strip()
    if len(handle) > 100:
        raise ValueError("Instagram handle must be at most 100 characters")
    return handle if handle.startswith("@") else f"@{handle}"


def parse_time_hhmm(value: Optional[str]) -> Optional[time]:
    """Parse a 24h "HH:MM" string"""
    if not value:
        return None
    if not re.match(r"^([01]\d|2[0-3]):[0-5]\d$", value.strip()):
        raise ValueError("Time must use the HH:MM format")
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


def parse_month(value: str) -> datetime:
    """Parse a "YYYY-MM" month into the datetime of its first day"""
    if not value or not re.match(r"^\d{4}-(0[1-9]|1[0-2])$", value):
        raise ValueError("Month must use the YYYY-MM format")
    year, month = value.split("-")
    return datetime(int(year), int(month), 1)
