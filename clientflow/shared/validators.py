"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Callable, Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_clock() -> Callable[[], datetime]:
    """Dependency injection for the time source services stamp records with"""
    return utcnow


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an international phone number.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number (+ followed by digits)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # E.164 allows up to 15 digits; shorter than 7 is never dialable
    if len(digits) < 7 or len(digits) > 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return f"+{digits}"


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


def validate_slot(date_str: str, time_str: str) -> datetime:
    """
    Parse a proposed consultation slot.

    Args:
        date_str: Date in YYYY-MM-DD format
        time_str: Time in HH:MM (24h) format

    Returns:
        Naive datetime for the slot

    Raises:
        ValueError: If date or time is malformed
    """
    try:
        return datetime.strptime(f"{date_str.strip()} {time_str.strip()}", "%Y-%m-%d %H:%M")
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid slot: {date_str} {time_str} (expected YYYY-MM-DD and HH:MM)") from e


def validate_meeting_link(link: Optional[str]) -> Optional[str]:
    """Meeting links must be absolute http(s) URLs"""
    if not link:
        return link

    link = link.strip()
    if not re.match(r"^https?://[^\s/$.?#].[^\s]*$", link):
        raise ValueError("Meeting link must be a valid http(s) URL")
    return link
