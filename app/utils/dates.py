"""
Helpers for the free-form due date strings stored on orders
"""

from datetime import date, datetime

def parse_due_date(value: str) -> date:
    """Calendar date of an ISO 8601 date or datetime string.

    Accepts plain dates ("2024-05-01") as well as the timestamps browsers
    send ("2024-05-01T00:00:00.000Z"). Raises ValueError otherwise.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("due date must be a non-empty string")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).date()

def is_valid_due_date(value: str) -> bool:
    try:
        parse_due_date(value)
    except ValueError:
        return False
    return True
