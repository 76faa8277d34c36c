"""Record identifier validation."""
import uuid

from sitecms.exceptions import ValidationError


def parse_id(value: str, label: str) -> str:
    """
    Return the canonical form of a record id.

    Raises:
        ValidationError: If the value is not a UUID, e.g. "Invalid gallery ID format"
    """
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValidationError(f"Invalid {label} ID format")


def is_valid_id(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
