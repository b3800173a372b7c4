"""Field-level rules checked before any write reaches the store. No I/O."""
from __future__ import annotations

import re

from ..errors import ValidationError

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

_BLANK = " \t\r\n"


def validate_names(first: str, last: str) -> bool:
    """At least one of the names must be non-empty once trimmed."""
    return bool((first or "").strip(_BLANK) or (last or "").strip(_BLANK))


def validate_email(email: str) -> bool:
    """Empty is allowed (optional field); anything else must be a full match."""
    if not email:
        return True
    return EMAIL_PATTERN.fullmatch(email) is not None


def check_contact_fields(first: str, last: str, email: str) -> None:
    if not validate_names(first, last):
        raise ValidationError("At least first name or last name must be provided")
    if not validate_email(email):
        raise ValidationError(f"Invalid email format: {email!r}")
