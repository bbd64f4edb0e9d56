"""Field validators shared by the step predicates.

All functions here are pure and synchronous.
"""
import re
from enum import Enum
from typing import Optional, Sized

NIP_PATTERN = re.compile(r"[0-9]{10}")
NIP_ERROR_MESSAGE = "NIP must have exactly 10 digits."


class NipStatus(str, Enum):
    valid = "valid"
    empty = "empty"
    invalid_format = "invalid_format"


def check_nip(value: Optional[str]) -> NipStatus:
    """Classify a tax id.

    Empty input fails validation like a malformed one but is reported
    separately so the UI does not flag a field the user has not touched yet.
    """
    if not value:
        return NipStatus.empty
    if NIP_PATTERN.fullmatch(value):
        return NipStatus.valid
    return NipStatus.invalid_format


def is_valid_nip(value: Optional[str]) -> bool:
    return check_nip(value) is NipStatus.valid


def nip_error_message(value: Optional[str]) -> Optional[str]:
    if check_nip(value) is NipStatus.invalid_format:
        return NIP_ERROR_MESSAGE
    return None


def is_filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def has_min_items(collection: Optional[Sized], minimum: int) -> bool:
    return collection is not None and len(collection) >= minimum
