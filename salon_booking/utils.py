"""Shared utilities used across the salon booking core."""

import re


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone("+61 (412) 345-678")
        '+61412345678'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def normalize_email(value: str) -> str:
    """Lower-case and trim an e-mail address for matching."""
    return value.strip().lower()


def derive_thread_id(first_id: str, second_id: str) -> str:
    """Thread id for a pair of participants, independent of who wrote first.

    Examples:
        >>> derive_thread_id("owner-1", "client-9")
        'client-9_owner-1'
    """
    return "_".join(sorted([first_id, second_id]))
