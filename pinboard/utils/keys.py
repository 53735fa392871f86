# pinboard/utils/keys.py

from typing import Optional


def normalize_key(value: Optional[str]) -> str:
    """Canonical form used on both sides of every occupancy lookup: trimmed, lower-case."""
    return (value or "").strip().lower()
