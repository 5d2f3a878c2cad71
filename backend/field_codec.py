# field_codec.py - Concatenated-string encoding for list-typed playbook columns
"""
List fields (invited users and groups, broadcast channels, webhook URLs,
signal keywords) travel as ordered lists of strings but are stored in a
single text column. Encoding joins the elements with a comma; an empty
list is stored as the empty string, never NULL.
"""
from typing import Iterable, List, Optional

from exceptions import FieldValidationError

DELIMITER = ","


def encode(values: Iterable[str], field: Optional[str] = None) -> str:
    """Join ``values`` into their stored form, preserving order.

    Elements that are empty or contain the delimiter would not survive a
    round trip, so they are rejected.
    """
    items = list(values)
    for value in items:
        if not isinstance(value, str):
            raise FieldValidationError(f"list entries must be strings, got {type(value).__name__}", field=field)
        if value == "":
            raise FieldValidationError("list entries must not be empty", field=field)
        if DELIMITER in value:
            raise FieldValidationError(f"list entry {value!r} must not contain {DELIMITER!r}", field=field)
    return DELIMITER.join(items)


def decode(stored: Optional[str]) -> List[str]:
    """Split a stored column back into its list of elements."""
    if not stored:
        return []
    return stored.split(DELIMITER)
