# backend/utils/validation.py
from typing import Optional

# Markup characters only; "&" is stored as typed
_MARKUP = str.maketrans({"<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#039;"})


# Escape markup in free-text fields before they are stored
def sanitize_input(value) -> str:
    if not isinstance(value, str):
        return ""
    return value.translate(_MARKUP).strip()


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


# bool is an int subclass; reject it explicitly for quantity fields
def is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
