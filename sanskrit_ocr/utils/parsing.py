"""
Parsers for the line-oriented text that external tools print.
"""
from typing import Optional


def extract_field(text: str, key: str, separator: str = ":") -> Optional[str]:
    """
    Extract the value of a named field from ``key: value`` lines.

    Args:
        text: Tool output, one field per line
        key: Field name to look for (exact, case-sensitive)
        separator: Separator between key and value

    Returns:
        Stripped value of the first matching line, or None if absent
    """
    for line in text.splitlines():
        name, sep, value = line.partition(separator)
        if sep and name.strip() == key:
            return value.strip()
    return None


def extract_int_field(text: str, key: str) -> Optional[int]:
    """Same as extract_field but returns None unless the value is a non-negative integer."""
    value = extract_field(text, key)
    if value is None or not value.isdigit():
        return None
    return int(value)


def excerpt(text: str, limit: int = 500) -> str:
    """Trim tool diagnostics to something that fits in a status line."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
