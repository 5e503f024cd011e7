"""Header lookup shared by the guard functions."""

from typing import Any, Mapping, Optional


def header_value(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """
    First value of a header, or None.

    Accepts werkzeug Headers (case-insensitive) as well as plain dicts with
    any key casing; list values yield their first element.
    """
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                value = candidate
                break
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value if isinstance(value, str) else None
