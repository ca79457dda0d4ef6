"""
Helpers for configuration forms submitted through the host.

Form data arrives as a mapping of field name to a string or a list of
strings (for ``name[]`` fields). Some clients URL-encode values and the
host HTML-escapes them, so text values are decoded before storage.
"""

import html
from typing import Any, Dict, List, Mapping
from urllib.parse import unquote_plus


def decode_form_value(value: Any) -> str:
    """URL-decode then HTML-entity-decode a submitted text value."""
    if value is None:
        return ""
    text = unquote_plus(str(value))
    return html.unescape(text)


def form_list(form: Mapping[str, Any], key: str) -> List[Any]:
    """Return a list-valued field, accepting both ``key`` and ``key[]``."""
    value = form.get(key)
    if value is None:
        value = form.get(f"{key}[]")
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_enabled_feeds(raw: Any, require_on: bool = False) -> Dict[int, bool]:
    """Turn a submitted ``enabled_feeds[<id>]`` mapping into ``{id: True}``.

    Args:
        raw: Mapping of feed id (int or digit string) to checkbox value
        require_on: Only count checkboxes whose value is exactly ``"on"``

    Returns:
        Mapping of integer feed id to True for every checked feed
    """
    if not isinstance(raw, Mapping):
        return {}

    enabled: Dict[int, bool] = {}
    for key, value in raw.items():
        if require_on and value != "on":
            continue
        if isinstance(key, bool):
            continue
        if isinstance(key, int):
            enabled[key] = True
        elif isinstance(key, str) and key.isdigit():
            enabled[int(key)] = True
    return enabled
