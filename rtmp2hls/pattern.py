"""Conversion of ``{var}`` path patterns to regular expressions."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import unquote, urlsplit

_PLACEHOLDER = re.compile(r"\\\{([A-Za-z0-9_]+)\\\}")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


def pattern_to_regex(pattern: str) -> tuple[str, list[str]]:
    """Turn a pattern such as ``/live/{app}`` into an anchored regex.

    Returns the regex source and the variable names in order of appearance.
    """
    names: list[str] = []

    def _group(match: re.Match) -> str:
        name = match.group(1)
        names.append(name)
        return f"(?P<{name}>[^/]+)"

    body = _PLACEHOLDER.sub(_group, re.escape(pattern))
    return f"^{body}$", names


def extract_variables(
    regex_str: str, var_names: list[str], path: str
) -> Optional[dict[str, str]]:
    """Match ``path`` against ``regex_str`` and return its named groups.

    Returns None when the regex is invalid or does not match.
    """
    try:
        regex = re.compile(regex_str)
    except re.error:
        return None
    match = regex.fullmatch(path)
    if match is None:
        return None
    return match.groupdict(default="")


def extract_path_from_tcurl(tcurl: str) -> str:
    """Return the path component of a TCURL, or the TCURL itself if unparsable."""
    if _CONTROL.search(tcurl):
        return tcurl
    try:
        raw_path = urlsplit(tcurl).path
    except ValueError:
        return tcurl
    if _BAD_ESCAPE.search(raw_path):
        return tcurl
    return unquote(raw_path)