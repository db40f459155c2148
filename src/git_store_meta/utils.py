"""Utility functions for git-store-meta."""

import calendar
import re
import time

_GMTIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})Z$")


def format_gmtime(timestamp: float) -> str:
    """Format a Unix timestamp as UTC ISO 8601 with seconds precision.

    Examples:
        0 -> "1970-01-01T00:00:00Z"
        1700000000.75 -> "2023-11-14T22:13:20Z"
    """
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(int(timestamp // 1)))


def parse_gmtime(value: str) -> int:
    """Parse a timestamp written by format_gmtime back to a Unix timestamp.

    Raises:
        ValueError: If the value is not in YYYY-MM-DDTHH:MM:SSZ form
    """
    match = _GMTIME_RE.match(value)
    if not match:
        raise ValueError(f"Invalid timestamp: {value!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups())
    return calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))


def parse_version(value: str) -> tuple:
    """Parse a "major.minor.patch" version string into a tuple of ints.

    A leading "v" is accepted. Missing minor/patch components count as 0.

    Raises:
        ValueError: If the string is not a dotted numeric version
    """
    text = value.strip()
    if text.startswith("v"):
        text = text[1:]
    parts = text.split(".")
    if not text or len(parts) > 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid version: {value!r}")
    numbers = [int(p) for p in parts]
    while len(numbers) < 3:
        numbers.append(0)
    return tuple(numbers)


def ancestors(path: str) -> list:
    """Return the ancestor directories of a slash-separated path, nearest first.

    Examples:
        "a/b/c.txt" -> ["a/b", "a"]
        "c.txt" -> []
    """
    parts = path.split("/")[:-1]
    result = []
    while parts:
        result.append("/".join(parts))
        parts.pop()
    return result
