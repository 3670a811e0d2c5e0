from __future__ import annotations

import datetime as dt
import sys
from urllib.parse import quote

TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def parse_bool(value: object) -> bool:
    """Front matter and config flags: ``draft: yes`` and ``clean = true`` both count."""
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value) if isinstance(value, (bool, int)) else int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    """Join a site URL and a site-relative path with exactly one slash."""
    path = path.lstrip("/")
    return "/".join(part for part in (base.rstrip("/"), path) if part)


def url_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(value, safe="-_.!~*'()")


def rfc822_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.strftime("%a, %d %b %Y %H:%M:%S %z")


def long_date(value: dt.datetime) -> str:
    # %-d is not portable, so the day is formatted by hand.
    return f"{value:%B} {value.day}, {value.year}"


def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)
