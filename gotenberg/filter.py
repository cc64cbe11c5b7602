"""Allow/deny filtering of strings by regular expressions, under a deadline."""

from __future__ import annotations

import regex

from gotenberg.deadline import Deadline, DeadlineExceeded


class FilteredError(Exception):
    """Raised when a value is rejected by the allowed or denied expression."""


def _as_pattern(pattern: regex.Pattern | str | None) -> regex.Pattern | None:
    if pattern is None:
        return None
    if isinstance(pattern, str):
        return regex.compile(pattern)
    return pattern


def _matches(pattern: regex.Pattern, s: str, deadline: Deadline) -> bool:
    if deadline.done():
        raise DeadlineExceeded()
    remaining = deadline.remaining()
    try:
        return pattern.search(s, timeout=remaining) is not None
    except TimeoutError as exc:
        raise DeadlineExceeded() from exc


def filter_deadline(allowed, denied, s: str, deadline: Deadline) -> None:
    """Check that ``s`` matches ``allowed`` and does not match ``denied``.

    An empty expression is ignored. Raises FilteredError when the value is
    rejected and DeadlineExceeded when the deadline is done.
    """
    allow = _as_pattern(allowed)
    if allow is not None and allow.pattern != "":
        if not _matches(allow, s, deadline):
            raise FilteredError(f"'{s}' does not match the expression from the allowed list: value filtered")

    deny = _as_pattern(denied)
    if deny is not None and deny.pattern != "":
        if _matches(deny, s, deadline):
            raise FilteredError(f"'{s}' matches the expression from the denied list: value filtered")