"""Sorting of file names by a numeric prefix or suffix."""

from __future__ import annotations

import functools
import re
from typing import Iterable

_PREFIX = re.compile(r"^(\d+)(.*)$", re.ASCII | re.DOTALL)
_EXTENSION_SUFFIX = re.compile(r"^(.*?)(\d+)(\.[^.]+)$", re.ASCII | re.DOTALL)
_SUFFIX = re.compile(r"^(.*?)(\d+)$", re.ASCII | re.DOTALL)
_INT64_MAX = 2**63 - 1


def _base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _to_int(digits: str) -> int | None:
    value = int(digits)
    return value if value <= _INT64_MAX else None


def extract_number(value: str) -> tuple[int, str]:
    """Return the numeric part of a file name and the rest, or ``(-1, name)``.

    A numeric prefix is preferred, then a number just before the extension,
    then a trailing number. Only the base name of a path is considered.
    """
    name = _base(value)

    match = _PREFIX.match(name)
    if match and (num := _to_int(match.group(1))) is not None:
        return num, match.group(2)

    match = _EXTENSION_SUFFIX.match(name)
    if match and (num := _to_int(match.group(2))) is not None:
        return num, match.group(1) + match.group(3)

    match = _SUFFIX.match(name)
    if match and (num := _to_int(match.group(2))) is not None:
        return num, match.group(1)

    return -1, name


def alphanumeric_less(a: str, b: str) -> bool:
    """Return True when ``a`` sorts before ``b``."""
    num_a, rest_a = extract_number(a)
    num_b, rest_b = extract_number(b)
    if num_a != -1 and num_b != -1:
        if num_a != num_b:
            return num_a < num_b
        return rest_a < rest_b
    if num_a != -1:
        return True
    if num_b != -1:
        return False
    return a < b


def _compare(a: str, b: str) -> int:
    if alphanumeric_less(a, b):
        return -1
    if alphanumeric_less(b, a):
        return 1
    return 0


def alphanumeric_sort(values: Iterable[str]) -> list[str]:
    """Return the values sorted numbers first, by their numeric part."""
    return sorted(values, key=functools.cmp_to_key(_compare))