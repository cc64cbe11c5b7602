"""Typed access to environment variables."""

from __future__ import annotations

import os
import re


class EnvironmentVariableError(Exception):
    """Raised when an environment variable is missing, empty or invalid."""


def string_env(key: str) -> str:
    """Return the value of ``key``, which must be set and not empty."""
    value = os.environ.get(key)
    if value is None:
        raise EnvironmentVariableError(f"environment variable '{key}' does not exist")
    if value == "":
        raise EnvironmentVariableError(f"environment variable '{key}' is empty")
    return value


def int_env(key: str) -> int:
    """Return the integer value of ``key``."""
    value = string_env(key)
    if not re.fullmatch(r"[+-]?\d+", value):
        raise EnvironmentVariableError(
            f"get int value of environment variable '{key}': invalid syntax: \"{value}\""
        )
    return int(value)