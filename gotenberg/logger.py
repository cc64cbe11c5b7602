"""Logger provider interface and a leveled adapter over standard loggers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gotenberg.modules import Module


@runtime_checkable
class LoggerProvider(Protocol):
    """A module that creates loggers for other modules."""

    def logger(self, mod: Module) -> logging.Logger:
        """Return a logger dedicated to ``mod``."""


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format(msg: str, args: tuple[Any, ...]) -> str:
    return f"{msg}: [" + " ".join(_format_value(v) for v in args) + "]"


class LeveledLogger:
    """Logs a message followed by its key/value pairs, at a given level."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def error(self, msg: str, *args: Any) -> None:
        self._logger.error(_format(msg, args))

    def warn(self, msg: str, *args: Any) -> None:
        self._logger.warning(_format(msg, args))

    def info(self, msg: str, *args: Any) -> None:
        self._logger.info(_format(msg, args))

    def debug(self, msg: str, *args: Any) -> None:
        self._logger.debug(_format(msg, args))