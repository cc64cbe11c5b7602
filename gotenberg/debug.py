"""Application version and debug data gathered from modules."""

from __future__ import annotations

import copy
import platform
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gotenberg.alphanumeric import alphanumeric_sort
from gotenberg.modules import Debuggable

if TYPE_CHECKING:
    from gotenberg.context import Context

_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}

ARCHITECTURE = _ARCH_NAMES.get(platform.machine().lower(), platform.machine().lower())


@dataclass
class DebugInfo:
    """Data gathered for debugging."""

    version: str = ""
    architecture: str = ""
    modules: list[str] = field(default_factory=list)
    modules_additional_data: dict[str, dict[str, Any]] = field(default_factory=dict)
    flags: dict[str, Any] = field(default_factory=dict)


_version = "snapshot"
_debug: DebugInfo | None = None
_lock = threading.Lock()


def set_version(version: str) -> None:
    """Set the application version."""
    global _version
    _version = version


def get_version() -> str:
    """Return the application version."""
    return _version


def build_debug(ctx: Context) -> None:
    """Build the debug data from the context's initialised modules and flags."""
    global _debug
    instances = ctx.module_instances()
    info = DebugInfo(version=_version, architecture=ARCHITECTURE)
    for id_, mod in instances.items():
        if isinstance(mod, Debuggable):
            info.modules_additional_data[id_] = mod.debug()
    info.modules = alphanumeric_sort(instances)
    info.flags = {flag.name: str(flag) for flag in ctx.parsed_flags().flag_set}
    with _lock:
        _debug = info


def debug() -> DebugInfo:
    """Return a copy of the debug data, or empty data if none was built."""
    with _lock:
        if _debug is None:
            return DebugInfo()
        return copy.deepcopy(_debug)


def reset_debug() -> None:
    """Forget the debug data built so far."""
    global _debug
    with _lock:
        _debug = None