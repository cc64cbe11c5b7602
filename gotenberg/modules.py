"""Module descriptors, module interfaces and the module registry."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from gotenberg.flags import FlagSet

if TYPE_CHECKING:
    from gotenberg.context import Context
    from gotenberg.deadline import Deadline


@dataclass
class ModuleDescriptor:
    """Describes a module: its unique snake-case ID, its flags and its factory."""

    id: str
    flag_set: FlagSet | None = None
    new: Callable[[], Module | None] | None = None


@runtime_checkable
class Module(Protocol):
    """A plugin that adds functionality to the application or to other modules."""

    def descriptor(self) -> ModuleDescriptor:
        """Return the descriptor of the module."""


@runtime_checkable
class Provisioner(Protocol):
    """A module initialised from flags, environment variables or the context."""

    def provision(self, ctx: Context) -> None:
        """Initialise the module, raising on failure."""


@runtime_checkable
class Validator(Protocol):
    """A module validated after provisioning."""

    def validate(self) -> None:
        """Check the module's configuration, raising on failure."""


@runtime_checkable
class App(Protocol):
    """A module the application starts and stops."""

    def start(self) -> None:
        """Start the application module."""

    def startup_message(self) -> str:
        """A custom startup message, or an empty string for the default one."""

    def stop(self, deadline: Deadline) -> None:
        """Stop the application module before the deadline."""


@runtime_checkable
class SystemLogger(Protocol):
    """A module that displays messages on startup."""

    def system_messages(self) -> list[str]:
        """Return the messages to display."""


@runtime_checkable
class Debuggable(Protocol):
    """A module that provides additional debug data."""

    def debug(self) -> dict[str, Any]:
        """Return the module's debug data."""


@dataclass
class Metric:
    """A single metric: a unique name, an optional description and a reader."""

    name: str
    read: Callable[[], float]
    description: str = ""


@runtime_checkable
class MetricsProvider(Protocol):
    """A module that provides a list of metrics."""

    def metrics(self) -> list[Metric]:
        """Return the metrics."""


class ModuleRegistrationError(Exception):
    """Raised when a module cannot be registered."""


class Registry:
    """A thread-safe collection of module descriptors keyed by ID."""

    def __init__(self) -> None:
        self._descriptors: dict[str, ModuleDescriptor] = {}
        self._lock = threading.RLock()

    def register(self, module: Module) -> None:
        """Register the descriptor of ``module``."""
        desc = module.descriptor()
        if desc.id == "":
            raise ModuleRegistrationError("module with an empty ID cannot be registered")
        if desc.new is None:
            raise ModuleRegistrationError("module New function cannot be nil")
        if desc.new() is None:
            raise ModuleRegistrationError("module New function cannot return a nil instance")
        with self._lock:
            if desc.id in self._descriptors:
                raise ModuleRegistrationError(f"module {desc.id} is already registered")
            self._descriptors[desc.id] = desc

    def descriptors(self) -> list[ModuleDescriptor]:
        """Return the registered descriptors sorted by ID."""
        with self._lock:
            return sorted(self._descriptors.values(), key=lambda d: d.id)


_registry = Registry()


def must_register_module(module: Module) -> None:
    """Register a module in the application-wide registry."""
    _registry.register(module)


def get_module_descriptors() -> list[ModuleDescriptor]:
    """Return the descriptors of all modules in the application-wide registry."""
    return _registry.descriptors()