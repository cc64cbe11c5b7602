"""The context modules use to find and initialise each other."""

from __future__ import annotations

from typing import Any

from gotenberg.flags import ParsedFlags
from gotenberg.modules import ModuleDescriptor, Provisioner, Validator


class ModuleLoadError(Exception):
    """Raised when modules cannot be found, provisioned or validated."""


class Context:
    """Holds the parsed flags and lazily initialises modules by interface."""

    def __init__(
        self,
        flags: ParsedFlags | None = None,
        descriptors: list[ModuleDescriptor] | None = None,
    ) -> None:
        self._flags = flags if flags is not None else ParsedFlags()
        self._descriptors = list(descriptors or [])
        self._instances: dict[str, Any] = {}

    def parsed_flags(self) -> ParsedFlags:
        """Return the parsed flags."""
        return self._flags

    def module_instances(self) -> dict[str, Any]:
        """Return the initialised module instances keyed by module ID."""
        return dict(self._instances)

    def module(self, kind: type) -> Any:
        """Return the one module that implements ``kind``."""
        try:
            mods = self.modules(kind)
        except ModuleLoadError as exc:
            raise ModuleLoadError(f"get module: {exc}") from exc
        if len(mods) != 1:
            raise ModuleLoadError(
                f"expected to have one and only one {getattr(kind, '__name__', kind)} module"
            )
        return mods[0]

    def modules(self, kind: type) -> list[Any]:
        """Return every module implementing ``kind``, initialising it if needed."""
        mods: list[Any] = []
        for desc in self._descriptors:
            if desc.new is None:
                continue
            instance = desc.new()
            if not isinstance(instance, kind):
                continue
            if desc.id in self._instances:
                mods.append(self._instances[desc.id])
            else:
                self._load_module(desc.id, instance)
                mods.append(instance)
        return mods

    def _load_module(self, id_: str, instance: Any) -> None:
        if isinstance(instance, Provisioner):
            try:
                instance.provision(self)
            except Exception as exc:
                raise ModuleLoadError(f"provision module {id_}: {exc}") from exc
        if isinstance(instance, Validator):
            try:
                instance.validate()
            except Exception as exc:
                raise ModuleLoadError(f"validate module {id_}: {exc}") from exc
        self._instances[id_] = instance