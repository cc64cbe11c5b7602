"""Command-line entry point: load modules, start applications, stop them on a signal."""

from __future__ import annotations

import os
import signal
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import Any, Mapping, Sequence

from gotenberg.context import Context, ModuleLoadError
from gotenberg.deadline import Deadline
from gotenberg.debug import build_debug, set_version
from gotenberg.flags import FlagError, FlagKind, FlagSet, ParsedFlags, format_duration
from gotenberg.modules import App, ModuleDescriptor, SystemLogger, get_module_descriptors

VERSION = "snapshot"

GRACEFUL_SHUTDOWN_FLAG = "gotenberg-graceful-shutdown-duration"
BUILD_DEBUG_DATA_FLAG = "gotenberg-build-debug-data"

_BANNER = """
Gotenberg

A containerized API for seamless PDF conversion.
Version: {version}
-------------------------------------------------------
"""


def build_flag_set(descriptors: Sequence[ModuleDescriptor]) -> FlagSet:
    """Return the root flag set holding the application flags and every module's flags."""
    flag_set = FlagSet("gotenberg")
    flag_set.add_duration(GRACEFUL_SHUTDOWN_FLAG, timedelta(seconds=30), "Set the graceful shutdown duration")
    flag_set.add_bool(BUILD_DEBUG_DATA_FLAG, True, "Set if build data is needed")
    for desc in descriptors:
        flag_set.add_flag_set(desc.flag_set)
    return flag_set


def apply_env_overrides(flag_set: FlagSet, environ: Mapping[str, str] | None = None) -> None:
    """Override flag values from environment variables named after the flags.

    ``foo-bar`` is read from ``FOO_BAR``; slice values are comma separated and
    replace the whole value.
    """
    env = os.environ if environ is None else environ
    for flag in flag_set:
        env_name = flag.name.replace("-", "_").upper()
        value = env.get(env_name)
        if value is None:
            continue
        try:
            if flag.kind is FlagKind.STRING_SLICE:
                flag.replace(value.split(","))
            else:
                flag.set(value)
        except FlagError as exc:
            raise FlagError(f"invalid overriding value '{value}' from {env_name}: {exc}") from exc


class _ShutdownSignal:
    """Waits for SIGINT or SIGTERM; a second SIGINT cancels the graceful shutdown."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._previous: dict[int, Any] = {}

    def __enter__(self) -> _ShutdownSignal:
        if threading.current_thread() is threading.main_thread():
            for sig in (signal.SIGINT, signal.SIGTERM):
                self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def __exit__(self, *exc_info: object) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def _handle(self, signum: int, frame: object) -> None:
        self._event.set()

    def request(self) -> None:
        self._event.set()

    def wait(self) -> None:
        while not self._event.wait(0.1):
            pass

    def force_quit(self, deadline: Deadline) -> None:
        if signal.SIGINT in self._previous:
            signal.signal(signal.SIGINT, lambda signum, frame: deadline.cancel())


def _module_id(mod: Any) -> str:
    return mod.descriptor().id


def _start_app(app: Any, failures: list[BaseException], shutdown: _ShutdownSignal) -> None:
    id_ = _module_id(app)
    try:
        app.start()
    except Exception as exc:
        print(f"[FATAL] starting {id_}: {exc}", flush=True)
        failures.append(exc)
        shutdown.request()
        return
    message = app.startup_message() or "application started"
    print(f"[SYSTEM] {id_}: {message}", flush=True)


def _print_system_messages(logger: Any) -> None:
    id_ = _module_id(logger)
    for message in logger.system_messages():
        print(f"[SYSTEM] {id_}: {message}", flush=True)


def _stop_app(app: Any, deadline: Deadline) -> None:
    id_ = _module_id(app)
    try:
        app.stop(deadline)
    except Exception as exc:
        raise RuntimeError(f"stopping {id_}: {exc}") from exc
    print(f"[SYSTEM] {id_}: application stopped", flush=True)


def _run(
    args: Sequence[str],
    environ: Mapping[str, str],
    descriptors: Sequence[ModuleDescriptor],
    shutdown: _ShutdownSignal,
) -> int:
    print(_BANNER.format(version=VERSION), end="", flush=True)
    set_version(VERSION)

    flag_set = build_flag_set(descriptors)
    print(f"[SYSTEM] modules: {''.join(desc.id + ' ' for desc in descriptors)}", flush=True)

    try:
        flag_set.parse(list(args))
    except FlagError as exc:
        print(exc, flush=True)
        return 1

    try:
        apply_env_overrides(flag_set, environ)
    except FlagError as exc:
        print(f"[FATAL] {exc}", flush=True)
        return 1

    parsed = ParsedFlags(flag_set)
    graceful = parsed.must_duration(GRACEFUL_SHUTDOWN_FLAG)
    ctx = Context(parsed, list(descriptors))

    try:
        apps = ctx.modules(App)
    except ModuleLoadError as exc:
        print(f"[FATAL] {exc}", flush=True)
        return 1

    failures: list[BaseException] = []
    workers = [
        threading.Thread(target=_start_app, args=(app, failures, shutdown), daemon=True) for app in apps
    ]
    for worker in workers:
        worker.start()

    try:
        loggers = ctx.modules(SystemLogger)
    except ModuleLoadError as exc:
        print(f"[FATAL] {exc}", flush=True)
        return 1

    logger_threads = [
        threading.Thread(target=_print_system_messages, args=(logger,), daemon=True) for logger in loggers
    ]
    for worker in logger_threads:
        worker.start()
    workers.extend(logger_threads)

    if parsed.must_bool(BUILD_DEBUG_DATA_FLAG):
        build_debug(ctx)

    shutdown.wait()

    deadline = Deadline(graceful.total_seconds())
    for worker in workers:
        worker.join(deadline.remaining())
    if failures:
        return 1

    shutdown.force_quit(deadline)
    print(f"[SYSTEM] graceful shutdown of {format_duration(graceful)}", flush=True)

    with ThreadPoolExecutor(max_workers=max(1, len(apps))) as pool:
        futures = [pool.submit(_stop_app, app, deadline) for app in apps]
    errors = [future.exception() for future in futures if future.exception() is not None]
    if errors:
        print(f"[FATAL] {errors[0]}", flush=True)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the application until SIGINT or SIGTERM; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    with _ShutdownSignal() as shutdown:
        return _run(args, os.environ, get_module_descriptors(), shutdown)


if __name__ == "__main__":
    sys.exit(main())