"""Supervision of a long-running process that serves tasks one at a time."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from gotenberg.deadline import ContextError

if TYPE_CHECKING:
    from gotenberg.deadline import Deadline

_POLL = 0.01


class ProcessAlreadyRestartingError(Exception):
    """Raised when a restart is requested while the process is already restarting."""

    def __init__(self, message: str = "process already restarting") -> None:
        super().__init__(message)


class MaximumQueueSizeExceededError(Exception):
    """Raised when a task is submitted while the request queue is full."""

    def __init__(self, message: str = "maximum queue size exceeded") -> None:
        super().__init__(message)


@runtime_checkable
class Process(Protocol):
    """A process that can be started, stopped and checked for health."""

    def start(self, logger: logging.Logger) -> None:
        """Start the process, raising if it cannot be started."""

    def stop(self, logger: logging.Logger) -> None:
        """Stop the process, raising if it cannot be stopped."""

    def healthy(self, logger: logging.Logger) -> bool:
        """Return True when the process is healthy."""


def _wrapped(prefix: str, exc: BaseException) -> Exception:
    """Prefix an error's message, keeping the types callers look for."""
    message = f"{prefix}: {exc}"
    if isinstance(exc, (ContextError, ProcessAlreadyRestartingError)):
        return type(exc)(message)
    return RuntimeError(message)


class ProcessSupervisor:
    """Runs tasks against a process, one at a time, restarting it when needed.

    The process is started on the first task, restarted before a task if it is
    unhealthy, and restarted after ``max_req_limit`` tasks (0 means never). At
    most ``max_queue_size`` tasks may wait for the process (0 means no limit).
    """

    def __init__(
        self,
        logger: logging.Logger,
        process: Process,
        max_req_limit: int = 0,
        max_queue_size: int = 0,
    ) -> None:
        self._logger = logger
        self._process = process
        self._max_req_limit = max_req_limit
        self._max_queue_size = max_queue_size
        self._lock = threading.Lock()
        self._state = threading.Lock()
        self._first_start = False
        self._restarting = False
        self._req_counter = 0
        self._queue_size = 0
        self._restarts = 0

    def launch(self) -> None:
        """Start the managed process."""
        self._logger.debug("start process")
        try:
            self._process.start(self._logger)
        except Exception as exc:
            raise _wrapped("start process", exc) from exc
        self._first_start = True
        self._logger.debug("process successfully started")

    def shutdown(self) -> None:
        """Stop the managed process."""
        self._logger.debug("shutdown process")
        try:
            self._process.stop(self._logger)
        except Exception as exc:
            raise _wrapped("shutdown process", exc) from exc
        self._logger.debug("process successfully shutdown")

    def _restart(self) -> None:
        with self._state:
            if self._restarting:
                self._logger.debug("process already restarting, skip restart")
                raise ProcessAlreadyRestartingError()
            self._restarting = True

        self._logger.debug("restart process")
        try:
            try:
                self.shutdown()
            except Exception as exc:
                # Chances are the process is already stopped.
                self._logger.debug("stop process before restart: %s", exc)
            try:
                self.launch()
            except Exception as exc:
                raise _wrapped("restart process", exc) from exc
            with self._state:
                self._req_counter = 0
                self._restarts += 1
            self._logger.debug("process successfully restarted")
        finally:
            self._restarting = False

    def healthy(self) -> bool:
        """Return the health of the process; a non-started or restarting one is healthy."""
        if not self._first_start:
            return True
        if self._restarting:
            return True
        return self._process.healthy(self._logger)

    def run(self, deadline: Deadline | None, logger: logging.Logger, task: Callable[[], Any]) -> Any:
        """Run ``task`` while holding the process, and return what it returns.

        Raises MaximumQueueSizeExceededError when the queue is full, a
        ContextError when the deadline is done first, and whatever the task
        raises.
        """
        with self._state:
            if self._max_queue_size > 0 and self._queue_size >= self._max_queue_size:
                raise MaximumQueueSizeExceededError()
            self._queue_size += 1

        while True:
            try:
                return self._run_once(deadline, logger, task)
            except ProcessAlreadyRestartingError:
                logger.debug("process is already restarting, trying to acquire process lock again...")
                self._add_queue(1)

    def _add_queue(self, delta: int) -> None:
        with self._state:
            self._queue_size += delta

    def _acquire(self, deadline: Deadline | None) -> bool:
        while True:
            if self._lock.acquire(timeout=_POLL):
                return True
            if deadline is not None and deadline.done():
                return False

    def _run_once(self, deadline: Deadline | None, logger: logging.Logger, task: Callable[[], Any]) -> Any:
        if not self._acquire(deadline):
            logger.debug("failed to acquire process lock before deadline")
            self._add_queue(-1)
            error = deadline.error() if deadline is not None else None
            cause = error if error is not None else ContextError("context done")
            raise _wrapped("acquire process lock", cause) from cause

        logger.debug("process lock acquired")
        with self._state:
            self._queue_size -= 1
            self._req_counter += 1
        release = True

        try:
            if not self._first_start:
                try:
                    self._run_with_deadline(deadline, self.launch)
                except Exception as exc:
                    raise _wrapped("process first start", exc) from exc

            if not self.healthy():
                self._logger.debug("process is unhealthy, cannot handle task, restarting...")
                try:
                    self._run_with_deadline(deadline, self._restart)
                except Exception as exc:
                    raise _wrapped("process restart before task", exc) from exc

            try:
                return self._run_with_deadline(deadline, task)
            finally:
                if self._max_req_limit > 0 and self._req_counter >= self._max_req_limit:
                    self._logger.debug("max request limit reached, restarting eagerly...")
                    release = False
                    threading.Thread(
                        target=self._restart_and_release, args=(logger,), daemon=True
                    ).start()
        finally:
            if release:
                logger.debug("process lock released")
                self._lock.release()

    def _restart_and_release(self, logger: logging.Logger) -> None:
        try:
            self._restart()
        except Exception as exc:
            self._logger.error("process restart after task: %s", exc)
        finally:
            logger.debug("process lock released")
            self._lock.release()

    @staticmethod
    def _run_with_deadline(deadline: Deadline | None, task: Callable[[], Any]) -> Any:
        if deadline is None:
            return task()

        outcome: dict[str, Any] = {}
        finished = threading.Event()

        def target() -> None:
            try:
                outcome["value"] = task()
            except BaseException as exc:  # handed back to the caller
                outcome["error"] = exc
            finally:
                finished.set()

        threading.Thread(target=target, daemon=True).start()
        while True:
            if deadline.done():
                error = deadline.error()
                raise error if error is not None else ContextError("context done")
            if finished.wait(_POLL):
                break
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("value")

    def req_queue_size(self) -> int:
        """Return the number of tasks waiting for the process."""
        with self._state:
            return self._queue_size

    def restarts_count(self) -> int:
        """Return the number of successful restarts."""
        with self._state:
            return self._restarts