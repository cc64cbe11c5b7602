"""Running external programs in their own process group."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from typing import IO, Sequence

from gotenberg.deadline import Deadline

_POLL = 0.01
_READER_JOIN = 1.0


class CommandError(Exception):
    """Raised when a command cannot start, fails, or outlives its deadline."""

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def _describe(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


class Command:
    """An external program that can be killed together with all its children.

    Without a deadline the command can be started and waited for, but not
    executed with ``exec``.
    """

    def __init__(
        self,
        logger: logging.Logger,
        bin_path: str,
        args: Sequence[str] = (),
        deadline: Deadline | None = None,
    ) -> None:
        self._logger = logger.getChild(bin_path.replace("/", ""))
        self._bin_path = bin_path
        self._args = list(args)
        self._deadline = deadline
        self._process: subprocess.Popen | None = None
        self._readers: list[threading.Thread] = []

    def start(self) -> None:
        """Start the command without waiting for its completion."""
        if self._process is not None:
            raise CommandError("start unix process: already started")
        if self._deadline is not None and self._deadline.done():
            raise CommandError(f"start unix process: {self._deadline.error()}")

        piped = self._logger.isEnabledFor(logging.DEBUG)
        output = subprocess.PIPE if piped else subprocess.DEVNULL
        argv = [self._bin_path, *self._args]
        self._logger.debug("start unix process: %s", " ".join(argv))
        try:
            self._process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            raise CommandError(f"start unix process: {exc}") from exc

        if piped:
            for name, stream in (("stdout", self._process.stdout), ("stderr", self._process.stderr)):
                reader = threading.Thread(
                    target=self._log_output, args=(self._logger.getChild(name), stream), daemon=True
                )
                reader.start()
                self._readers.append(reader)

    @staticmethod
    def _log_output(logger: logging.Logger, stream: IO[bytes]) -> None:
        try:
            for raw in iter(stream.readline, b""):
                line = raw.rstrip(b"\r\n")
                if line:
                    logger.debug(line.decode(errors="replace"))
        except (OSError, ValueError) as exc:
            logger.error("pipe unix process output error: %s", exc)
        finally:
            try:
                stream.close()
            except OSError as exc:
                logger.error("close reader: %s", exc)

    def wait(self) -> int:
        """Wait for the command to complete; raise CommandError on a non-zero exit."""
        process = self._process
        if process is None:
            raise CommandError("wait for unix process: not started")

        if self._deadline is None:
            returncode = process.wait()
        else:
            killed = False
            while True:
                try:
                    returncode = process.wait(timeout=_POLL)
                    break
                except subprocess.TimeoutExpired:
                    if not killed and self._deadline.done():
                        killed = True
                        try:
                            process.kill()
                        except ProcessLookupError:
                            pass

        for reader in self._readers:
            reader.join(timeout=_READER_JOIN)

        if returncode != 0:
            raise CommandError(
                f"wait for unix process: {_describe(returncode)}",
                exit_code=-1 if returncode < 0 else returncode,
            )
        return 0

    def exec(self) -> int:
        """Run the command until it completes or the deadline is done, then kill its group.

        Returns 0 on success. Raises CommandError carrying the exit code
        otherwise: 10 without a deadline, 131 when the command cannot start,
        62 when the deadline is done first.
        """
        if self._deadline is None:
            raise CommandError("nil context", exit_code=10)

        try:
            self.start()
        except CommandError as exc:
            raise CommandError(f"start command: {exc}", exit_code=131) from exc

        outcome: list[CommandError] = []
        finished = threading.Event()

        def waiter() -> None:
            try:
                self.wait()
            except CommandError as exc:
                outcome.append(exc)
            finally:
                finished.set()

        threading.Thread(target=waiter, daemon=True).start()

        while not finished.wait(_POLL):
            if self._deadline.done():
                self._kill_logged()
                raise CommandError(f"context done: {self._deadline.error()}", exit_code=62)

        self._kill_logged()
        if not outcome:
            return 0
        error = outcome[0]
        if self._deadline.done():
            raise CommandError(f"context done: {self._deadline.error()}", exit_code=62) from error
        exit_code = error.exit_code if error.exit_code is not None else 131
        raise CommandError(f"unix process error: {error}", exit_code=exit_code) from error

    def _kill_logged(self) -> None:
        try:
            self.kill()
        except CommandError as exc:
            self._logger.error(str(exc))

    def kill(self) -> None:
        """Kill the process and all its children; a process already gone is not an error."""
        if self._process is None:
            return
        try:
            os.killpg(self._process.pid, signal.SIGKILL)
        except ProcessLookupError:
            self._logger.debug("unix process already killed")
            return
        except OSError as exc:
            raise CommandError(f"kill unix process: {exc}") from exc
        self._logger.debug("unix process killed")