"""Run a suggested script under the user's shell interpreter."""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from shellassist.errors import ConfigError, ExecutionError

LOGGER = logging.getLogger(__name__)

TRANSIENT_PREFIX = "shellassist-"


def resolve_interpreter(shell_name: str) -> str:
    """Return the absolute path of ``shell_name`` or raise :class:`ConfigError`."""
    interpreter = shutil.which(shell_name) if shell_name.strip() else None
    if interpreter is None:
        raise ConfigError(f"unable to find {shell_name or 'shell'} interpreter")
    return os.path.abspath(interpreter)


class ScriptExecutor:
    """Write a script to a transient file and hand it to the interpreter.

    The child inherits the standard streams and environment of this process.
    The transient file is removed once the child terminates, whatever the
    outcome.
    """

    def __init__(self, interpreter: str, *, temp_dir: str | None = None) -> None:
        self.interpreter = interpreter
        self.temp_dir = temp_dir

    def execute(self, script: str) -> None:
        try:
            fd, script_path = tempfile.mkstemp(prefix=TRANSIENT_PREFIX, dir=self.temp_dir)
        except OSError as exc:
            LOGGER.error("script_file_create_failed", extra={"error": str(exc)})
            msg = f"command: unable to create script file: {exc}"
            raise ExecutionError(msg, cause=exc) from exc

        try:
            self._write(fd, script)
            self._run(script_path)
        finally:
            Path(script_path).unlink(missing_ok=True)
            LOGGER.debug("script_file_removed", extra={"path": script_path})

    @staticmethod
    def _write(fd: int, script: str) -> None:
        try:
            handle = os.fdopen(fd, "w", encoding="utf-8")
        except OSError as exc:
            os.close(fd)
            msg = f"command: unable to write script file: {exc}"
            raise ExecutionError(msg, cause=exc) from exc
        try:
            with handle:
                handle.write(script)
        except (OSError, UnicodeError) as exc:
            LOGGER.error("script_file_write_failed", extra={"error": str(exc)})
            msg = f"command: unable to write script file: {exc}"
            raise ExecutionError(msg, cause=exc) from exc

    def _run(self, script_path: str) -> None:
        LOGGER.info(
            "script_execution_started",
            extra={"interpreter": self.interpreter, "path": script_path},
        )
        try:
            with _interrupts_ignored() as ignoring:
                process = subprocess.run(
                    [self.interpreter, script_path],
                    check=False,
                    preexec_fn=_restore_default_interrupt if ignoring and os.name != "nt" else None,
                )
        except OSError as exc:
            LOGGER.error(
                "script_spawn_failed",
                extra={"interpreter": self.interpreter, "error": str(exc)},
            )
            raise ExecutionError(f"command: {exc}", cause=exc) from exc

        returncode = process.returncode
        LOGGER.info("script_execution_finished", extra={"returncode": returncode})
        if returncode == 0:
            return
        if returncode < 0:
            raise ExecutionError(
                f"command: terminated by signal {_signal_name(-returncode)}",
                returncode=returncode,
            )
        raise ExecutionError(f"command: exit status {returncode}", returncode=returncode)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


@contextmanager
def _interrupts_ignored() -> Iterator[bool]:
    """Ignore SIGINT in this process while a child owns the terminal.

    Yields whether the handler was replaced; it can only be changed from the
    main thread.
    """
    if threading.current_thread() is not threading.main_thread():
        yield False
        return
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield True
    finally:
        signal.signal(signal.SIGINT, signal.SIG_DFL if previous is None else previous)


def _restore_default_interrupt() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
