"""Single-keypress decision prompt."""

from __future__ import annotations

import logging
import os
import select
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TextIO

from shellassist.agent.models import DecisionPolicy, Suggestion, UserDecision
from shellassist.errors import InputError
from shellassist.presentation import Presenter

try:
    import termios
    import tty

    HAS_TERMIOS = True
except ImportError:
    HAS_TERMIOS = False

LOGGER = logging.getLogger(__name__)

KeyReader = Callable[[], str]

# Ctrl-C and Ctrl-D arrive as plain bytes while the terminal is raw.
_ABORT_KEYS = {"\x03", "\x04"}
_ESC = b"\x1b"
_ESCAPE_TIMEOUT = 0.05


@contextmanager
def raw_terminal(stream: TextIO | None = None) -> Iterator[int]:
    """Put ``stream`` in raw mode for the duration of the block.

    The previous terminal attributes are restored on every exit path. A
    failure to restore them only surfaces when nothing else is propagating.
    """
    stream = stream or sys.stdin
    if not HAS_TERMIOS:
        raise InputError("raw terminal input is not supported on this platform")
    try:
        fd = stream.fileno()
        if not os.isatty(fd):
            raise InputError("standard input is not a terminal")
        old_settings = termios.tcgetattr(fd)
        tty.setraw(fd, termios.TCSADRAIN)
    except (OSError, ValueError, termios.error) as exc:
        raise InputError(f"unable to enter raw terminal mode: {exc}") from exc

    try:
        yield fd
    except BaseException:
        try:
            _restore_terminal(fd, old_settings)
        except InputError as exc:
            LOGGER.warning("terminal_restore_failed", extra={"error": exc.message})
        raise
    _restore_terminal(fd, old_settings)


def _restore_terminal(fd: int, settings: list) -> None:
    try:
        termios.tcsetattr(fd, termios.TCSADRAIN, settings)
    except (OSError, termios.error) as exc:
        raise InputError(f"unable to restore terminal mode: {exc}") from exc


def read_single_key(stream: TextIO | None = None) -> str:
    """Block until one key is pressed and return it.

    Multi-byte characters are read whole. Escape sequences (arrow and
    function keys) are consumed and returned as a bare ESC.
    """
    with raw_terminal(stream) as fd:
        try:
            data = os.read(fd, 1)
            if data == _ESC:
                _drain_pending(fd)
            elif data:
                data += _read_continuation(fd, data[0])
        except OSError as exc:
            raise InputError(f"unable to read key: {exc}") from exc
    if not data:
        raise InputError("standard input closed")
    return data.decode("utf-8", errors="replace")


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _read_continuation(fd: int, lead: int) -> bytes:
    remaining = _utf8_length(lead) - 1
    data = b""
    while remaining > 0:
        chunk = os.read(fd, remaining)
        if not chunk:
            break
        data += chunk
        remaining -= len(chunk)
    return data


def _drain_pending(fd: int) -> None:
    while select.select([fd], [], [], _ESCAPE_TIMEOUT)[0]:
        if not os.read(fd, 32):
            break


class InteractionController:
    """Turn a validated suggestion and one keypress into a decision."""

    def __init__(
        self,
        *,
        policy: DecisionPolicy,
        presenter: Presenter,
        key_reader: KeyReader | None = None,
    ) -> None:
        self.policy = policy
        self.presenter = presenter
        self.key_reader = key_reader or read_single_key

    def decide(self, suggestion: Suggestion) -> UserDecision:
        self.presenter.show_decision_hint(self.policy)
        try:
            key = self.key_reader()
        finally:
            self.presenter.end_decision()
        decision = self.map_key(key)
        LOGGER.debug(
            "user_decision",
            extra={"decision": decision, "script_length": len(suggestion.script)},
        )
        return decision

    def map_key(self, key: str) -> UserDecision:
        if key in _ABORT_KEYS:
            return "exit"
        return self.policy.decide(key)
