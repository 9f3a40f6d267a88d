"""Error taxonomy for shellassist.

Only :class:`ConfigError` is fatal. Every other error is reported at the
pipeline boundary and the loop starts a fresh cycle.
"""

from __future__ import annotations


class ShellAssistError(Exception):
    """Base exception for shellassist errors."""

    fatal = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(ShellAssistError):
    """Raised when required configuration is missing or unusable."""

    fatal = True


class TransportError(ShellAssistError):
    """Raised when the completion request fails or returns no choices."""


class ParseError(ShellAssistError):
    """Raised when a model reply does not follow the configured convention."""

    def __init__(self, message: str, *, raw: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.raw = raw
        self.cause = cause


class EmptyPromptError(ShellAssistError):
    """Raised when the user prompt is blank."""

    def __init__(self, message: str = "input is empty") -> None:
        super().__init__(message)


class MissingExecutableError(ShellAssistError):
    """Raised when a referenced command cannot be found on the search path."""

    def __init__(self, names: list[str]) -> None:
        if len(names) == 1:
            message = f"executable not found: {names[0]}"
        else:
            message = f"executables not found: {', '.join(names)}"
        super().__init__(message)
        self.names = names

    @property
    def name(self) -> str:
        return self.names[0]


class InputError(ShellAssistError):
    """Raised when the terminal cannot be switched to raw mode or read."""


class ExecutionError(ShellAssistError):
    """Raised when the script interpreter fails to spawn or exits non-zero."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.cause = cause
