"""Executable validation and script execution."""

from .executor import ScriptExecutor, resolve_interpreter
from .validator import ExecutableValidator

__all__ = [
    "ExecutableValidator",
    "ScriptExecutor",
    "resolve_interpreter",
]
