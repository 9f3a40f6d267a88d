"""Check that every command a suggestion relies on can be invoked."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable

from shellassist.errors import MissingExecutableError

LOGGER = logging.getLogger(__name__)

Resolver = Callable[[str], str | None]


class ExecutableValidator:
    """Resolve executable names against the search path.

    Stops at the first unresolvable name unless ``collect_all`` is set, in
    which case every name is resolved and all missing ones are reported.
    """

    def __init__(self, *, collect_all: bool = False, resolver: Resolver | None = None) -> None:
        self.collect_all = collect_all
        self.resolver = resolver or shutil.which

    def validate(self, executables: Iterable[str]) -> None:
        missing: list[str] = []
        for name in executables:
            if self._resolves(name):
                continue
            missing.append(name)
            if not self.collect_all:
                break

        if missing:
            LOGGER.warning(
                "executables_missing",
                extra={"missing": missing, "collect_all": self.collect_all},
            )
            raise MissingExecutableError(missing)

    def _resolves(self, name: str) -> bool:
        if not name.strip():
            return False
        return self.resolver(name) is not None
