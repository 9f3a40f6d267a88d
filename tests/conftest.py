from __future__ import annotations

import io

import pytest
from rich.console import Console

from shellassist.presentation import FormatContext, Presenter


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def presenter(output: io.StringIO) -> Presenter:
    console = Console(file=output, force_terminal=False, no_color=True, width=120)
    return Presenter(FormatContext.create(color=False, console=console))
