"""Terminal rendering through an explicit rich console."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from rich.console import Console
from rich.text import Text

from shellassist.agent.models import DecisionPolicy, Suggestion

ERROR_MARKER = "\N{POLICE CARS REVOLVING LIGHT} OOPS"
ASSISTANT_MARKER = "\N{ROBOT FACE}"


@dataclass(frozen=True, slots=True)
class FormatContext:
    """Console and styling switches used for one presenter."""

    console: Console
    color: bool = True

    @classmethod
    def create(cls, *, color: bool = True, console: Console | None = None) -> FormatContext:
        if console is None:
            console = Console(no_color=not color, highlight=False)
        return cls(console=console, color=color)

    def style(self, value: str) -> str:
        return value if self.color else ""


class Presenter:
    """Render suggestions, prompts and errors for the interactive loop."""

    def __init__(self, context: FormatContext) -> None:
        self.context = context

    @property
    def console(self) -> Console:
        return self.context.console

    def ask_prompt(self) -> str:
        label = Text(
            f"\n{ASSISTANT_MARKER} How may I help you? > ",
            style=self.context.style("bold white"),
        )
        return self.console.input(label).strip()

    def show_suggestion(self, suggestion: Suggestion) -> None:
        style = self.context.style
        self.console.print(
            Text(f"\n{ASSISTANT_MARKER} Here is your script:\n", style=style("bold white"))
        )
        self.console.print(Text(suggestion.script, style=style("green")))
        self.console.print(Text("--", style=style("white")))
        self.console.print(
            Text(
                f"Required commands: {', '.join(suggestion.executables)}",
                style=style("yellow"),
            )
        )
        self.console.print(Text(f"{suggestion.explanation}\n", style=style("italic white")))

    def show_decision_hint(self, policy: DecisionPolicy) -> None:
        style = self.context.style
        hint = Text()
        for index, (key, rest) in enumerate(policy.labels):
            if index:
                hint.append(", ", style=style("white"))
            key_style = "red" if policy.keys.get(key.lower()) in {"skip", "exit"} else "green"
            hint.append("[", style=style("white"))
            hint.append(key, style=style(key_style))
            hint.append(f"]{rest}", style=style("white"))
        self.console.print(hint, end="")

    def end_decision(self) -> None:
        self.console.print()
        self.console.print()

    def show_error(self, error: BaseException | str) -> None:
        message = error if isinstance(error, str) else str(error)
        first_line = message.splitlines()[0] if message else ""
        self.console.print(
            Text(f"{ERROR_MARKER}: {first_line}", style=self.context.style("bold red")),
            soft_wrap=True,
        )

    @contextmanager
    def progress(self, message: str = "Thinking...") -> Iterator[None]:
        with self.console.status(message, spinner="dots"):
            yield
