"""Data models shared by the suggestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

UserDecision = Literal["execute", "retry", "skip", "exit"]
InteractionState = Literal[
    "awaiting_suggestion",
    "validating",
    "awaiting_decision",
    "executing",
    "retrying",
    "skipped",
    "exiting",
]
Convention = Literal["markers", "json"]

VALID_CONVENTIONS: set[Convention] = {"markers", "json"}

DECISION_STATES: dict[UserDecision, InteractionState] = {
    "execute": "executing",
    "retry": "retrying",
    "skip": "skipped",
    "exit": "exiting",
}


@dataclass(slots=True)
class Suggestion:
    """Normalized script suggestion recovered from a model reply."""

    script: str
    explanation: str
    executables: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DecisionPolicy:
    """Key bindings offered to the user for one reply convention."""

    keys: dict[str, UserDecision]
    default: UserDecision
    labels: tuple[tuple[str, str], ...]

    def decide(self, key: str) -> UserDecision:
        return self.keys.get(key.lower(), self.default)

    @property
    def supports_retry(self) -> bool:
        return "retry" in self.keys.values()


JSON_DECISION_POLICY = DecisionPolicy(
    keys={"e": "execute", "s": "skip", "q": "skip"},
    default="skip",
    labels=(("E", "xecute"), ("S", "kip")),
)

MARKERS_DECISION_POLICY = DecisionPolicy(
    keys={"e": "execute", "r": "retry", "s": "exit", "q": "exit"},
    default="exit",
    labels=(("E", "xecute"), ("R", "etry"), ("Q", "uit")),
)

DECISION_POLICIES: dict[Convention, DecisionPolicy] = {
    "json": JSON_DECISION_POLICY,
    "markers": MARKERS_DECISION_POLICY,
}


@dataclass(slots=True)
class CycleOutcome:
    """Result of one prompt-to-execution cycle."""

    state: InteractionState
    decision: UserDecision | None = None
    suggestion: Suggestion | None = None
    prompt: str = ""
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None
