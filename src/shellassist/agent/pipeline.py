"""Prompt, suggest, confirm and execute cycle."""

from __future__ import annotations

import logging
from collections.abc import Callable

from shellassist.agent.interaction import InteractionController
from shellassist.agent.models import DECISION_STATES, CycleOutcome, InteractionState
from shellassist.errors import ConfigError, EmptyPromptError, ShellAssistError
from shellassist.llm.client import CompletionClient, Deadline
from shellassist.llm.parser import ResponseParser
from shellassist.presentation import Presenter
from shellassist.shell import ExecutableValidator, ScriptExecutor

LOGGER = logging.getLogger(__name__)

PromptReader = Callable[[], str]

EXIT_OK = 0
EXIT_TOO_MANY_FAILURES = 1
EXIT_INTERRUPTED = 130


class SuggestionPipeline:
    """Runs one suggestion cycle at a time until the user exits."""

    def __init__(
        self,
        *,
        client: CompletionClient,
        parser: ResponseParser,
        validator: ExecutableValidator,
        controller: InteractionController,
        executor: ScriptExecutor,
        presenter: Presenter,
        prompt_reader: PromptReader | None = None,
        request_deadline: float | None = None,
        max_failures: int = 0,
    ) -> None:
        self.client = client
        self.parser = parser
        self.validator = validator
        self.controller = controller
        self.executor = executor
        self.presenter = presenter
        self.prompt_reader = prompt_reader or presenter.ask_prompt
        self.request_deadline = request_deadline
        self.max_failures = max_failures

    def run(self, initial_prompt: str = "") -> int:
        """Repeat cycles until the user exits and return a process exit status.

        Recoverable errors are reported and a fresh cycle starts with an
        empty prompt. :class:`ConfigError` propagates.
        """
        prompt = initial_prompt
        failures = 0
        while True:
            try:
                outcome = self.run_guarded(prompt)
            except EOFError:
                LOGGER.info("session_input_closed")
                return EXIT_OK
            except KeyboardInterrupt:
                LOGGER.info("session_interrupted")
                return EXIT_INTERRUPTED

            if outcome.failed:
                failures += 1
                if self.max_failures and failures >= self.max_failures:
                    LOGGER.warning("failure_limit_reached", extra={"failures": failures})
                    return EXIT_TOO_MANY_FAILURES
                prompt = ""
                continue

            failures = 0
            if outcome.decision == "exit":
                return EXIT_OK
            prompt = outcome.prompt if outcome.decision == "retry" else ""

    def run_guarded(self, prompt: str) -> CycleOutcome:
        """Run one cycle, converting recoverable errors into a failed outcome."""
        try:
            return self.run_cycle(prompt)
        except ConfigError:
            raise
        except ShellAssistError as exc:
            LOGGER.warning(
                "cycle_failed",
                extra={"error_type": type(exc).__name__, "error": exc.message},
            )
            self.presenter.show_error(exc)
            return CycleOutcome(state="awaiting_suggestion", prompt=prompt, error=exc)

    def run_cycle(self, prompt: str) -> CycleOutcome:
        """Obtain, parse, validate and confirm one suggestion.

        Nothing is executed unless parsing and validation both succeed and
        the user chooses to execute.
        """
        self._transition("awaiting_suggestion")
        prompt = prompt.strip()
        if not prompt:
            prompt = self.prompt_reader().strip()
        if not prompt:
            raise EmptyPromptError()

        deadline = Deadline.after(self.request_deadline) if self.request_deadline else None
        with self.presenter.progress():
            raw_reply = self.client.complete(prompt, deadline=deadline)
        suggestion = self.parser.parse(raw_reply)
        self.presenter.show_suggestion(suggestion)

        self._transition("validating")
        self.validator.validate(suggestion.executables)

        self._transition("awaiting_decision")
        decision = self.controller.decide(suggestion)
        state = DECISION_STATES[decision]
        self._transition(state)
        if decision == "execute":
            self.executor.execute(suggestion.script)

        return CycleOutcome(state=state, decision=decision, suggestion=suggestion, prompt=prompt)

    @staticmethod
    def _transition(state: InteractionState) -> None:
        LOGGER.debug("cycle_state", extra={"state": state})
