"""Recover a structured suggestion from free-text model replies."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable

from shellassist.agent.models import Convention, Suggestion
from shellassist.errors import ConfigError, ParseError

LOGGER = logging.getLogger(__name__)

SCRIPT_START = "<<<SCRIPT>>>"
SCRIPT_END = "<<<END SCRIPT>>>"
EXPLANATION_START = "<<<EXPLANATION>>>"
EXPLANATION_END = "<<<END EXPLANATION>>>"
EXECUTABLES_START = "<<<EXECUTABLES>>>"
EXECUTABLES_END = "<<<END EXECUTABLES>>>"

_MARKERS_PATTERN = re.compile(
    re.escape(SCRIPT_START)
    + r"(.*?)"
    + re.escape(SCRIPT_END)
    + r".*?"
    + re.escape(EXPLANATION_START)
    + r"(.*?)"
    + re.escape(EXPLANATION_END)
    + r".*?"
    + re.escape(EXECUTABLES_START)
    + r"(.*?)"
    + re.escape(EXECUTABLES_END),
    re.DOTALL,
)
_MARKERS_CAPTURES = 3

_CODE_FENCE_PATTERN = re.compile(r"\A```[a-zA-Z]*\s*\n(.*?)\n?```\Z", re.DOTALL)

JSON_SCRIPT_FIELD = "command"
JSON_EXECUTABLES_FIELD = "executables"
JSON_EXPLANATION_FIELD = "explain"


def parse_markers_reply(raw: str) -> Suggestion:
    """Parse a reply made of SCRIPT, EXPLANATION and EXECUTABLES sections.

    Text before, after and between the sections is ignored. The first
    complete match wins.
    """
    match = _MARKERS_PATTERN.search(raw)
    if match is None or len(match.groups()) < _MARKERS_CAPTURES:
        raise ParseError("reply does not contain the expected script sections", raw=raw)

    script, explanation, executables = (group.strip() for group in match.groups())
    if not script:
        raise ParseError("reply contains an empty script section", raw=raw)

    return Suggestion(
        script=script,
        explanation=explanation,
        executables=split_executables(executables),
    )


def split_executables(segment: str) -> list[str]:
    """Split a comma-separated executables segment, keeping token positions."""
    if not segment.strip():
        return []
    return [token.strip() for token in segment.split(",")]


def parse_json_reply(raw: str) -> Suggestion:
    """Parse a reply that is one JSON object with command, executables and explain."""
    text = _strip_code_fence(raw.strip())
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"json: {exc}", raw=raw, cause=exc) from exc

    if not isinstance(parsed, dict):
        raise ParseError("json: expected a top-level object", raw=raw)

    missing = [
        key
        for key in (JSON_SCRIPT_FIELD, JSON_EXECUTABLES_FIELD, JSON_EXPLANATION_FIELD)
        if key not in parsed
    ]
    if missing:
        raise ParseError(f"json: missing field(s): {', '.join(missing)}", raw=raw)

    script = parsed[JSON_SCRIPT_FIELD]
    explanation = parsed[JSON_EXPLANATION_FIELD]
    executables = parsed[JSON_EXECUTABLES_FIELD]
    if not isinstance(script, str):
        raise ParseError(f"json: {JSON_SCRIPT_FIELD} must be a string", raw=raw)
    if not isinstance(explanation, str):
        raise ParseError(f"json: {JSON_EXPLANATION_FIELD} must be a string", raw=raw)
    if not isinstance(executables, list) or not all(
        isinstance(name, str) for name in executables
    ):
        raise ParseError(
            f"json: {JSON_EXECUTABLES_FIELD} must be an array of strings", raw=raw
        )
    if not script.strip():
        raise ParseError(f"json: {JSON_SCRIPT_FIELD} is empty", raw=raw)

    return Suggestion(script=script, explanation=explanation, executables=list(executables))


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_PATTERN.match(text)
    if match is None:
        return text
    return match.group(1).strip()


_PARSERS: dict[Convention, Callable[[str], Suggestion]] = {
    "markers": parse_markers_reply,
    "json": parse_json_reply,
}


class ResponseParser:
    """Parse model replies with the reply convention chosen at startup."""

    def __init__(self, convention: Convention) -> None:
        parser = _PARSERS.get(convention)
        if parser is None:
            msg = f"Unsupported reply convention: {convention}"
            raise ConfigError(msg)
        self.convention = convention
        self._parse = parser

    def parse(self, raw: str) -> Suggestion:
        try:
            suggestion = self._parse(raw)
        except ParseError as exc:
            LOGGER.warning(
                "reply_parse_failed",
                extra={
                    "convention": self.convention,
                    "reason": exc.message,
                    "raw_length": len(raw),
                },
            )
            raise
        LOGGER.debug(
            "reply_parsed",
            extra={
                "convention": self.convention,
                "script_length": len(suggestion.script),
                "executables": len(suggestion.executables),
            },
        )
        return suggestion
