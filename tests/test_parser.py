from __future__ import annotations

import json

import pytest

from shellassist.errors import ConfigError, ParseError
from shellassist.llm.parser import ResponseParser, parse_json_reply, parse_markers_reply


def _markers_reply(
    script: str = "ls -la",
    explanation: str = "Lists files",
    executables: str = "ls",
) -> str:
    return (
        f"<<<SCRIPT>>>\n{script}\n<<<END SCRIPT>>>\n"
        f"<<<EXPLANATION>>>\n{explanation}\n<<<END EXPLANATION>>>\n"
        f"<<<EXECUTABLES>>>\n{executables}\n<<<END EXECUTABLES>>>"
    )


def test_markers_reply_fields_are_trimmed() -> None:
    suggestion = parse_markers_reply(_markers_reply(script="  ls -la  ", executables=" ls , grep "))

    assert suggestion.script == "ls -la"
    assert suggestion.explanation == "Lists files"
    assert suggestion.executables == ["ls", "grep"]


@pytest.mark.parametrize(
    ("before", "between", "after"),
    [
        ("Sure! Here is the script you asked for:\n\n", "\n", ""),
        ("", "\nSome commentary between sections.\n", "\nHope this helps."),
        ("```\n", "\n\n\n", "\n```\nLet me know if you need anything else."),
    ],
)
def test_markers_reply_ignores_surrounding_noise(before: str, between: str, after: str) -> None:
    raw = (
        f"{before}<<<SCRIPT>>>\nfind . -name '*.py'\n| wc -l\n<<<END SCRIPT>>>{between}"
        f"<<<EXPLANATION>>>\nCounts Python files\n<<<END EXPLANATION>>>{between}"
        f"<<<EXECUTABLES>>>find, wc<<<END EXECUTABLES>>>{after}"
    )

    suggestion = parse_markers_reply(raw)

    assert suggestion.script == "find . -name '*.py'\n| wc -l"
    assert suggestion.explanation == "Counts Python files"
    assert suggestion.executables == ["find", "wc"]


def test_markers_reply_uses_first_complete_match() -> None:
    raw = _markers_reply(script="echo first") + "\n" + _markers_reply(script="echo second")

    assert parse_markers_reply(raw).script == "echo first"


def test_markers_reply_blank_executables_segment_is_empty() -> None:
    suggestion = parse_markers_reply(_markers_reply(executables="   "))

    assert suggestion.executables == []


def test_markers_reply_keeps_empty_tokens_positionally() -> None:
    suggestion = parse_markers_reply(_markers_reply(executables="ls,,grep, "))

    assert suggestion.executables == ["ls", "", "grep", ""]


def test_markers_reply_keeps_duplicates_in_order() -> None:
    suggestion = parse_markers_reply(_markers_reply(executables="tar, gzip, tar"))

    assert suggestion.executables == ["tar", "gzip", "tar"]


@pytest.mark.parametrize(
    "missing",
    [
        ("<<<SCRIPT>>>", "<<<END SCRIPT>>>"),
        ("<<<EXPLANATION>>>", "<<<END EXPLANATION>>>"),
        ("<<<EXECUTABLES>>>", "<<<END EXECUTABLES>>>"),
    ],
)
def test_markers_reply_missing_section_fails(missing: tuple[str, str]) -> None:
    raw = _markers_reply()
    for marker in missing:
        raw = raw.replace(marker, "")

    with pytest.raises(ParseError) as exc_info:
        parse_markers_reply(raw)

    assert exc_info.value.raw == raw


def test_markers_are_case_sensitive() -> None:
    raw = _markers_reply().replace("<<<SCRIPT>>>", "<<<script>>>")

    with pytest.raises(ParseError):
        parse_markers_reply(raw)


def test_markers_out_of_order_fail() -> None:
    raw = (
        "<<<EXPLANATION>>>x<<<END EXPLANATION>>>"
        "<<<SCRIPT>>>ls<<<END SCRIPT>>>"
        "<<<EXECUTABLES>>>ls<<<END EXECUTABLES>>>"
    )

    with pytest.raises(ParseError):
        parse_markers_reply(raw)


def test_markers_empty_script_fails() -> None:
    with pytest.raises(ParseError, match="empty script"):
        parse_markers_reply(_markers_reply(script="   "))


def test_json_reply() -> None:
    raw = json.dumps(
        {"command": "ls -la", "executables": ["ls"], "explain": "Lists files"}
    )

    suggestion = parse_json_reply(raw)

    assert suggestion.script == "ls -la"
    assert suggestion.explanation == "Lists files"
    assert suggestion.executables == ["ls"]


def test_json_reply_inside_code_fence() -> None:
    raw = '```json\n{"command": "df -h", "executables": ["df"], "explain": "Disk usage"}\n```'

    assert parse_json_reply(raw).script == "df -h"


@pytest.mark.parametrize("field", ["command", "executables", "explain"])
def test_json_reply_missing_field_fails(field: str) -> None:
    payload = {"command": "ls", "executables": ["ls"], "explain": "Lists files"}
    del payload[field]

    with pytest.raises(ParseError, match=field):
        parse_json_reply(json.dumps(payload))


def test_json_reply_malformed_carries_decode_error() -> None:
    raw = "Here you go: {command: ls}"

    with pytest.raises(ParseError) as exc_info:
        parse_json_reply(raw)

    assert exc_info.value.raw == raw
    assert isinstance(exc_info.value.cause, json.JSONDecodeError)


@pytest.mark.parametrize(
    "payload",
    [
        ["ls"],
        {"command": 1, "executables": [], "explain": ""},
        {"command": "ls", "executables": "ls", "explain": ""},
        {"command": "ls", "executables": [1], "explain": ""},
        {"command": "ls", "executables": [], "explain": None},
        {"command": "  ", "executables": [], "explain": ""},
    ],
)
def test_json_reply_wrong_shape_fails(payload: object) -> None:
    with pytest.raises(ParseError):
        parse_json_reply(json.dumps(payload))


def test_response_parser_selects_convention() -> None:
    assert ResponseParser("markers").parse(_markers_reply()).script == "ls -la"

    with pytest.raises(ParseError):
        ResponseParser("json").parse(_markers_reply())


def test_response_parser_rejects_unknown_convention() -> None:
    with pytest.raises(ConfigError):
        ResponseParser("yaml")  # type: ignore[arg-type]
