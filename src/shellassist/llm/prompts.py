"""System instruction templates for each reply convention."""

from __future__ import annotations

from string import Template

from shellassist.agent.models import Convention
from shellassist.errors import ConfigError
from shellassist.llm.parser import (
    EXECUTABLES_END,
    EXECUTABLES_START,
    EXPLANATION_END,
    EXPLANATION_START,
    SCRIPT_END,
    SCRIPT_START,
)

JSON_PROMPT_TEMPLATE = Template(
    """You are a professional script developer.
    I will ask you to create a $shell script for the operating system $os that one can execute in a terminal.
    You must reply using the following json format:
    {
        "command": "the $shell script content as unique json escaped line. It should be able to be directly run in a terminal. Do not include any other text.",
        "executables": ["list of executables that are used in the script as json array of strings"],
        "explain": "description of the $shell script as json escaped line. You must describe succinctly, use as few words as possible, do not be verbose. If there are multiple steps, please display them as bullet points."
    }"""
)

MARKERS_PROMPT_TEMPLATE = Template(
    f"""You are a professional script developer.
    I will ask you to create a $shell script for the operating system $os that one can execute in a terminal.
    You must reply using exactly the following sections, in this order:
    {SCRIPT_START}
    the $shell script content. It should be able to be directly run in a terminal. Do not include any other text.
    {SCRIPT_END}
    {EXPLANATION_START}
    description of the $shell script. Describe succinctly, use as few words as possible. If there are multiple steps, display them as bullet points.
    {EXPLANATION_END}
    {EXECUTABLES_START}
    comma-separated list of the executables used in the script
    {EXECUTABLES_END}"""
)

PROMPT_TEMPLATES: dict[Convention, Template] = {
    "json": JSON_PROMPT_TEMPLATE,
    "markers": MARKERS_PROMPT_TEMPLATE,
}


def compose_system_prompt(convention: Convention, os_name: str, shell_name: str) -> str:
    """Fill the system instruction for ``convention``.

    Raises :class:`ConfigError` instead of aborting when the template cannot
    be filled.
    """
    template = PROMPT_TEMPLATES.get(convention)
    if template is None:
        raise ConfigError(f"No prompt template for reply convention: {convention}")
    if not os_name.strip():
        raise ConfigError("unable to determine OS")
    if not shell_name.strip():
        raise ConfigError("unable to determine shell")

    try:
        rendered = template.substitute(os=os_name.strip(), shell=shell_name.strip())
    except (KeyError, ValueError) as exc:
        raise ConfigError(f"prompt template could not be composed: {exc}") from exc
    return remove_initial_spaces(rendered)


def remove_initial_spaces(text: str) -> str:
    return "\n".join(line.lstrip(" \t") for line in text.split("\n"))
