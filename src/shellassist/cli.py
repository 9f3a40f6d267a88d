"""Command-line interface for shellassist."""

from __future__ import annotations

import argparse
import importlib.metadata as importlib_metadata
import logging
import sys
from collections.abc import Sequence
from typing import cast

from .agent.interaction import InteractionController, KeyReader
from .agent.models import DECISION_POLICIES, VALID_CONVENTIONS, Convention
from .agent.pipeline import SuggestionPipeline
from .config import AppConfig
from .errors import ConfigError
from .llm.client import CompletionClient
from .llm.parser import ResponseParser
from .llm.prompts import compose_system_prompt
from .presentation import FormatContext, Presenter
from .shell import ExecutableValidator, ScriptExecutor, resolve_interpreter

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class CLIArgs(argparse.Namespace):
    prompt: list[str]
    convention: Convention | None
    model: str | None


def _version() -> str:
    try:
        return importlib_metadata.version("shellassist")
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellassist",
        description="Turn a natural-language request into a shell script",
    )
    parser.add_argument(
        "--convention",
        choices=sorted(VALID_CONVENTIONS),
        help="Reply convention the model is asked to follow. Overrides SHELLASSIST_CONVENTION.",
    )
    parser.add_argument("--model", help="Chat completion model. Overrides SHELLASSIST_MODEL.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    parser.add_argument("prompt", nargs="*", help="What the script should do")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_pipeline(
    config: AppConfig,
    *,
    presenter: Presenter | None = None,
    key_reader: KeyReader | None = None,
) -> SuggestionPipeline:
    """Wire every collaborator for ``config``; raises :class:`ConfigError`."""
    config.validate()
    shell_name = cast(str, config.shell_name)
    os_name = cast(str, config.os_name)
    presenter = presenter or Presenter(FormatContext.create(color=config.color))

    interpreter = resolve_interpreter(shell_name)
    client = CompletionClient(
        api_key=config.api_key,
        system_prompt=compose_system_prompt(config.convention, os_name, shell_name),
        model=config.model,
        api_url=config.api_url,
        timeout=config.timeout,
    )
    LOGGER.debug(
        "pipeline_configured",
        extra={
            "convention": config.convention,
            "model": config.model,
            "interpreter": interpreter,
            "os": os_name,
        },
    )
    return SuggestionPipeline(
        client=client,
        parser=ResponseParser(config.convention),
        validator=ExecutableValidator(collect_all=config.report_all_missing),
        controller=InteractionController(
            policy=DECISION_POLICIES[config.convention],
            presenter=presenter,
            key_reader=key_reader,
        ),
        executor=ScriptExecutor(interpreter),
        presenter=presenter,
        max_failures=config.max_failures,
        request_deadline=config.request_deadline,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = cast(CLIArgs, parser.parse_args(argv))
    initial_prompt = " ".join(args.prompt)

    try:
        config = AppConfig.from_env()
        if args.convention:
            config.convention = args.convention
        if args.model:
            config.model = args.model
        configure_logging(config.log_level)
        pipeline = build_pipeline(config)
        return pipeline.run(initial_prompt)
    except ConfigError as exc:
        LOGGER.error("startup_failed", extra={"error": exc.message})
        Presenter(FormatContext.create()).show_error(exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
