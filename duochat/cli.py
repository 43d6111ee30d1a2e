"""Command-line demo: refine one task with two models from the environment.

Usage:
    duochat "Write an introduction for a blog post about digital privacy." --debug
    python -m duochat --task-file task.txt --rounds 4 --provider gemini
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from duochat.core.errors import ConfigError, LLMError, RefinementError
from duochat.core.llm import PROVIDERS, create_language_model
from duochat.orchestrator import create_duochat

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duochat",
        description="Refine a task solution with an executor and a verifier model.",
    )
    parser.add_argument("task", nargs="?", help="Task description")
    parser.add_argument("--task-file", type=Path, help="Read the task description from a file")
    parser.add_argument("--rounds", type=int, default=3, help="Refinement rounds (default: 3)")
    parser.add_argument("--provider", choices=PROVIDERS, help="Override DUOCHAT_PROVIDER")
    parser.add_argument("--model", help="Override DUOCHAT_MODEL")
    parser.add_argument("--debug", action="store_true", help="Log every prompt and response")
    return parser


def configure_logging(debug: bool) -> None:
    """Warnings and errors everywhere; duochat traces only with --debug."""
    logging.basicConfig(level=logging.WARNING)
    if debug:
        logging.getLogger("duochat").setLevel(logging.INFO)


def read_task(args: argparse.Namespace) -> str:
    if args.task_file is not None:
        return args.task_file.read_text(encoding="utf-8")
    if args.task:
        return args.task
    raise ConfigError("Provide a task description or --task-file")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)

    try:
        task = read_task(args)
        executor = create_language_model(os.environ, provider=args.provider, model=args.model)
        verifier = create_language_model(os.environ, provider=args.provider, model=args.model)
        duochat = create_duochat(executor, verifier, refinement_rounds=args.rounds)
    except (ConfigError, LLMError) as e:
        logger.error("%s", e)
        return 1

    duochat.debug = args.debug
    try:
        result = asyncio.run(duochat.perform(task))
    except RefinementError as e:
        logger.error("%s", e)
        return 1

    print(f"Final result:\n{result}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
