"""Command-line interface.

Usage:
    python -m gemini_insights summary --source tweets.csv
    python -m gemini_insights insights --lang hindi --sample-size 50
    python -m gemini_insights --audit
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any

from gemini_insights.config import print_config_audit, resolve_config
from gemini_insights.core.exceptions import ErrorKind, InsightsError, PipelineError
from gemini_insights.core.tasks import TaskKind
from gemini_insights.executor import create_executor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gemini_insights.pipeline.adapters.base import GenerationAdapter

EXIT_INPUT_ERROR = 2
EXIT_BUDGET_EXCEEDED = 3
EXIT_SERVICE_ERROR = 4

_EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.SOURCE_NOT_FOUND: EXIT_INPUT_ERROR,
    ErrorKind.UNREADABLE_SOURCE: EXIT_INPUT_ERROR,
    ErrorKind.EMPTY_DATASET: EXIT_INPUT_ERROR,
    ErrorKind.CONFIGURATION: EXIT_INPUT_ERROR,
    ErrorKind.BUDGET_EXCEEDED: EXIT_BUDGET_EXCEEDED,
    ErrorKind.SERVICE_UNAVAILABLE: EXIT_SERVICE_ERROR,
    ErrorKind.SCHEMA_REJECTED: EXIT_SERVICE_ERROR,
    ErrorKind.EMPTY_OUTPUT: EXIT_SERVICE_ERROR,
    ErrorKind.MALFORMED_OUTPUT: EXIT_SERVICE_ERROR,
}


def exit_code_for(kind: ErrorKind) -> int:
    return _EXIT_CODES.get(kind, 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemini_insights",
        description="Extract structured insights from a CSV dataset with Gemini",
    )
    parser.add_argument(
        "task",
        nargs="?",
        choices=[k.value for k in TaskKind],
        help="Analysis to run",
    )
    parser.add_argument("--source", type=Path, help="CSV file (default: config)")
    parser.add_argument("--lang", help="Translate text fields into this language")
    parser.add_argument("--sample-size", type=int, help="Maximum records to send")
    parser.add_argument("--offset", type=int, help="Index of the first record")
    parser.add_argument("--ceiling", type=int, help="Maximum estimated input tokens")
    parser.add_argument("--model", help="Gemini model identifier")
    parser.add_argument(
        "--audit", action="store_true", help="Print configuration origins and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    pairs = {
        "sample_size": args.sample_size,
        "start_offset": args.offset,
        "token_ceiling": args.ceiling,
        "model": args.model,
    }
    return {k: v for k, v in pairs.items() if v is not None}


def main(
    argv: Sequence[str] | None = None, *, adapter: GenerationAdapter | None = None
) -> int:
    """Run the CLI and return a process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        resolved = resolve_config(_overrides(args))
        if args.audit:
            print_config_audit(resolved)
            return 0
        if args.task is None:
            parser.error("a task is required unless --audit is given")
        executor = create_executor(resolved.to_frozen(), adapter=adapter)
        result = asyncio.run(
            executor.run(args.task, args.source, target_language=args.lang)
        )
    except PipelineError as e:
        print(f"error[{e.error_kind.value}]: {e.underlying_error}", file=sys.stderr)  # noqa: T201
        return exit_code_for(e.error_kind)
    except InsightsError as e:
        print(f"error[{e.kind.value}]: {e}", file=sys.stderr)  # noqa: T201
        return exit_code_for(e.kind)

    print(json.dumps(result, indent=2, ensure_ascii=False))  # noqa: T201
    return 0
