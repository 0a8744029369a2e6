"""CLI entry point: ``workstory cluster`` and ``workstory patterns``."""

from __future__ import annotations

# Phase 1: singleton logging, before any transitive litellm imports
from workstory.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import asyncio  # noqa: E402
import sys  # noqa: E402
from datetime import datetime  # noqa: E402
from pathlib import Path  # noqa: E402

from pydantic import ValidationError  # noqa: E402

from workstory import __version__  # noqa: E402
from workstory.config import Settings  # noqa: E402
from workstory.constants import (  # noqa: E402
    ClusterMethod,
    StageOutcome,
    TemporalBucket,
)
from workstory.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
    set_package_level,
)
from workstory.patterns.registry import (  # noqa: E402
    PatternConfigurationError,
    build_default_registry,
)

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"workstory {__version__}")
        return

    if args.command == "cluster":
        _run_cluster(args)
    elif args.command == "patterns":
        _run_patterns(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workstory",
        description=(
            "Group cross-tool work activity into stories "
            "by shared references."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    cluster = sub.add_parser(
        "cluster",
        help="Cluster activities from a JSON file",
    )
    cluster.add_argument(
        "input",
        type=str,
        help="JSON file: an array of activities or {\"activities\": [...]}",
    )
    cluster.add_argument(
        "--method",
        "-m",
        choices=[m.value for m in ClusterMethod],
        default=None,
        help="Grouping method (default: from settings)",
    )
    cluster.add_argument(
        "--bucket",
        choices=[b.value for b in TemporalBucket],
        default=None,
        help="Temporal bucket size (default: from settings)",
    )
    cluster.add_argument(
        "--timezone",
        "--tz",
        default=None,
        help="Timezone for temporal grouping, e.g. America/New_York or UTC-5",
    )
    cluster.add_argument(
        "--start",
        type=datetime.fromisoformat,
        default=None,
        help="Ignore activities before this ISO timestamp",
    )
    cluster.add_argument(
        "--end",
        type=datetime.fromisoformat,
        default=None,
        help="Ignore activities after this ISO timestamp",
    )
    cluster.add_argument(
        "--correlate",
        action="store_true",
        help="Also run LLM correlation (needs provider API keys)",
    )
    cluster.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the JSON result here instead of stdout",
    )
    cluster.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print per-stage status to stderr",
    )

    patterns = sub.add_parser(
        "patterns",
        help="List reference patterns",
    )
    patterns.add_argument(
        "--all",
        action="store_true",
        help="Include superseded versions",
    )

    return parser


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _run_cluster(args: argparse.Namespace) -> None:
    """Execute the cluster command."""
    from workstory.export import export_json
    from workstory.ingestion.loader import load_activities
    from workstory.pipeline import StoryPipeline

    path = Path(args.input)
    if not path.exists():
        _fail(f"{path} does not exist")

    try:
        settings = Settings()
        set_package_level(settings.log_level)
        registry = build_default_registry()
        activities = load_activities(path)
    except (PatternConfigurationError, ValidationError, ValueError) as exc:
        _fail(str(exc))
        return

    agent = None
    if args.correlate:
        from workstory.correlation import (
            CorrelationAgent,
            LiteLLMInferenceClient,
        )

        agent = CorrelationAgent(LiteLLMInferenceClient(settings), settings)

    pipeline = StoryPipeline(registry, settings, correlation_agent=agent)
    try:
        output = asyncio.run(
            pipeline.run(
                activities,
                start=args.start,
                end=args.end,
                method=args.method,
                bucket=args.bucket,
                timezone=args.timezone,
            )
        )
    except ValueError as exc:
        _fail(str(exc))
        return

    if args.verbose:
        for stage in output.stages:
            status = "ok" if stage.status == StageOutcome.COMPLETED else (
                str(stage.status).upper()
            )
            detail = stage.reason or f"{stage.duration_ms:.0f}ms"
            if stage.items is not None:
                detail += f", {stage.items} items"
            print(
                f"  [{status}] {stage.stage_name} ({detail})",
                file=sys.stderr,
            )
            if stage.error:
                print(f"    Error: {stage.error}", file=sys.stderr)

    document = export_json(output)
    if args.output:
        Path(args.output).write_text(document, encoding="utf-8")
        multi = sum(1 for c in output.clusters if c.size > 1)
        print(
            f"{len(output.activities)} activities -> "
            f"{len(output.clusters)} clusters ({multi} multi-member)"
        )
        print(f"Output: {args.output}")
    else:
        print(document)

    if not output.succeeded:
        sys.exit(1)


def _run_patterns(args: argparse.Namespace) -> None:
    """Print the pattern catalog."""
    try:
        registry = build_default_registry()
    except PatternConfigurationError as exc:
        _fail(str(exc))
        return

    patterns = registry.all_patterns() if args.all else (
        registry.active_patterns()
    )
    for p in patterns:
        state = "active" if registry.is_active(p.id) else "superseded"
        print(
            f"{p.id:<28} {p.tool_type:<11} {p.confidence:<7} {state}"
        )
        print(f"    {p.description}")


if __name__ == "__main__":
    main()
