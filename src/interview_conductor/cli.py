"""Command-line interface for the interview conductor.

Provides an ``info`` subcommand and a ``replay`` subcommand that drives an
``AgentCoordinator`` over a scripted transcript, printing the interviewer
instructions after each cycle.  Subcommands import their dependencies lazily
so ``interview-conductor info`` works without any provider package.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    interview-conductor = "interview_conductor.cli:main"

Usage examples::

    interview-conductor info
    interview-conductor replay plan.json script.json --provider mock --responses mock.json
    interview-conductor --log-level DEBUG replay plan.json script.json --provider anthropic

Script format::

    {"cycles": [
        {"elapsed_seconds": 30, "utterances": [{"speaker": "user", "text": "..."}]},
        ...
    ]}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="interview-conductor",
        description="Live interview conductor -- agent orchestration for voice interviews.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- info ---------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version and model providers.",
    )

    # -- replay -------------------------------------------------------------
    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay a scripted transcript through the coordinator.",
        description=(
            "Load a plan and a transcript script, run one coordinator cycle per "
            "scripted step and print the interviewer instructions."
        ),
    )
    replay_parser.add_argument("plan", type=str, help="Path to the plan JSON file.")
    replay_parser.add_argument("script", type=str, help="Path to the transcript script JSON file.")
    replay_parser.add_argument(
        "--provider",
        type=str,
        default="mock",
        choices=["mock", "anthropic", "openai"],
        help="Chat model provider. (default: mock)",
    )
    replay_parser.add_argument(
        "--model",
        type=str,
        default="",
        help="Provider model name.  Empty uses the provider default.",
    )
    replay_parser.add_argument(
        "--target-seconds",
        type=float,
        default=None,
        help="Interview time budget.  Defaults to the plan's target.",
    )
    replay_parser.add_argument(
        "--responses",
        type=str,
        default=None,
        help="JSON file of queued mock responses keyed by schema name (mock provider only).",
    )
    replay_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON config file with note_taker/researcher/orchestrator/coordinator/model sections.",
    )
    replay_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print each cycle's decision as JSON instead of instructions.",
    )

    return parser


def _read_json(path: str) -> Any:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"file not found: {file_path}")
    return json.loads(file_path.read_text(encoding="utf-8"))


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from interview_conductor import __version__
    from interview_conductor.infrastructure.llm.factory import ChatModelFactory

    print(f"Interview Conductor v{__version__}")
    print()

    print("Model Providers:")
    for name, available in sorted(ChatModelFactory().available_providers().items()):
        status = "installed" if available else "missing"
        print(f"  [{status}] {name}")
    print()

    print("Agents:")
    print("  NoteTaker -- extracts key ideas, stories, claims, gaps and coverage")
    print("  Researcher -- researches topics and verifies claims")
    print("  Orchestrator -- decides the phase and the next question")
    return 0


def _cmd_replay(args: argparse.Namespace) -> int:
    """Handle the ``replay`` subcommand."""
    from interview_conductor.domain.values import TranscriptEntry
    from interview_conductor.infrastructure.config import ModelConfig, load_config_from_json
    from interview_conductor.infrastructure.llm.factory import ChatModelFactory
    from interview_conductor.infrastructure.serialization import (
        decision_to_dict,
        plan_from_dict,
        transcript_entry_from_dict,
    )
    from interview_conductor.services.coordinator import AgentCoordinator

    plan = plan_from_dict(_read_json(args.plan))
    script = _read_json(args.script)
    cycles = script["cycles"] if isinstance(script, dict) else script

    configs: dict[str, Any] = {}
    if args.config:
        configs = load_config_from_json(Path(args.config).read_text(encoding="utf-8"))
    model_config: ModelConfig = configs.get("model", ModelConfig(provider=args.provider))
    if args.provider != model_config.provider or args.model:
        model_config = ModelConfig(
            provider=args.provider,
            model=args.model or model_config.model,
            temperature=model_config.temperature,
            timeout_seconds=model_config.timeout_seconds,
        )

    extra: dict[str, Any] = {}
    if model_config.provider == "mock":
        extra["structured_responses"] = _read_json(args.responses) if args.responses else {}
    model = ChatModelFactory().from_config(model_config, **extra)

    coordinator = AgentCoordinator.from_model(
        model,
        timeout=model_config.timeout_seconds,
        note_taker_config=configs.get("note_taker"),
        researcher_config=configs.get("researcher"),
        orchestrator_config=configs.get("orchestrator"),
        coordinator_config=configs.get("coordinator"),
    )

    async def _run() -> None:
        for index, cycle in enumerate(cycles, start=1):
            utterances = [
                transcript_entry_from_dict(u) for u in cycle.get("utterances", [])
            ]
            result = await coordinator.process_live_update(
                utterances,
                plan,
                elapsed_seconds=float(cycle.get("elapsed_seconds", 0.0)),
                target_seconds=args.target_seconds,
            )
            if args.json:
                print(json.dumps(decision_to_dict(result.decision)))
                continue
            print(f"=== Cycle {index} ({len(utterances)} new) ===")
            print(result.instructions)
            print()

    asyncio.run(_run())
    print(
        f"Asked {len(coordinator.asked_question_ids)}/{plan.total_questions} questions, "
        f"{len(coordinator.research)} research items, final phase {coordinator.phase.value}",
        file=sys.stderr,
    )
    return 0


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        from interview_conductor import __version__
        print(f"interview-conductor {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handlers: dict[str, Any] = {
        "info": _cmd_info,
        "replay": _cmd_replay,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
