from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Sequence

from vendorscout.agents.orchestrator import VendorResearchOrchestrator, research_sweep
from vendorscout.config import settings
from vendorscout.models.events import EventType, ProgressEvent
from vendorscout.models.schemas import VendorResearchRequest


def _request_fields(args: argparse.Namespace) -> dict:
    return {
        "project_id": args.project_id,
        "location": args.location,
        "zip_code": args.zip_code,
        "specialization": args.specialization,
        "custom_context": args.context,
        "phase": args.phase,
    }


def _print_event(event: ProgressEvent, as_json: bool) -> None:
    if as_json:
        print(event.format(), end="", flush=True)
        return
    print(f"[{event.progress_percent:>3}%] {event.stage.value:<14} {event.message}", flush=True)


async def _research(args: argparse.Namespace) -> int:
    request = VendorResearchRequest(
        category_name=args.category,
        category_id=args.category_id,
        **_request_fields(args),
    )
    orchestrator = VendorResearchOrchestrator.from_settings(settings)
    exit_code = 0
    try:
        async for event in orchestrator.research(request):
            _print_event(event, args.json)
            if event.type == EventType.ERROR:
                exit_code = 1
    finally:
        await orchestrator.aclose()
    return exit_code


async def _sweep(args: argparse.Namespace) -> int:
    names = [name.strip() for name in args.categories.split(",") if name.strip()]
    requests = [
        VendorResearchRequest(category_name=name, **_request_fields(args)) for name in names
    ]
    orchestrator = VendorResearchOrchestrator.from_settings(settings)
    try:
        results = await research_sweep(orchestrator, requests, delay_seconds=args.delay)
    finally:
        await orchestrator.aclose()

    failed = 0
    for result in results:
        name = result.request.category_name
        if result.outcome is not None:
            summary = {
                "category": name,
                "inserted": result.outcome.count,
                "found": result.outcome.found,
                "duplicates_skipped": result.outcome.duplicates_skipped,
                "staging_id": result.outcome.staging_id,
            }
        else:
            failed += 1
            summary = {"category": name, "error": result.error}
        print(json.dumps(summary) if args.json else "  ".join(f"{k}={v}" for k, v in summary.items()))
    return 1 if failed else 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vendorscout",
        description="Research construction vendors for a project and store the results.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--project-id", required=True)
    common.add_argument("--location", required=True, help='e.g. "Austin, TX"')
    common.add_argument("--zip-code", default="")
    common.add_argument("--specialization", default=None)
    common.add_argument("--context", default=None, help="Additional requirements")
    common.add_argument("--phase", default=None)
    common.add_argument("--json", action="store_true", help="Print raw JSON records")

    research = subparsers.add_parser("research", parents=[common], help="Run one research invocation")
    target = research.add_mutually_exclusive_group(required=True)
    target.add_argument("--category", default=None, help="Category name, created if missing")
    target.add_argument("--category-id", default=None)

    sweep = subparsers.add_parser("sweep", parents=[common], help="Research several categories in turn")
    sweep.add_argument("--categories", required=True, help="Comma-separated category names")
    sweep.add_argument("--delay", type=float, default=settings.sweep_delay_seconds)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "sweep":
        return asyncio.run(_sweep(args))
    return asyncio.run(_research(args))


if __name__ == "__main__":
    raise SystemExit(main())
