"""CLI entrypoint for playsort."""

from __future__ import annotations

import argparse
import json
import signal
from pathlib import Path
from typing import Any

from playsort.browser import is_playlist_url, open_playlist_page, playwright_available
from playsort.config import SortConfig, config_from_env
from playsort.constants import DIRECTIONS, KEY_KINDS, RESULT_CANCELLED
from playsort.controller import SortController
from playsort.host import PlaywrightHost
from playsort.models import SortOutcome
from playsort.status import StatusSink
from playsort.storage import (
    RunContext,
    append_log,
    create_run_context,
    status_payload,
    tail_lines,
    write_json,
    write_status,
)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "sort":
        sort_command(args)
        return
    if args.command == "status":
        print(json.dumps(status_payload(), indent=2, ensure_ascii=False))
        return
    if args.command == "logs":
        logs_command(args.tail)
        return

    parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playsort",
        description="Sort a video playlist page by replaying its drag-and-drop reorder gesture.",
    )
    subparsers = parser.add_subparsers(dest="command")

    sort_parser = subparsers.add_parser("sort", help='Sort a playlist: playsort sort "<url>"')
    sort_parser.add_argument("url", type=str)
    sort_parser.add_argument("--key", choices=KEY_KINDS, default=None, help="Sort by duration (default) or channel.")
    sort_parser.add_argument("--direction", choices=DIRECTIONS, default=None, help="asc (default) or desc.")
    sort_parser.add_argument(
        "--only-loaded",
        action="store_true",
        help="Sort only the videos already rendered instead of loading the whole playlist first.",
    )
    sort_parser.add_argument("--scroll-delay-ms", type=int, default=None)
    sort_parser.add_argument("--post-move-delay-ms", type=int, default=None)
    sort_parser.add_argument(
        "--settle-ms-per-100",
        type=int,
        default=None,
        help="Extra settle time after each move per hundred videos in the list.",
    )
    sort_parser.add_argument(
        "--repeat-interval",
        type=float,
        default=None,
        help="Re-run the sort every N seconds until interrupted (e.g. 3600 for hourly).",
    )
    browser_group = sort_parser.add_mutually_exclusive_group()
    browser_group.add_argument("--cdp-port", type=int, default=None, help="Attach to a browser on this DevTools port.")
    browser_group.add_argument("--cdp-url", type=str, default=None, help="Attach to a browser at this DevTools URL.")
    browser_group.add_argument(
        "--user-data-dir",
        type=str,
        default=None,
        help="Launch Chromium with this persistent profile directory.",
    )
    sort_parser.add_argument("--headless", action="store_true")

    subparsers.add_parser("status", help="Show latest sort status")

    logs_parser = subparsers.add_parser("logs", help="Tail the log of the latest sort")
    logs_parser.add_argument("--tail", type=int, default=200)
    return parser


def build_config(args: argparse.Namespace) -> SortConfig:
    try:
        return config_from_env(
            direction=args.direction,
            key_kind=args.key,
            auto_load=False if args.only_loaded else None,
            scroll_delay_ms=args.scroll_delay_ms,
            post_move_delay_ms=args.post_move_delay_ms,
            settle_ms_per_100_items=args.settle_ms_per_100,
            repeat_interval_s=args.repeat_interval,
        )
    except (TypeError, ValueError) as exc:
        raise SystemExit(f"Invalid sort options: {exc}") from exc


def sort_command(args: argparse.Namespace) -> None:
    if not is_playlist_url(args.url):
        raise SystemExit(f"Not a playlist URL (expected '...playlist?list=...'): {args.url}")
    if not playwright_available():
        raise SystemExit("Playwright is not installed. Run: pip install playwright && playwright install chromium")
    config = build_config(args)

    ctx = create_run_context()
    append_log(ctx.sort_log, f"run_id={ctx.run_id}")
    append_log(ctx.sort_log, f"url={args.url}")
    append_log(ctx.sort_log, f"config={json.dumps(config.to_dict(), ensure_ascii=False)}")
    sink = StatusSink(ctx, url=args.url, echo=lambda message: print(message, flush=True))

    try:
        with open_playlist_page(
            args.url,
            cdp_url=args.cdp_url,
            cdp_port=args.cdp_port,
            user_data_dir=args.user_data_dir,
            headless=args.headless,
        ) as page:
            host = PlaywrightHost(page)
            if not host.is_playlist_page():
                raise SystemExit("Browser did not stay on the playlist page (login or consent wall?)")
            controller = SortController(host, config, sink=sink)
            outcomes = run_with_interrupt(controller)
    except BaseException as exc:
        _record_failure(ctx, args.url, config, sink, exc)
        raise

    last = outcomes[-1]
    report = _report_payload(ctx.run_id, args.url, config, outcomes)
    write_json(ctx.report_path, report)
    write_status(
        run_id=ctx.run_id,
        run_dir=ctx.run_dir,
        url=args.url,
        state=last.result,
        progress=sink.current,
        result=last.result,
        moves=sum(item.moves for item in outcomes),
    )
    print(json.dumps(report, indent=2, ensure_ascii=False))


def run_with_interrupt(controller: SortController) -> list[SortOutcome]:
    """Run once (or repeatedly), mapping Ctrl-C to a cooperative cancel."""

    def _on_sigint(_signum: int, _frame: Any) -> None:
        controller.request_cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        return run_repeated(controller)
    finally:
        signal.signal(signal.SIGINT, previous)


def run_repeated(controller: SortController) -> list[SortOutcome]:
    outcomes: list[SortOutcome] = []
    interval = controller.config.repeat_interval_s
    while True:
        outcome = controller.run()
        outcomes.append(outcome)
        if outcome.result == RESULT_CANCELLED or interval <= 0:
            return outcomes
        controller.sink.post(f"Next sort in {int(interval)}s", state="idle")
        if controller.wait_for_cancel(interval):
            controller.sink.post("Sort cancelled.", state="cancelled")
            return outcomes


def logs_command(tail_count: int) -> None:
    payload = status_payload()
    if payload.get("status") == "no-runs":
        raise SystemExit("No runs available yet.")
    run_dir = Path(payload["run_dir"])
    print("\n".join(tail_lines(run_dir / "sort.log", tail_count)))


def _report_payload(
    run_id: str,
    url: str,
    config: SortConfig,
    outcomes: list[SortOutcome],
) -> dict[str, Any]:
    return {
        "run_id": run_id,
        "url": url,
        "config": config.to_dict(),
        "result": outcomes[-1].result,
        "runs": [outcome.to_dict() for outcome in outcomes],
    }


def _record_failure(
    ctx: RunContext,
    url: str,
    config: SortConfig,
    sink: StatusSink,
    exc: BaseException,
) -> None:
    message = str(exc) or exc.__class__.__name__
    append_log(ctx.sort_log, f"failed: {message}")
    write_json(
        ctx.report_path,
        {
            "run_id": ctx.run_id,
            "url": url,
            "config": config.to_dict(),
            "result": "failed",
            "error": message,
        },
    )
    write_status(
        run_id=ctx.run_id,
        run_dir=ctx.run_dir,
        url=url,
        state="failed",
        progress=sink.current or message,
        result="failed",
    )


if __name__ == "__main__":
    main()
