#!/usr/bin/env python3
"""Playwright service: run browser action sequences over HTTP or from the command line."""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import sys
from datetime import datetime
from pathlib import Path

from actions import parse_actions
from executor import run_interaction
from report import SessionReport
from session_common import BrowserServiceError, _dump_json, _env_int, configure_logging

# ── Constants ────────────────────────────────────────────────────────────────

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = _env_int("PORT", 3000)
ARTIFACTS_DIR = Path("artifacts")


# ── Helpers ──────────────────────────────────────────────────────────────────

def load_actions_file(path: Path) -> list:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SystemExit(f"{path}: cannot read actions file ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise SystemExit(f"{path}: invalid JSON ({exc})") from exc
    if isinstance(raw, dict) and "actions" in raw:
        raw = raw["actions"]
    return parse_actions(raw)


def save_run_artifacts(artifacts_dir: Path, url: str, report: SessionReport) -> Path:
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    payload = report.to_dict()
    if report.screenshot:
        shot_path = artifacts_dir / f"screenshot_{ts}.png"
        shot_path.write_bytes(base64.b64decode(report.screenshot))
        payload["screenshot"] = shot_path.name
    meta_path = artifacts_dir / f"run_{ts}.json"
    meta_path.write_text(json.dumps({"url": url, **payload}, indent=2, default=str), encoding="utf-8")
    return meta_path


def print_summary(report: SessionReport) -> None:
    failed = [outcome for outcome in report.results if not outcome.success]
    print(f"\n{'=' * 60}")
    print(f"Final URL: {report.final_url}")
    print(f"Title:     {report.title}")
    print(f"Steps:     {len(report.results)} ({len(failed)} failed)")
    for idx, outcome in enumerate(report.results, start=1):
        mark = "ok  " if outcome.success else "FAIL"
        line = f"  [{mark}] {idx}. {outcome.action}"
        selector = outcome.fields.get("selector")
        if selector:
            line += f" {selector}"
        if outcome.error:
            line += f" -> {outcome.error}"
        print(line)
    print(f"{'=' * 60}")


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from server import app

    uvicorn.run(app, host=args.host, port=args.port, log_level="debug" if args.verbose else "info")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    try:
        actions = load_actions_file(Path(args.actions))
        report = asyncio.run(run_interaction(args.url, actions, screenshot=args.screenshot))
    except BrowserServiceError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print_summary(report)
    meta_path = save_run_artifacts(Path(args.artifacts), args.url, report)
    if args.verbose:
        print(_dump_json(report))
    print(f"\nArtifacts saved to {meta_path.parent}/")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless Chromium automation service.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default=DEFAULT_HOST)
    serve.add_argument("--port", type=int, default=DEFAULT_PORT)
    serve.set_defaults(func=cmd_serve)

    run = sub.add_parser("run", help="Run one action sequence against a URL")
    run.add_argument("url", help="Target URL")
    run.add_argument("actions", help="JSON file with an actions array (or an object with an 'actions' key)")
    run.add_argument("--screenshot", action="store_true", help="Capture the viewport after the last step")
    run.add_argument("--artifacts", default=str(ARTIFACTS_DIR), help="Directory for run reports")
    run.set_defaults(func=cmd_run)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
