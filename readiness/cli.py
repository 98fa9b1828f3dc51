"""``readiness`` command line.

    readiness validate --config readiness.yml --out reports/readiness

Exit codes: 0 GREEN, 1 YELLOW, 2 RED, 3 tool failure (bad config, adapter
setup failure, report write failure, or an interrupted run).
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from readiness import __version__
from readiness.common.cancellation import CancellationToken
from readiness.common.logging_config import configure_logging
from readiness.config import build_adapter_set, build_context, load_config, resolve_build_id
from readiness.engine.errors import AdapterError, ConfigError, ReportWriteError
from readiness.engine.runner import Runner
from readiness.engine.types import Status
from readiness.reporters import sinks_for, write_reports

logger = logging.getLogger(__name__)

EXIT_GREEN = 0
EXIT_YELLOW = 1
EXIT_RED = 2
EXIT_TOOL_FAILURE = 3

EXIT_CODES = {
    Status.GREEN: EXIT_GREEN,
    Status.YELLOW: EXIT_YELLOW,
    Status.RED: EXIT_RED,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="readiness", description="Release readiness gate.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Evaluate every readiness check and write the report.")
    validate.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    validate.add_argument("--config", required=True, type=Path, help="Path to the readiness YAML config.")
    validate.add_argument("--out", required=True, type=Path, help="Directory for the generated reports.")
    validate.add_argument(
        "--format",
        default="json,md,html",
        help="Comma-separated report formats: json, md, html (default: all).",
    )
    validate.add_argument("--build-id", default=None, help="Identifier of the CI build producing this report.")
    validate.add_argument(
        "--grace-period",
        type=float,
        default=None,
        help="Seconds running checks get to finish after cancellation (default: from config).",
    )
    validate.add_argument("--max-workers", type=int, default=None, help="Concurrent checks (default: one per check).")
    return parser


def _validate(args: argparse.Namespace) -> int:
    try:
        loaded = load_config(args.config)
        sinks = sinks_for(f for f in str(args.format).split(",") if f.strip())
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_TOOL_FAILURE

    try:
        adapters = build_adapter_set(loaded.settings.adapters)
    except (AdapterError, ValueError) as exc:
        logger.error("Adapter setup failed before any check ran: %s", exc)
        return EXIT_TOOL_FAILURE

    runner_settings = loaded.settings.runner
    grace = args.grace_period if args.grace_period is not None else runner_settings.grace_period.total_seconds()
    token = CancellationToken.install_signal_handlers()
    try:
        runner = Runner(
            max_workers=args.max_workers or runner_settings.max_workers,
            grace_period_s=grace,
            cancel_token=token,
        )
        context = build_context(loaded, adapters, build_id=resolve_build_id(args.build_id, loaded))
        report = runner.execute(context)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_TOOL_FAILURE
    finally:
        token.restore_signal_handlers()

    try:
        paths = write_reports(report, args.out, sinks)
    except ReportWriteError as exc:
        logger.error("Report write failed: %s", exc)
        return EXIT_TOOL_FAILURE

    for path in paths:
        print(str(path))
    print(f"[readiness] overall_status={report.overall_status.value} blocking={','.join(report.blocking) or '-'}")

    if report.incomplete:
        token.log_exit()
        return EXIT_TOOL_FAILURE
    return EXIT_CODES[report.overall_status]


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))
    if args.command == "validate":
        return _validate(args)
    parser.error(f"unknown command {args.command!r}")
    return EXIT_TOOL_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
