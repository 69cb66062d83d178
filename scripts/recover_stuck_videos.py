#!/usr/bin/env python3
"""
Run one stuck-video recovery sweep without the HTTP server.

Intended for cron hosts. Prints the JSON summary to stdout and exits
non-zero when the sweep itself could not run (e.g. the record store is
unreachable); per-video failures are part of the summary.

Usage:
    python scripts/recover_stuck_videos.py [--force] [--dry-run] [--video-id ID ...]

Options:
    --force       Bypass the recovery attempt budget and cooldown
    --dry-run     Report proposed actions without writing anything
    --video-id    Recover this video instead of selecting stuck ones (repeatable)
    --env         Configuration environment (appsettings.{env}.json)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass, field

from chronos.application.dtos.recovery import (
    DryRunSummary,
    RecoveryOptions,
    RecoverySweepSummary,
)
from chronos.application.services.recovery import RecoveryService
from chronos.commons.settings import get_settings
from chronos.commons.telemetry import configure_logging, get_logger
from chronos.domain.exceptions import DomainException
from chronos.infrastructure.factory import InfrastructureFactory

logger = get_logger("chronos.scripts.recover_stuck_videos")


@dataclass
class RecoveryArgs:
    """Parsed command line arguments."""

    force: bool
    dry_run: bool
    video_ids: list[str] = field(default_factory=list)
    environment: str | None = None

    @property
    def is_manual(self) -> bool:
        return self.force or self.dry_run or bool(self.video_ids)


def parse_args(argv: list[str] | None = None) -> RecoveryArgs:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Recover videos stuck in a pipeline stage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Bypass the recovery attempt budget and cooldown",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report proposed actions without writing anything",
    )
    parser.add_argument(
        "--video-id",
        action="append",
        dest="video_ids",
        default=[],
        metavar="ID",
        help="Recover this video (repeatable)",
    )
    parser.add_argument("--env", dest="environment", help="Configuration environment")

    args = parser.parse_args(argv)
    return RecoveryArgs(
        force=args.force,
        dry_run=args.dry_run,
        video_ids=args.video_ids,
        environment=args.environment,
    )


async def run_recovery(args: RecoveryArgs) -> RecoverySweepSummary | DryRunSummary:
    """Build the infrastructure, run the sweep and close every client."""
    settings = get_settings(environment=args.environment)
    configure_logging(
        level=settings.telemetry.log_level,
        format_type=settings.telemetry.log_format,
        logger_name="chronos",
    )

    factory = InfrastructureFactory(settings)
    service = RecoveryService(
        videos=factory.get_video_repository(),
        chunks=factory.get_chunk_repository(),
        dispatcher=factory.get_event_dispatcher(),
        settings=settings.recovery,
        stages=settings.stages,
    )
    try:
        if args.is_manual:
            return await service.recover(
                RecoveryOptions(
                    force=args.force,
                    dry_run=args.dry_run,
                    video_ids=args.video_ids or None,
                )
            )
        return await service.sweep()
    finally:
        await factory.close_all()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        summary = asyncio.run(run_recovery(args))
    except DomainException as e:
        logger.error("Recovery sweep aborted", extra={"error": str(e)})
        print(f"Recovery sweep aborted: {e}", file=sys.stderr)
        return 1

    print(summary.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
