#!/usr/bin/env python

"""
TaskLedger - Main Entry Point

Regenerates the weekly reports of one owner, rebuilds today's activity row
and prints a rendered summary (streaks, continuity, week by week).

Usage:
    python main.py --owner <owner_id> [--days 30] [--export report.xlsx]
"""

import argparse
import asyncio
import logging
import sys

from taskledger.infra.config import get_settings
from taskledger.infra.db import DatabaseEngine, init_db
from taskledger.services import ExportService, HistoryService, ReportService, WeeklyReportService


def positive_int(value):
    """argparse type for a day count of at least one"""
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if days < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {days}")
    return days


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Productivity summary for one owner")
    parser.add_argument("--owner", required=True, help="Owner (user) id")
    parser.add_argument("--days", type=positive_int, default=None, help="History window in days")
    parser.add_argument("--export", default=None, help="Also write an .xlsx export to this path")
    return parser.parse_args(argv)


async def run(args) -> int:
    settings = get_settings()
    prefs = settings.preferences

    await init_db(settings.get_db_url())
    try:
        reports = await WeeklyReportService().get_reports(args.owner)
        history = await HistoryService().get_history(args.owner, args.days or prefs.history_days)

        report_service = ReportService(behind_schedule_threshold=prefs.behind_schedule_threshold)
        print(report_service.render_weekly_summary(args.owner, reports, history))

        if args.export:
            path = ExportService().export(args.export, reports, history)
            print(f"Export written to: {path}")
    finally:
        await DatabaseEngine.dispose_instance()
    return 0


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
