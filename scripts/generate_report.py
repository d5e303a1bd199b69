"""
Script to regenerate the weekly reports of an owner and export them to Excel.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskledger.infra.config import get_settings
from taskledger.infra.db import DatabaseEngine, init_db
from taskledger.services import ExportService, HistoryService, WeeklyReportService


async def main():
    if len(sys.argv) < 2:
        print("Usage: python generate_report.py <owner_id> [output.xlsx]")
        sys.exit(1)

    owner_id = sys.argv[1]
    output_file = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(f"weekly_reports_{owner_id}.xlsx")

    settings = get_settings()
    await init_db(settings.get_db_url())
    try:
        print(f"Generating weekly reports for: {owner_id}")
        reports = await WeeklyReportService().get_reports(owner_id)
        history = await HistoryService().get_history(owner_id, settings.preferences.history_days)
        path = ExportService().export(output_file, reports, history)
    finally:
        await DatabaseEngine.dispose_instance()

    print(f"Report successfully saved to: {Path(path).absolute()}")


if __name__ == "__main__":
    asyncio.run(main())
