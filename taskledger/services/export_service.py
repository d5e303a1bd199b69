"""
Excel Export Service using XlsxWriter.
Writes weekly reports and the per-day history into an .xlsx workbook.
"""

import datetime
from pathlib import Path
from typing import List, Optional, Union
import xlsxwriter

from taskledger.domain.models import HistoryResult, WeeklyReport


class ExportService:
    """
    Generates .xlsx exports with:
    - Tab 1: Weekly Reports (one row per week, most recent first)
    - Tab 2: History (one row per day) when a history result is given
    """

    REPORT_HEADERS = ["Week start", "Tasks completed", "Time spent", "Expected vs actual", "Pomodoros"]
    HISTORY_HEADERS = ["Date", "Tasks created", "Tasks completed", "Time spent", "Active"]

    def export(self, output_path: Union[str, Path], reports: List[WeeklyReport],
               history: Optional[HistoryResult] = None) -> str:
        """
        Write the workbook and return its path as string.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook = xlsxwriter.Workbook(str(output_path))

        fmt_header = workbook.add_format({
            'bold': True, 'bg_color': '#4472C4', 'font_color': 'white', 'border': 1
        })
        fmt_date = workbook.add_format({'num_format': 'yyyy-mm-dd', 'border': 1})
        # Durations are written as fractions of a day so Excel can format them
        fmt_duration = workbook.add_format({'num_format': '[h]:mm:ss', 'border': 1})
        fmt_ratio = workbook.add_format({'num_format': '0.00', 'border': 1})
        fmt_number = workbook.add_format({'border': 1})

        ws_reports = workbook.add_worksheet("Weekly Reports")
        ws_reports.write_row(0, 0, self.REPORT_HEADERS, fmt_header)
        ordered = sorted(reports, key=lambda report: report.week_start, reverse=True)
        for row, report in enumerate(ordered, start=1):
            ws_reports.write_datetime(row, 0, self._as_datetime(report.week_start), fmt_date)
            ws_reports.write_number(row, 1, report.tasks_completed, fmt_number)
            ws_reports.write_number(row, 2, report.total_time_spent / 86400.0, fmt_duration)
            ws_reports.write_number(row, 3, report.expected_vs_actual, fmt_ratio)
            ws_reports.write_number(row, 4, report.pomodoro_count, fmt_number)
        ws_reports.set_column(0, len(self.REPORT_HEADERS) - 1, 18)

        if history is not None:
            ws_history = workbook.add_worksheet("History")
            ws_history.write_row(0, 0, self.HISTORY_HEADERS, fmt_header)
            activity = history.continuity.activity_by_date
            for row, bucket in enumerate(history.history, start=1):
                ws_history.write_string(row, 0, bucket.date, fmt_number)
                ws_history.write_number(row, 1, len(bucket.created), fmt_number)
                ws_history.write_number(row, 2, len(bucket.completed), fmt_number)
                ws_history.write_number(row, 3, bucket.time_spent / 86400.0, fmt_duration)
                ws_history.write_boolean(row, 4, bool(activity.get(bucket.date, False)), fmt_number)
            ws_history.set_column(0, len(self.HISTORY_HEADERS) - 1, 16)

        workbook.close()
        return str(output_path)

    @staticmethod
    def _as_datetime(day: datetime.date) -> datetime.datetime:
        return datetime.datetime.combine(day, datetime.time.min)
