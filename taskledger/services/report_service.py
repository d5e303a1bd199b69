"""
Report Rendering Service using Jinja2 templates.

Architecture Decision: Template Pattern
Allows users to customize the weekly summary without changing code. The
"behind schedule" classification lives here: it is a display concern and is
never stored with the reports.
"""

import datetime
from pathlib import Path
from typing import List, Optional
from jinja2 import Environment, FileSystemLoader

from taskledger.domain.models import HistoryResult, WeeklyReport
from taskledger.utils import get_resource_path, utc_now


class ReportService:
    """
    Renders weekly reports and history to text using Jinja2 templates.
    """

    def __init__(self, template_dir: Optional[Path] = None,
                 behind_schedule_threshold: float = 1.5):
        """
        Initialize the report service.

        Args:
            template_dir: Directory containing Jinja2 templates
            behind_schedule_threshold: Ratio above which a week is behind schedule
        """
        if template_dir is None:
            template_dir = get_resource_path("resources/templates")

        self.template_dir = template_dir
        self.behind_schedule_threshold = behind_schedule_threshold

        # Setup Jinja2 environment
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True
        )

        # Add custom filters
        self.env.filters['format_duration'] = self._format_duration
        self.env.filters['format_date'] = self._format_date
        self.env.filters['schedule_status'] = self.schedule_status

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """Format seconds as HH:MM:SS"""
        hours, remainder = divmod(int(seconds or 0), 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    @staticmethod
    def _format_date(value: datetime.date, fmt: str = "%Y-%m-%d") -> str:
        """Format date or datetime object"""
        return value.strftime(fmt)

    def schedule_status(self, ratio: float) -> str:
        """Classify an expected-vs-actual ratio"""
        if ratio < 1:
            return "ahead of schedule"
        if ratio > self.behind_schedule_threshold:
            return "behind schedule"
        return "on track"

    def render_weekly_summary(self, owner_id: str, reports: List[WeeklyReport],
                              history: Optional[HistoryResult] = None,
                              template_name: str = "weekly_summary.txt") -> str:
        """
        Render the weekly summary.

        Args:
            owner_id: Owner shown in the header
            reports: Weekly reports, any order (rendered most recent first)
            history: Optional history result for the continuity block
            template_name: Template file inside the template directory

        Returns:
            The rendered text
        """
        context = {
            'owner_id': owner_id,
            'reports': sorted(reports, key=lambda report: report.week_start, reverse=True),
            'continuity': history.continuity if history else None,
            'total_completed': sum(report.tasks_completed for report in reports),
            'total_pomodoros': sum(report.pomodoro_count for report in reports),
            'generated_at': utc_now(),
        }
        template = self.env.get_template(template_name)
        return template.render(**context)

    def render_template_string(self, template_string: str, **context) -> str:
        """
        Render a template from a string instead of a file.

        Args:
            template_string: The template content as a string
            **context: Variables to pass to the template

        Returns:
            The rendered content
        """
        template = self.env.from_string(template_string)
        return template.render(**context)
