"""JSON renderer for scripting and export.

Collects one serialized report per domain and writes a single JSON document
to stdout when the summary is rendered.
"""

import json
import sys
from typing import Any

from ..report import DomainReport
from .base import BaseRenderer


class JSONRenderer(BaseRenderer):
    """Renders domain reports as one JSON document."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.results: dict[str, dict[str, Any]] = {}

    def render(self, report: DomainReport) -> None:
        """
        Collect a report for JSON export.

        Args:
            report: Report to collect
        """
        self.collect_errors_warnings(report)
        self.results[report.domain] = report.to_dict()

    def render_summary(self) -> None:
        """Output JSON to stdout."""
        output = {
            "results": self.results,
            "summary": {
                "total_errors": len(self.all_errors),
                "total_warnings": len(self.all_warnings),
                "errors": [{"domain": d, "message": msg} for d, msg in self.all_errors],
                "warnings": [{"domain": d, "message": msg} for d, msg in self.all_warnings],
            },
        }

        json.dump(output, sys.stdout, indent=2, default=str)
        print()  # Newline at end
