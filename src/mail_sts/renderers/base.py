"""Base renderer for domain reports."""

from abc import ABC, abstractmethod

from ..report import DomainReport
from ..utils.logger import VerbosityLevel


class BaseRenderer(ABC):
    """
    Base class for all output renderers.

    Renderers receive one DomainReport per domain and produce a summary at
    the end.
    """

    def __init__(self, verbosity: VerbosityLevel = VerbosityLevel.NORMAL):
        """
        Initialize renderer.

        Args:
            verbosity: Output verbosity level
        """
        self.verbosity = verbosity
        self.all_errors: list[tuple[str, str]] = []  # (domain, message)
        self.all_warnings: list[tuple[str, str]] = []  # (domain, message)

    @abstractmethod
    def render(self, report: DomainReport) -> None:
        """
        Render one domain report.

        Args:
            report: Report to render
        """
        ...

    @abstractmethod
    def render_summary(self) -> None:
        """Render summary of all reports (errors, warnings, totals)."""
        ...

    def collect_errors_warnings(self, report: DomainReport) -> None:
        """
        Collect errors and warnings from a report for the summary.

        Args:
            report: Domain report
        """
        self.all_errors.extend((report.domain, error) for error in report.errors)
        self.all_warnings.extend((report.domain, warning) for warning in report.warnings)
