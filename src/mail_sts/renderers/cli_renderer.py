"""CLI renderer using Rich library."""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..policy import PolicyMode
from ..records import DiscoveryStatus
from ..report import DiscoverySummary, DomainReport
from ..utils.logger import VerbosityLevel
from .base import BaseRenderer


class CLIRenderer(BaseRenderer):
    """
    Renders domain reports to the terminal using Rich.

    Quiet mode prints one line per domain; verbose mode adds raw records,
    DNSSEC status and extension fields.
    """

    STATUS_STYLE = {
        DiscoveryStatus.FOUND.value: "green",
        DiscoveryStatus.ABSENT.value: "dim",
        DiscoveryStatus.AMBIGUOUS.value: "yellow",
    }

    MODE_STYLE = {
        PolicyMode.ENFORCE: "green",
        PolicyMode.TESTING: "yellow",
        PolicyMode.NONE: "dim",
    }

    def __init__(
        self,
        verbosity: VerbosityLevel = VerbosityLevel.NORMAL,
        color: bool = True,
        console: Console | None = None,
    ):
        """
        Initialize CLI renderer.

        Args:
            verbosity: Output verbosity level
            color: Enable colored output
            console: Console to print to (a new one when omitted)
        """
        super().__init__(verbosity)
        self.console = console or Console(color_system="auto" if color else None)

    def render(self, report: DomainReport) -> None:
        """
        Render one domain report.

        Args:
            report: Report to render
        """
        self.collect_errors_warnings(report)

        if self.verbosity == VerbosityLevel.QUIET:
            self.console.print(self._quiet_summary(report))
            return

        self.console.print(f"\n[bold blue]{escape(report.domain)}[/bold blue]")
        self.console.print()
        self._render_discovery("MTA-STS record", report.sts)
        if report.sts_id:
            self.console.print(f"  Policy id: {report.sts_id}")
        self._render_discovery("TLSRPT record", report.tlsrpt)
        if report.tlsrpt_rua:
            uris = escape(", ".join(report.tlsrpt_rua))
            self.console.print(f"  Reporting URIs: {uris}")
        self._render_policy(report)
        self._render_mx_checks(report)

        for error in report.errors:
            self.console.print(f"  [red]✗ {escape(error)}[/red]")
        for warning in report.warnings:
            self.console.print(f"  [yellow]⚠ {escape(warning)}[/yellow]")

    def _render_discovery(self, label: str, summary: DiscoverySummary) -> None:
        if summary.status is None:
            self.console.print(f"  {label}: [red]lookup failed[/red]")
            return

        style = self.STATUS_STYLE.get(summary.status, "")
        self.console.print(f"  {label}: [{style}]{summary.status}[/{style}]")

        if self.verbosity >= VerbosityLevel.VERBOSE:
            self.console.print(f"    [dim]Name: {summary.name}[/dim]")
            if summary.record:
                self.console.print(f"    [dim]Value: {escape(summary.record)}[/dim]")
            dnssec = {True: "authenticated", False: "not authenticated", None: "unknown"}
            self.console.print(f"    [dim]DNSSEC: {dnssec[summary.authenticated]}[/dim]")

    def _render_policy(self, report: DomainReport) -> None:
        policy = report.policy
        if policy is None:
            if self.verbosity >= VerbosityLevel.VERBOSE:
                self.console.print(f"  Policy: [dim]none ({report.policy_url})[/dim]")
            return

        style = self.MODE_STYLE[policy.mode]
        self.console.print(f"  Policy mode: [{style}]{policy.mode.value}[/{style}]")
        self.console.print(f"  Max age: {policy.max_age}s")
        self.console.print("  MX patterns:")
        for pattern in policy.mx_hosts:
            self.console.print(f"    • {pattern}")
        if self.verbosity >= VerbosityLevel.VERBOSE:
            self.console.print(f"    [dim]Source: {report.policy_url}[/dim]")
            for key, value in policy.extensions:
                self.console.print(f"    [dim]Extension {escape(key)}: {escape(value)}[/dim]")

    def _render_mx_checks(self, report: DomainReport) -> None:
        if not report.mx_checks:
            return

        table = Table(box=box.ROUNDED, show_header=True, header_style="bold")
        table.add_column("MX host")
        table.add_column("Authorized")
        for check in report.mx_checks:
            if check.matched is None:
                verdict = "[dim]no policy[/dim]"
            elif check.matched:
                verdict = "[green]✓ yes[/green]"
            else:
                verdict = "[red]✗ no[/red]"
            table.add_row(escape(check.host), verdict)
        self.console.print(table)

    @staticmethod
    def _quiet_summary(report: DomainReport) -> str:
        parts = [report.domain]
        if report.policy:
            parts.append(f"MTA-STS: {report.policy.mode.value}")
        else:
            parts.append(f"MTA-STS: {report.sts.status or 'error'}")
        parts.append(f"TLSRPT: {report.tlsrpt.status or 'error'}")
        if report.errors:
            parts.append(f"errors: {len(report.errors)}")
        return " | ".join(parts)

    def render_summary(self) -> None:
        """Render summary of all reports."""
        if self.verbosity == VerbosityLevel.QUIET:
            return

        self.console.print()
        self.console.print("[bold blue]═══ Summary ═══[/bold blue]")
        self.console.print()

        total_errors = len(self.all_errors)
        total_warnings = len(self.all_warnings)

        if total_errors == 0 and total_warnings == 0:
            self.console.print("[green]✓ No issues found![/green]")
        else:
            if total_errors > 0:
                self.console.print(f"[red]✗ {total_errors} error(s) found:[/red]")
                for domain, error in self.all_errors:
                    self.console.print(f"  [red]• {escape(f'[{domain}]')} {escape(error)}[/red]")
                self.console.print()

            if total_warnings > 0:
                self.console.print(f"[yellow]⚠ {total_warnings} warning(s) found:[/yellow]")
                for domain, warning in self.all_warnings:
                    line = f"{escape(f'[{domain}]')} {escape(warning)}"
                    self.console.print(f"  [yellow]• {line}[/yellow]")

        self.console.print()
