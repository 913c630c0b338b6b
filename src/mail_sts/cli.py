"""Command-line interface for mail-sts.

Looks up MTA-STS and TLSRPT records for one or more domains, fetches and
validates their policies and checks MX hosts against them.
"""

import importlib.metadata
import logging
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape

from .client import StsClient
from .config import StsConfig, load_config
from .constants import RCODE_NXDOMAIN
from .exceptions import DnsError, StsError
from .report import build_report
from .renderers import CLIRenderer, JSONRenderer
from .utils.logger import VerbosityLevel, setup_logger

if TYPE_CHECKING:
    from .renderers.base import BaseRenderer

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="mail-sts",
    help="MTA-STS (RFC 8461) and TLSRPT (RFC 8460) policy lookup tool",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


# ============================================================================
# Validation Functions
# ============================================================================


def validate_domain(domain: str) -> str:
    """
    Validate domain name format.

    Args:
        domain: Domain to validate

    Returns:
        Validated domain, lowercased and without a trailing dot

    Raises:
        typer.BadParameter: If domain format is invalid
    """
    # Remove protocol and trailing slash if present
    domain = domain.replace("http://", "").replace("https://", "").rstrip("/")
    domain = domain.lower().removesuffix(".")

    domain_pattern = re.compile(
        r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$"
    )

    if not domain_pattern.match(domain):
        raise typer.BadParameter(f"Invalid domain format: {domain}. Expected format: example.com")

    return domain


def validate_domains(domains: list[str]) -> list[str]:
    """Validate every domain of a multi-value argument."""
    return [validate_domain(domain) for domain in domains]


def validate_verbosity(value: str) -> str:
    """
    Validate verbosity level.

    Args:
        value: Verbosity level string

    Returns:
        Validated verbosity level

    Raises:
        typer.BadParameter: If verbosity is invalid
    """
    valid_levels = [level.value for level in VerbosityLevel]
    if value.lower() not in valid_levels:
        raise typer.BadParameter(
            f"Invalid verbosity: {value}. Must be one of: {', '.join(valid_levels)}"
        )
    return value.lower()


# ============================================================================
# Helper Functions
# ============================================================================


def _load_config(config_file: Path | None) -> StsConfig:
    """
    Load configuration, exiting on an unreadable explicit config file.

    Args:
        config_file: Explicit config file given on the command line

    Returns:
        Loaded configuration
    """
    if config_file is None:
        return load_config()

    try:
        return load_config(extra_paths=[config_file], strict=True)
    except (RuntimeError, ValueError) as e:
        console.print(f"[red]Error loading config: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _create_renderer(output_format: str, verbosity: VerbosityLevel) -> "BaseRenderer":
    if output_format == "cli":
        return CLIRenderer(verbosity=verbosity)
    if output_format == "json":
        return JSONRenderer(verbosity=verbosity)

    console.print(f"[red]Error: Unknown output format: {output_format}[/red]")
    console.print("Available formats: cli, json")
    raise typer.Exit(1)


# ============================================================================
# CLI Commands
# ============================================================================


@app.command()
def lookup(
    domains: Annotated[
        list[str],
        typer.Argument(
            help="Domains to look up (e.g., example.com)",
            callback=validate_domains,
        ),
    ],
    mx: Annotated[
        list[str] | None,
        typer.Option(
            "--mx",
            "-m",
            help="MX host to check against the policy (repeatable)",
        ),
    ] = None,
    verbosity: Annotated[
        str,
        typer.Option(
            "--verbosity",
            "-v",
            help="Output verbosity: quiet, normal, verbose, debug",
            callback=validate_verbosity,
        ),
    ] = "normal",
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: cli, json",
        ),
    ] = "cli",
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
):
    """
    Look up the MTA-STS and TLSRPT state of one or more domains.

    Queries the _mta-sts and _smtp._tls TXT records, fetches the policy
    from https://mta-sts.<domain>/.well-known/mta-sts.txt and validates it.

    Examples:
        mail-sts lookup example.com
        mail-sts lookup example.com --mx mx1.example.com --mx mx2.example.com
        mail-sts lookup example.com example.org --format json
    """
    verbosity_level = VerbosityLevel(verbosity)
    setup_logger("mail_sts", verbosity_level)

    renderer = _create_renderer(output_format, verbosity_level)
    client = StsClient(config=_load_config(config_file))

    for domain in domains:
        logger.debug(f"Looking up {domain}")
        report = build_report(client.domain(domain), mx_hosts=mx or [])
        renderer.render(report)

    renderer.render_summary()

    # Exit code based on errors
    if renderer.all_errors:
        raise typer.Exit(1)


@app.command()
def match(
    domain: Annotated[
        str,
        typer.Argument(help="Policy domain (e.g., example.com)", callback=validate_domain),
    ],
    hosts: Annotated[
        list[str],
        typer.Argument(help="MX hostnames to check"),
    ],
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
):
    """
    Check whether MX hosts are authorized by a domain's MTA-STS policy.

    Exits with status 1 when the policy cannot be resolved or any host is
    not covered by it.

    Example:
        mail-sts match example.com mx1.example.com mx2.example.com
    """
    setup_logger("mail_sts", VerbosityLevel.NORMAL)
    client = StsClient(config=_load_config(config_file))

    try:
        policy = client.domain(domain).policy()
    except DnsError as e:
        if e.rcode != RCODE_NXDOMAIN:
            console.print(f"[red]✗ {escape(str(e))}[/red]")
            raise typer.Exit(1)
        policy = None
    except StsError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if policy is None:
        console.print(f"[yellow]No MTA-STS policy published for {domain}[/yellow]")
        raise typer.Exit(1)

    console.print(f"[bold blue]{domain}[/bold blue] (mode: {policy.mode.value})")
    unmatched = 0
    for host in hosts:
        if policy.match_mx(host):
            console.print(f"  [green]✓[/green] {escape(host)}")
        else:
            unmatched += 1
            console.print(f"  [red]✗[/red] {escape(host)}")

    if unmatched:
        raise typer.Exit(1)


@app.command()
def create_config(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path",
        ),
    ] = Path(".mail-sts.toml"),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing file",
        ),
    ] = False,
):
    """
    Create a default configuration file.

    Example:
        mail-sts create-config
        mail-sts create-config --output ~/.config/mail-sts/config.toml
    """
    if output.exists() and not force:
        console.print(f"[yellow]File already exists: {output}[/yellow]")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    try:
        StsConfig().to_toml_file(output)
        console.print(f"[green]✓ Created configuration file: {output}[/green]")
    except OSError as e:
        console.print(f"[red]✗ Failed to create config: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    try:
        pkg_version = importlib.metadata.version("mail-sts")
        console.print(f"mail-sts version {pkg_version}")
    except importlib.metadata.PackageNotFoundError:
        console.print("mail-sts (version unknown)")


# ============================================================================
# Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
