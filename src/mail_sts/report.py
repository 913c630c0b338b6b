"""Diagnostic summary of a domain's MTA-STS and TLSRPT state.

:func:`build_report` runs every lookup of a :class:`DomainResolver` and turns
the outcomes into errors and warnings instead of exceptions, for display by
the command-line interface or serialization to JSON.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .constants import RCODE_NXDOMAIN
from .domain import DomainResolver
from .exceptions import DnsError, FetchError, PolicyError
from .policy import Policy, PolicyMode
from .records import Discovery, DiscoveryStatus

logger = logging.getLogger(__name__)


@dataclass
class MxCheck:
    """Whether one MX host is authorized by the policy (None without a policy)."""

    host: str
    matched: bool | None = None


@dataclass
class DiscoverySummary:
    """Discovery outcome flattened for display."""

    name: str
    status: str | None = None  # absent, ambiguous, found; None if the lookup failed
    record: str | None = None
    authenticated: bool | None = None
    candidates: list[str] = field(default_factory=list)


@dataclass
class DomainReport:
    """Results from resolving one domain."""

    domain: str
    sts: DiscoverySummary
    tlsrpt: DiscoverySummary
    policy_url: str
    sts_id: str | None = None
    tlsrpt_rua: list[str] = field(default_factory=list)
    policy: Policy | None = None
    mx_checks: list[MxCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict:
        """
        Serialize report to JSON-compatible dictionary.

        Returns:
            JSON-serializable dict
        """
        return {
            "domain": self.domain,
            "mta_sts": {
                "name": self.sts.name,
                "status": self.sts.status,
                "record": self.sts.record,
                "id": self.sts_id,
                "authenticated": self.sts.authenticated,
            },
            "tls_rpt": {
                "name": self.tlsrpt.name,
                "status": self.tlsrpt.status,
                "record": self.tlsrpt.record,
                "rua": self.tlsrpt_rua,
                "authenticated": self.tlsrpt.authenticated,
            },
            "policy_url": self.policy_url,
            "policy": self.policy.to_dict() if self.policy else None,
            "mx_checks": [{"host": c.host, "matched": c.matched} for c in self.mx_checks],
            "errors": self.errors,
            "warnings": self.warnings,
        }


def _summarize(name: str, discovery: Discovery) -> DiscoverySummary:
    return DiscoverySummary(
        name=name,
        status=discovery.status.value,
        record=discovery.record.raw if discovery.record else None,
        authenticated=discovery.authenticated,
        candidates=list(discovery.candidates),
    )


def _describe_unusable(label: str, discovery: Discovery, warnings: list[str]) -> None:
    """Add warnings for records that were published but could not be used."""
    if discovery.ambiguous:
        warnings.append(
            f"Multiple or conflicting {label} records found; treated as not published"
        )
    elif discovery.absent and discovery.candidates:
        warnings.append(f"Malformed {label} record ignored: {discovery.candidates[0]}")


def _check_mx_hosts(report: DomainReport, mx_hosts: Iterable[str]) -> None:
    policy = report.policy
    for host in mx_hosts:
        if policy is None:
            report.mx_checks.append(MxCheck(host=host))
            continue

        matched = policy.match_mx(host)
        report.mx_checks.append(MxCheck(host=host, matched=matched))
        if matched:
            continue
        message = f"MX host {host} is not covered by the MTA-STS policy"
        if policy.mode is PolicyMode.ENFORCE:
            report.errors.append(message)
        elif policy.mode is PolicyMode.TESTING:
            report.warnings.append(message)


def build_report(resolver: DomainResolver, mx_hosts: Iterable[str] = ()) -> DomainReport:
    """
    Resolve everything about a domain and summarize it.

    Args:
        resolver: Resolver for the domain
        mx_hosts: MX hostnames to check against the policy

    Returns:
        DomainReport with errors and warnings populated
    """
    logger.info(f"Building MTA-STS report for {resolver.domain}")
    report = DomainReport(
        domain=resolver.domain,
        sts=DiscoverySummary(name=resolver.sts_name),
        tlsrpt=DiscoverySummary(name=resolver.tlsrpt_name),
        policy_url=resolver.policy_url,
    )

    sts_ok = False
    try:
        sts = resolver.sts_discovery()
    except DnsError as e:
        if e.rcode == RCODE_NXDOMAIN:
            logger.debug(f"No MTA-STS DNS record for {resolver.domain}")
            report.sts.status = DiscoveryStatus.ABSENT.value
        else:
            report.errors.append(f"MTA-STS DNS lookup failed: {e}")
    else:
        sts_ok = True
        report.sts = _summarize(resolver.sts_name, sts)
        if sts.record is not None:
            report.sts_id = sts.record.id
        _describe_unusable("MTA-STS", sts, report.warnings)

    try:
        tlsrpt = resolver.tlsrpt_discovery()
    except DnsError as e:
        if e.rcode == RCODE_NXDOMAIN:
            logger.debug(f"No TLSRPT DNS record for {resolver.domain}")
            report.tlsrpt.status = DiscoveryStatus.ABSENT.value
        else:
            report.errors.append(f"TLSRPT DNS lookup failed: {e}")
    else:
        report.tlsrpt = _summarize(resolver.tlsrpt_name, tlsrpt)
        if tlsrpt.record is not None:
            report.tlsrpt_rua = list(tlsrpt.record.rua)
        _describe_unusable("TLSRPT", tlsrpt, report.warnings)

    if sts_ok:
        try:
            report.policy = resolver.policy()
        except FetchError as e:
            report.errors.append(f"MTA-STS policy could not be fetched: {e.reason}")
        except PolicyError as e:
            report.errors.append(f"MTA-STS policy is invalid: {e}")

    if report.policy is not None:
        if report.policy.mode is PolicyMode.NONE:
            report.warnings.append("MTA-STS policy mode is 'none' (policy is being withdrawn)")
        elif report.policy.mode is PolicyMode.TESTING:
            report.warnings.append("MTA-STS policy is in testing mode (failures are not enforced)")

    _check_mx_hosts(report, mx_hosts)
    return report
