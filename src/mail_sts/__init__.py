"""MTA-STS (RFC 8461) and TLSRPT (RFC 8460) policy resolution.

Typical use::

    from mail_sts import StsClient

    domain = StsClient().domain("example.com")
    policy = domain.policy()
    if policy is not None and policy.match_mx("mx1.example.com"):
        ...
"""

from .client import StsClient
from .config import AgentConfig, DnsConfig, StsConfig, load_config
from .domain import DomainResolver
from .exceptions import DnsError, FetchError, PolicyError, StsError
from .matching import MxPattern, matches
from .policy import Policy, PolicyMode, parse_policy
from .records import (
    Discovery,
    DiscoveryStatus,
    RecordKind,
    StsRecord,
    TlsRptRecord,
    parse_txt_records,
)

__all__ = [
    "AgentConfig",
    "Discovery",
    "DiscoveryStatus",
    "DnsConfig",
    "DnsError",
    "DomainResolver",
    "FetchError",
    "MxPattern",
    "Policy",
    "PolicyError",
    "PolicyMode",
    "RecordKind",
    "StsClient",
    "StsConfig",
    "StsError",
    "StsRecord",
    "TlsRptRecord",
    "load_config",
    "matches",
    "parse_policy",
    "parse_txt_records",
]
