"""DNS resolver utilities for discovery record lookups.

The resolution logic only depends on the :class:`TxtResolver` protocol, so
any object with a matching ``query_txt`` method (a test double, a caching
wrapper) can be injected in place of :class:`DnspythonResolver`.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import dns.exception
import dns.flags
import dns.resolver

from .config import DnsConfig
from .constants import (
    DEFAULT_DNS_PUBLIC_SERVERS,
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_EDNS_PAYLOAD,
    RCODE_NXDOMAIN,
)
from .exceptions import DnsError

logger = logging.getLogger(__name__)


@dataclass
class TxtAnswer:
    """
    TXT strings returned for one query name.

    ``authenticated`` reflects the AD flag of the response: True or False
    when the resolver reported it, None when unknown.
    """

    name: str
    strings: list[str] = field(default_factory=list)
    authenticated: bool | None = None


@runtime_checkable
class TxtResolver(Protocol):
    """Capability to query TXT records."""

    def query_txt(self, name: str) -> TxtAnswer:
        """
        Query TXT records for a name.

        Args:
            name: Fully qualified DNS name

        Returns:
            The answer; an empty answer when the name has no TXT records

        Raises:
            DnsError: If the query could not be answered
        """
        ...


def create_resolver(
    nameservers: list[str] | None = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
    dnssec: bool = True,
    fallback_nameservers: list[str] | None = None,
) -> dns.resolver.Resolver:
    """
    Create a DNS resolver with fallback to public DNS servers.

    Args:
        nameservers: Custom nameservers to use (optional).
                    If None, will try system DNS first, then fallback to public DNS.
        timeout: DNS query timeout in seconds
        dnssec: Request DNSSEC records (DO bit) and the AD flag
        fallback_nameservers: Servers used when no system DNS is configured

    Returns:
        Configured DNS resolver ready for use

    Example:
        >>> resolver = create_resolver(timeout=10.0)
        >>> answers = resolver.resolve('_mta-sts.example.com', 'TXT')
    """
    # Try to create resolver with system config, fallback to manual config
    try:
        resolver = dns.resolver.Resolver()
        if not resolver.nameservers:
            raise dns.resolver.NoResolverConfiguration("no nameservers")
    except (dns.resolver.NoResolverConfiguration, OSError):
        resolver = dns.resolver.Resolver(configure=False)
        logger.debug("System DNS not available, using public DNS servers")

    if nameservers:
        resolver.nameservers = nameservers
        logger.debug(f"Using custom nameservers: {', '.join(nameservers)}")
    elif not resolver.nameservers:
        fallback = fallback_nameservers or DEFAULT_DNS_PUBLIC_SERVERS
        resolver.nameservers = fallback
        logger.debug(f"Using fallback public DNS servers: {', '.join(fallback)}")

    resolver.timeout = timeout
    resolver.lifetime = timeout

    if dnssec:
        resolver.use_edns(0, dns.flags.DO, DEFAULT_EDNS_PAYLOAD)
        resolver.flags = dns.flags.RD | dns.flags.AD

    return resolver


def _join_strings(rdata) -> str:
    """Join the character-strings of one TXT rdata into a single value."""
    return "".join(
        part.decode("utf-8", errors="replace") if isinstance(part, bytes) else str(part)
        for part in rdata.strings
    )


class DnspythonResolver:
    """TXT resolver backed by dnspython."""

    def __init__(self, resolver: dns.resolver.Resolver | None = None, config: DnsConfig | None = None):
        """
        Initialize the resolver.

        Args:
            resolver: Preconfigured dnspython resolver; built from config if omitted
            config: DNS configuration used when building the resolver
        """
        if resolver is None:
            config = config or DnsConfig()
            resolver = create_resolver(
                nameservers=config.nameservers,
                timeout=config.timeout,
                dnssec=config.dnssec,
                fallback_nameservers=config.fallback_nameservers,
            )
        self._resolver = resolver

    def query_txt(self, name: str) -> TxtAnswer:
        """
        Resolve TXT records for a name.

        Args:
            name: DNS name to query

        Returns:
            TxtAnswer with joined TXT strings and the AD flag

        Raises:
            DnsError: On NXDOMAIN, timeouts, SERVFAIL and other DNS failures
        """
        logger.debug(f"Querying TXT records for {name}")
        try:
            answer = self._resolver.resolve(name, "TXT", raise_on_no_answer=False)
        except dns.resolver.NXDOMAIN as e:
            logger.debug(f"TXT lookup for {name} returned NXDOMAIN")
            raise DnsError(name, "domain does not exist", rcode=RCODE_NXDOMAIN) from e
        except dns.exception.Timeout as e:
            logger.warning(f"TXT lookup for {name} timed out")
            raise DnsError(name, f"timeout: {e}", rcode="TIMEOUT") from e
        except dns.resolver.NoNameservers as e:
            logger.warning(f"TXT lookup for {name} failed on all nameservers: {e}")
            raise DnsError(name, str(e), rcode="SERVFAIL") from e
        except dns.exception.DNSException as e:
            logger.warning(f"TXT lookup for {name} failed: {e}")
            raise DnsError(name, str(e)) from e

        response = getattr(answer, "response", None)
        authenticated = bool(response.flags & dns.flags.AD) if response is not None else None
        rrset = answer.rrset
        strings = [_join_strings(rdata) for rdata in rrset] if rrset is not None else []

        logger.debug(f"Got {len(strings)} TXT string(s) for {name} (AD={authenticated})")
        return TxtAnswer(name=name, strings=strings, authenticated=authenticated)
