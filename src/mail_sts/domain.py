"""Per-domain MTA-STS resolution.

A :class:`DomainResolver` answers three questions about one domain, each at
most once per instance:

- is an MTA-STS discovery record published (``sts_discovery``)
- is a TLSRPT discovery record published (``tlsrpt_discovery``)
- what is the domain's policy (``policy``)

Results, including failures, are cached for the lifetime of the instance.
A failed lookup raises the same error on every call without touching the
network again.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from .config import StsConfig
from .constants import POLICY_HOST_PREFIX, POLICY_WELL_KNOWN_PATH
from .dns_utils import TxtResolver
from .exceptions import FetchError, StsError
from .http_utils import PolicyFetcher, check_scheme
from .matching import normalize_host
from .policy import Policy, parse_policy
from .records import Discovery, RecordKind, StsRecord, TlsRptRecord, parse_txt_records

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SlotState(Enum):
    """Lifecycle of a cache slot."""

    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    FAILED = "failed"


class CacheSlot(Generic[T]):
    """A value computed at most once, remembering either its result or its error."""

    def __init__(self, name: str):
        self.name = name
        self.state = SlotState.UNRESOLVED
        self._value: T | None = None
        self._error: StsError | None = None

    def get(self, compute: Callable[[], T]) -> T:
        """
        Return the cached value, computing it on first use.

        Args:
            compute: Produces the value or raises StsError

        Returns:
            The cached value

        Raises:
            StsError: The cached failure, on this and every later call
        """
        if self.state is SlotState.UNRESOLVED:
            try:
                self._value = compute()
            except StsError as e:
                self._error = e
                self.state = SlotState.FAILED
                logger.debug(f"Cached failure for {self.name}: {e}")
            else:
                self.state = SlotState.RESOLVED

        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]


class DomainResolver:
    """
    Resolve the MTA-STS and TLSRPT state of a single domain.

    Example:
        >>> resolver = DomainResolver("example.com", dns_resolver, fetcher)
        >>> policy = resolver.policy()
        >>> if policy is None:
        ...     print("no MTA-STS policy published")
        >>> elif policy.match_mx("mx1.example.com"):
        ...     print("mx1 is authorized")
    """

    def __init__(
        self,
        domain: str,
        resolver: TxtResolver,
        fetcher: PolicyFetcher,
        config: StsConfig | None = None,
    ):
        """
        Initialize the domain resolver.

        Args:
            domain: Policy domain (e.g. 'example.com')
            resolver: DNS collaborator used for TXT queries
            fetcher: HTTPS collaborator used for the policy fetch
            config: Configuration; defaults are used when omitted
        """
        self.domain = normalize_host(domain)
        self.config = config or StsConfig()
        self._resolver = resolver
        self._fetcher = fetcher
        self._sts_slot: CacheSlot[Discovery[StsRecord]] = CacheSlot(f"STS discovery for {self.domain}")
        self._tlsrpt_slot: CacheSlot[Discovery[TlsRptRecord]] = CacheSlot(
            f"TLSRPT discovery for {self.domain}"
        )
        self._policy_slot: CacheSlot[Policy | None] = CacheSlot(f"policy for {self.domain}")

    # ========================================================================
    # Names
    # ========================================================================

    @property
    def sts_name(self) -> str:
        """DNS name of the MTA-STS discovery record."""
        return RecordKind.STS.record_name(self.domain)

    @property
    def tlsrpt_name(self) -> str:
        """DNS name of the TLSRPT discovery record."""
        return RecordKind.TLSRPT.record_name(self.domain)

    @property
    def policy_url(self) -> str:
        """Well-known URL of the policy document."""
        return f"https://{POLICY_HOST_PREFIX}.{self.domain}{POLICY_WELL_KNOWN_PATH}"

    # ========================================================================
    # Lookups
    # ========================================================================

    def _discover(self, kind: RecordKind) -> Discovery:
        name = kind.record_name(self.domain)
        answer = self._resolver.query_txt(name)
        discovery = parse_txt_records(answer.strings, kind).with_metadata(
            name, answer.authenticated
        )
        if discovery.found:
            logger.info(f"{kind.value} record found for {self.domain}")
        else:
            logger.debug(f"{kind.value} discovery for {self.domain}: {discovery.status.value}")
        return discovery

    def sts_discovery(self) -> Discovery[StsRecord]:
        """
        Discover the MTA-STS record at ``_mta-sts.<domain>``.

        Returns:
            Discovery outcome (ABSENT, AMBIGUOUS or FOUND)

        Raises:
            DnsError: If the TXT query failed
        """
        return self._sts_slot.get(lambda: self._discover(RecordKind.STS))

    def tlsrpt_discovery(self) -> Discovery[TlsRptRecord]:
        """
        Discover the TLSRPT record at ``_smtp._tls.<domain>``.

        Returns:
            Discovery outcome (ABSENT, AMBIGUOUS or FOUND)

        Raises:
            DnsError: If the TXT query failed
        """
        return self._tlsrpt_slot.get(lambda: self._discover(RecordKind.TLSRPT))

    @property
    def sts(self) -> StsRecord | None:
        """The MTA-STS record, or None when absent or ambiguous."""
        return self.sts_discovery().record

    @property
    def tlsrpt(self) -> TlsRptRecord | None:
        """The TLSRPT record, or None when absent or ambiguous."""
        return self.tlsrpt_discovery().record

    def _fetch_policy(self) -> Policy | None:
        if not self.sts_discovery().found:
            logger.debug(f"No usable MTA-STS record for {self.domain}, skipping policy fetch")
            return None

        url = self.policy_url
        check_scheme(url)
        max_size = self.config.agent.max_policy_size
        response = self._fetcher.get(url, max_size=max_size)

        if 300 <= response.status < 400:
            raise FetchError(url, f"redirect (HTTP {response.status}) refused", status=response.status)
        if not 200 <= response.status < 300:
            raise FetchError(url, f"HTTP {response.status}", status=response.status)
        if max_size is not None and len(response.body) > max_size:
            raise FetchError(
                url, f"body exceeds limit of {max_size} bytes", status=response.status
            )

        result = parse_policy(response.body, response.content_type)
        if isinstance(result, Policy):
            logger.info(f"MTA-STS policy found for {self.domain} (mode: {result.mode.value})")
            return result

        logger.warning(f"Invalid MTA-STS policy for {self.domain}: {result}")
        raise result

    def policy(self) -> Policy | None:
        """
        Resolve the domain's MTA-STS policy.

        Returns:
            The validated Policy, or None when the domain publishes no usable
            discovery record (absent or ambiguous). No HTTP request is made in
            that case.

        Raises:
            DnsError: If STS discovery failed
            FetchError: If the policy could not be retrieved (transport error,
                non-2xx status, redirect, oversized body)
            PolicyError: If the retrieved document is invalid
        """
        return self._policy_slot.get(self._fetch_policy)

    def __repr__(self) -> str:
        return f"DomainResolver({self.domain!r})"
