"""Entry point for looking up MTA-STS policies."""

import logging

from .config import StsConfig
from .dns_utils import DnspythonResolver, TxtResolver
from .domain import DomainResolver
from .http_utils import HttpxFetcher, PolicyFetcher

logger = logging.getLogger(__name__)


class StsClient:
    """
    Factory for per-domain resolvers sharing one configuration.

    The DNS resolver and HTTPS fetcher are built lazily from the
    configuration unless custom ones are injected.

    Example:
        >>> client = StsClient()
        >>> domain = client.domain("example.com")
        >>> domain.tlsrpt
        TlsRptRecord(rua=('mailto:tlsrpt@example.com',), ...)
        >>> policy = domain.policy()
        >>> policy.match_mx("mx1.example.com")
        True
    """

    def __init__(
        self,
        config: StsConfig | None = None,
        resolver: TxtResolver | None = None,
        fetcher: PolicyFetcher | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Configuration; defaults are used when omitted
            resolver: Custom DNS resolver (defaults to dnspython with DNSSEC/AD)
            fetcher: Custom HTTPS fetcher (defaults to httpx, no redirects)
        """
        self.config = config or StsConfig()
        self._resolver = resolver
        self._fetcher = fetcher

    @property
    def resolver(self) -> TxtResolver:
        if self._resolver is None:
            self._resolver = DnspythonResolver(config=self.config.dns)
        return self._resolver

    @property
    def fetcher(self) -> PolicyFetcher:
        if self._fetcher is None:
            self._fetcher = HttpxFetcher(config=self.config.agent)
        return self._fetcher

    def domain(self, domain: str) -> DomainResolver:
        """
        Create a resolver for one domain.

        Args:
            domain: Policy domain (e.g. 'example.com')

        Returns:
            A fresh DomainResolver; its lookups are cached for its lifetime
        """
        logger.debug(f"Creating resolver for {domain}")
        return DomainResolver(domain, self.resolver, self.fetcher, config=self.config)
