"""HTTPS utilities for policy retrieval.

Policy documents must be fetched under tight constraints: HTTPS only, no
redirects, verified certificates and a bounded body size. :class:`HttpxFetcher`
implements them with httpx; anything implementing :class:`PolicyFetcher` can
be injected instead.
"""

import logging
import ssl
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

import httpx

from .config import AgentConfig
from .constants import ALLOWED_POLICY_SCHEMES
from .exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """
    Response to a policy request.

    ``body`` is only populated for 2xx responses.
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def content_type(self) -> str | None:
        """Content-Type header value, looked up case-insensitively."""
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None


@runtime_checkable
class PolicyFetcher(Protocol):
    """Capability to GET a URL over HTTPS without following redirects."""

    def get(self, url: str, max_size: int | None = None) -> HttpResponse:
        """
        Fetch a URL.

        Args:
            url: HTTPS URL to fetch
            max_size: Maximum body size in bytes, None for no limit

        Returns:
            The response, including non-2xx responses

        Raises:
            FetchError: On transport failures, refused schemes or oversized bodies
        """
        ...


def check_scheme(url: str) -> None:
    """
    Refuse URLs whose scheme is not allowed for policy retrieval.

    Raises:
        FetchError: If the URL is not an https URL
    """
    scheme = urlsplit(url).scheme.lower()
    if scheme not in ALLOWED_POLICY_SCHEMES:
        raise FetchError(url, f"scheme {scheme or '(none)'!r} is not allowed")


def create_ssl_context(ca_file: str | None = None, ca_path: str | None = None) -> ssl.SSLContext:
    """
    Create a verifying TLS context.

    Args:
        ca_file: CA bundle file, system defaults when None
        ca_path: Directory of CA certificates, system defaults when None

    Returns:
        SSL context with hostname checking and certificate verification enabled
    """
    context = ssl.create_default_context(cafile=ca_file, capath=ca_path)
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


class HttpxFetcher:
    """Policy fetcher backed by httpx."""

    def __init__(
        self,
        config: AgentConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Agent configuration (timeout, TLS material, proxy)
            transport: Optional httpx transport, mainly for tests
        """
        self.config = config or AgentConfig()
        self._transport = transport
        self._verify: ssl.SSLContext | None = None

    def _ssl_context(self) -> ssl.SSLContext:
        if self._verify is None:
            self._verify = create_ssl_context(self.config.ssl_ca_file, self.config.ssl_ca_path)
        return self._verify

    def _client(self) -> httpx.Client:
        kwargs = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        else:
            kwargs["verify"] = self._ssl_context()
            if self.config.proxy:
                kwargs["proxy"] = self.config.proxy
        return httpx.Client(
            timeout=self.config.timeout,
            follow_redirects=False,
            trust_env=self.config.trust_env,
            headers={"User-Agent": self.config.user_agent},
            **kwargs,
        )

    def get(self, url: str, max_size: int | None = None) -> HttpResponse:
        """
        Fetch a URL without following redirects.

        Args:
            url: HTTPS URL to fetch
            max_size: Maximum body size in bytes, None for no limit

        Returns:
            HttpResponse; the body is read only for 2xx responses

        Raises:
            FetchError: If the scheme is refused, the transfer fails, exceeds
                the timeout or the body exceeds max_size
        """
        check_scheme(url)
        timeout = self.config.timeout
        deadline = time.monotonic() + timeout
        logger.debug(f"Fetching {url} (timeout {timeout}s, max size {max_size})")

        try:
            with self._client() as client:
                with client.stream("GET", url) as response:
                    if not response.is_success:
                        return HttpResponse(status=response.status_code, headers=response.headers)

                    declared = response.headers.get("Content-Length")
                    if max_size is not None and declared and declared.isdigit():
                        if int(declared) > max_size:
                            raise FetchError(
                                url,
                                f"declared size {declared} exceeds limit of {max_size} bytes",
                                status=response.status_code,
                            )

                    body = bytearray()
                    for chunk in response.iter_bytes():
                        body.extend(chunk)
                        if max_size is not None and len(body) > max_size:
                            raise FetchError(
                                url,
                                f"body exceeds limit of {max_size} bytes",
                                status=response.status_code,
                            )
                        if time.monotonic() > deadline:
                            raise FetchError(url, f"timeout ({timeout}s)")

                    return HttpResponse(
                        status=response.status_code,
                        headers=response.headers,
                        body=bytes(body),
                    )

        except httpx.TimeoutException as e:
            logger.warning(f"Timeout fetching {url}: {e}")
            raise FetchError(url, f"timeout ({timeout}s)") from e

        except httpx.ConnectError as e:
            error_msg = str(e).lower()
            is_ssl_error = any(ssl_term in error_msg for ssl_term in ["ssl", "certificate", "tls"])
            kind = "TLS error" if is_ssl_error else "connection error"
            logger.warning(f"{kind.capitalize()} fetching {url}: {e}")
            raise FetchError(url, f"{kind}: {e}") from e

        except httpx.HTTPError as e:
            logger.warning(f"Error fetching {url}: {e}")
            raise FetchError(url, str(e)) from e

        except httpx.InvalidURL as e:
            logger.warning(f"Invalid policy URL {url}: {e}")
            raise FetchError(url, f"invalid URL: {e}") from e
