"""Exceptions raised by MTA-STS resolution.

Discovery absence and ambiguity are not errors; they are reported as
:class:`~mail_sts.records.Discovery` states. The exceptions here mean a
lookup could not be completed or produced an unusable result.
"""


class StsError(Exception):
    """Base class for all MTA-STS resolution errors."""


class DnsError(StsError):
    """Raised when a DNS query could not be answered."""

    def __init__(self, name: str, reason: str, rcode: str | None = None) -> None:
        """
        Initialize a DNS error.

        Args:
            name: DNS name that was queried
            reason: Human-readable failure description
            rcode: Symbolic failure kind (e.g. "NXDOMAIN", "SERVFAIL", "TIMEOUT")
        """
        super().__init__(f"TXT lookup failed for {name}: {reason}")
        self.name = name
        self.reason = reason
        self.rcode = rcode


class FetchError(StsError):
    """Raised when the policy document could not be retrieved."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        """
        Initialize a fetch error.

        Args:
            url: Policy URL that was requested
            reason: Human-readable failure description
            status: HTTP status code, if a response was received
        """
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class PolicyError(StsError):
    """An invalid MTA-STS policy document."""

    def __init__(self, reason: str, line: int | None = None) -> None:
        """
        Initialize a policy error.

        Args:
            reason: Why the document was rejected
            line: 1-based line number of the offending line, if any
        """
        message = f"Line {line}: {reason}" if line is not None else reason
        super().__init__(message)
        self.reason = reason
        self.line = line
