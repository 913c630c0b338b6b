"""MX hostname matching against MTA-STS policy patterns (RFC 8461 section 4.1)."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

_LABEL = re.compile(r"^(?!-)[a-z0-9_-]{1,63}(?<!-)$")

WILDCARD_PREFIX = "*."


def normalize_host(host: str) -> str:
    """Lowercase a hostname and strip one trailing dot."""
    host = host.strip().lower()
    if host.endswith("."):
        host = host[:-1]
    return host


def _is_hostname(value: str) -> bool:
    labels = value.split(".")
    return len(value) <= 253 and all(_LABEL.match(label) for label in labels)


@dataclass(frozen=True)
class MxPattern:
    """
    An ``mx`` entry of a policy.

    Either an exact hostname (``mail.example.com``) or a wildcard covering
    exactly one leftmost label (``*.example.com``). Stored normalized.
    """

    value: str

    @classmethod
    def parse(cls, text: str) -> "MxPattern | None":
        """
        Build a pattern from policy text.

        Args:
            text: Raw ``mx`` value

        Returns:
            Normalized pattern, or None if the text is not a hostname or a
            single-level wildcard
        """
        value = normalize_host(text)
        name = value[len(WILDCARD_PREFIX) :] if value.startswith(WILDCARD_PREFIX) else value
        if not name or not _is_hostname(name):
            return None
        return cls(value)

    @property
    def is_wildcard(self) -> bool:
        return self.value.startswith(WILDCARD_PREFIX)

    @property
    def suffix(self) -> str:
        """Hostname part of the pattern without the wildcard label."""
        if self.is_wildcard:
            return self.value[len(WILDCARD_PREFIX) :]
        return self.value

    def matches(self, host: str) -> bool:
        """Check whether a single hostname is covered by this pattern."""
        candidate = normalize_host(host)
        if not self.is_wildcard:
            return candidate == self.value

        # The wildcard stands for exactly one non-empty label
        first, sep, rest = candidate.partition(".")
        return bool(first) and bool(sep) and rest == self.suffix

    def __str__(self) -> str:
        return self.value


def matches(host: str, patterns: Iterable[MxPattern | str]) -> bool:
    """
    Check whether a candidate MX host is authorized by a list of patterns.

    Plain strings are normalized the same way policy patterns are. Strings
    that are not valid patterns never match.

    Args:
        host: Candidate MX hostname
        patterns: Patterns from a policy

    Returns:
        True if any pattern matches the host

    Example:
        >>> matches("mx1.example.com", ["*.example.com"])
        True
        >>> matches("a.b.example.com", ["*.example.com"])
        False
    """
    for pattern in patterns:
        if isinstance(pattern, str):
            parsed = MxPattern.parse(pattern)
            if parsed is None:
                continue
            pattern = parsed
        if pattern.matches(host):
            return True
    return False


__all__ = ["MxPattern", "matches", "normalize_host"]
