"""MTA-STS policy document parsing (RFC 8461 section 3.2).

A policy is a short ``text/plain`` document of ``key: value`` lines::

    version: STSv1
    mode: enforce
    mx: mail.example.com
    mx: *.example.net
    max_age: 604800

:func:`parse_policy` never guesses. Any structural problem, out-of-range
value or missing key yields a :class:`~mail_sts.exceptions.PolicyError`
describing the problem, and callers must treat it as "no valid policy".
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .constants import POLICY_CONTENT_TYPE, POLICY_MAX_AGE_LIMIT, STS_VERSION
from .exceptions import PolicyError
from .matching import MxPattern, matches

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")
_POLICY_LINE = re.compile(r"^([A-Za-z0-9_.-]+):[ \t]*(.*?)[ \t]*$")
_MAX_AGE = re.compile(r"^[0-9]{1,10}$")

_SINGLE_VALUED_KEYS = ("version", "mode", "max_age")


class PolicyMode(Enum):
    """Policy modes a domain can publish."""

    ENFORCE = "enforce"
    TESTING = "testing"
    NONE = "none"


@dataclass(frozen=True)
class Policy:
    """A fully validated MTA-STS policy."""

    mode: PolicyMode
    mx: tuple[MxPattern, ...]
    max_age: int
    version: str = STS_VERSION
    extensions: tuple[tuple[str, str], ...] = ()

    @property
    def mx_hosts(self) -> list[str]:
        """Patterns as plain strings, in document order."""
        return [pattern.value for pattern in self.mx]

    def match_mx(self, host: str) -> bool:
        """Check whether ``host`` is an MX host this policy authorizes."""
        return matches(host, self.mx)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "mode": self.mode.value,
            "mx": self.mx_hosts,
            "max_age": self.max_age,
        }


def _check_content_type(content_type: str | None) -> PolicyError | None:
    if content_type is None:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type != POLICY_CONTENT_TYPE:
        return PolicyError(f"Unexpected content type {media_type or '(empty)'!r}")
    return None


def parse_policy(body: bytes, content_type: str | None = None) -> Policy | PolicyError:
    """
    Parse a fetched policy document.

    Args:
        body: Raw response body, already bounded in size by the caller
        content_type: Declared Content-Type header, or None if unknown

    Returns:
        The validated Policy, or a PolicyError explaining the rejection.
        The error is returned rather than raised.
    """
    error = _check_content_type(content_type)
    if error is not None:
        return error

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        return PolicyError(f"Policy is not valid UTF-8: {e.reason}")

    single: dict[str, str] = {}
    mx: list[MxPattern] = []
    extensions: list[tuple[str, str]] = []

    for number, line in enumerate(_LINE_BREAK.split(text), start=1):
        if not line.strip():
            continue

        match = _POLICY_LINE.match(line)
        if not match or not match.group(2):
            return PolicyError("Not a 'key: value' pair", line=number)
        key, value = match.group(1), match.group(2)

        if key in _SINGLE_VALUED_KEYS:
            if key in single:
                return PolicyError(f"Duplicate key: {key}", line=number)
            single[key] = value
        elif key == "mx":
            pattern = MxPattern.parse(value)
            if pattern is None:
                return PolicyError(f"Invalid mx pattern: {value}", line=number)
            mx.append(pattern)
        else:
            # Unknown keys are allowed for forward compatibility
            extensions.append((key, value))

    for required in _SINGLE_VALUED_KEYS:
        if required not in single:
            return PolicyError(f"Missing required key: {required}")

    if single["version"] != STS_VERSION:
        return PolicyError(f"Unsupported version: {single['version']}")

    try:
        mode = PolicyMode(single["mode"])
    except ValueError:
        return PolicyError(f"Invalid mode: {single['mode']}")

    raw_max_age = single["max_age"]
    if not _MAX_AGE.match(raw_max_age) or int(raw_max_age) > POLICY_MAX_AGE_LIMIT:
        return PolicyError(
            f"max_age must be an integer between 0 and {POLICY_MAX_AGE_LIMIT}, got {raw_max_age}"
        )

    if mode is not PolicyMode.NONE and not mx:
        return PolicyError(f"Mode {mode.value} requires at least one mx pattern")

    policy = Policy(
        mode=mode,
        mx=tuple(mx),
        max_age=int(raw_max_age),
        extensions=tuple(extensions),
    )
    logger.debug(f"Parsed policy: mode={mode.value}, mx={policy.mx_hosts}, max_age={policy.max_age}")
    return policy


__all__ = ["Policy", "PolicyMode", "parse_policy"]
