"""Discovery record parsing for MTA-STS (RFC 8461) and TLSRPT (RFC 8460).

A domain advertises MTA-STS with a TXT record at ``_mta-sts.<domain>`` and
TLS reporting with a TXT record at ``_smtp._tls.<domain>``. This module turns
the raw TXT strings of such a query into a :class:`Discovery` outcome. It
performs no network access.

Parsing is fail-closed:
- no record with the version tag means ABSENT
- more than one record with the version tag means AMBIGUOUS
- a single record with duplicate keys means AMBIGUOUS
- a single record that is malformed or lacks required keys means ABSENT
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, TypeVar
from urllib.parse import urlsplit

from .constants import (
    STS_ID_MAX_LENGTH,
    STS_RECORD_PREFIX,
    STS_VERSION,
    TLSRPT_RECORD_PREFIX,
    TLSRPT_URI_SCHEMES,
    TLSRPT_VERSION,
)

logger = logging.getLogger(__name__)

_FIELD_DELIMITER = re.compile(r"[ \t]*;[ \t]*")
_FIELD_KEY = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,31}$")
_STS_ID = re.compile(rf"^[A-Za-z0-9]{{1,{STS_ID_MAX_LENGTH}}}$")


# ============================================================================
# Record Models
# ============================================================================


class RecordKind(Enum):
    """Kinds of discovery records, valued by their version string."""

    STS = STS_VERSION
    TLSRPT = TLSRPT_VERSION

    @property
    def tag(self) -> str:
        """Version tag every record of this kind starts with."""
        return f"v={self.value}"

    @property
    def prefix(self) -> str:
        """DNS label prefix under which this kind of record is published."""
        if self is RecordKind.STS:
            return STS_RECORD_PREFIX
        return TLSRPT_RECORD_PREFIX

    def record_name(self, domain: str) -> str:
        """Return the DNS name holding this record for a policy domain."""
        return f"{self.prefix}.{domain}"


class DiscoveryStatus(Enum):
    """Outcome of interpreting a TXT answer set."""

    ABSENT = "absent"
    AMBIGUOUS = "ambiguous"
    FOUND = "found"


@dataclass(frozen=True)
class StsRecord:
    """A valid ``v=STSv1`` discovery record."""

    id: str
    raw: str
    extensions: tuple[tuple[str, str], ...] = ()
    version: str = STS_VERSION


@dataclass(frozen=True)
class TlsRptRecord:
    """A valid ``v=TLSRPTv1`` discovery record."""

    rua: tuple[str, ...]
    raw: str
    extensions: tuple[tuple[str, str], ...] = ()
    version: str = TLSRPT_VERSION


TRecord = TypeVar("TRecord", StsRecord, TlsRptRecord)


@dataclass(frozen=True)
class Discovery(Generic[TRecord]):
    """
    Result of discovering one kind of record for a domain.

    ``record`` is only set when ``status`` is FOUND. ``name`` and
    ``authenticated`` are DNS metadata: the queried name and whether the
    answer carried the DNSSEC AD flag (``None`` when unknown).
    """

    status: DiscoveryStatus
    record: TRecord | None = None
    name: str | None = None
    authenticated: bool | None = None
    candidates: tuple[str, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.status is DiscoveryStatus.FOUND

    @property
    def absent(self) -> bool:
        return self.status is DiscoveryStatus.ABSENT

    @property
    def ambiguous(self) -> bool:
        return self.status is DiscoveryStatus.AMBIGUOUS

    def with_metadata(self, name: str, authenticated: bool | None) -> "Discovery[TRecord]":
        """Return a copy annotated with the DNS name and AD flag."""
        return replace(self, name=name, authenticated=authenticated)


# ============================================================================
# Parsing
# ============================================================================


def _matches_tag(text: str, kind: RecordKind) -> bool:
    """Check whether a TXT string begins with the kind's version field."""
    tag = kind.tag
    if not text.startswith(tag):
        return False
    rest = text[len(tag) :].lstrip(" \t")
    return rest == "" or rest.startswith(";")


def _split_fields(text: str) -> list[tuple[str, str]] | None:
    """
    Split a record into ``(key, value)`` pairs.

    Args:
        text: Raw record text

    Returns:
        Ordered pairs, or None if any field is malformed
    """
    fields = _FIELD_DELIMITER.split(text.strip())
    if fields and fields[-1] == "":
        # Trailing delimiter is optional
        fields.pop()

    pairs = []
    for item in fields:
        key, sep, value = item.partition("=")
        key = key.strip()
        value = value.strip()
        if not sep or not value or not _FIELD_KEY.match(key):
            return None
        pairs.append((key, value))
    return pairs


def _parse_rua(value: str) -> tuple[str, ...] | None:
    """Parse a comma-separated ``rua`` value into reporting URIs."""
    uris = tuple(uri.strip() for uri in value.split(","))
    for uri in uris:
        try:
            parts = urlsplit(uri)
        except ValueError:
            return None
        scheme = parts.scheme.lower()
        if scheme not in TLSRPT_URI_SCHEMES:
            return None
        if scheme == "mailto" and "@" not in parts.path:
            return None
        if scheme == "https" and not parts.hostname:
            return None
    return uris


def _build_sts(text: str, fields: dict[str, str]) -> StsRecord | None:
    record_id = fields.get("id")
    if record_id is None or not _STS_ID.match(record_id):
        return None
    extensions = tuple((k, v) for k, v in fields.items() if k not in ("v", "id"))
    return StsRecord(id=record_id, raw=text, extensions=extensions)


def _build_tlsrpt(text: str, fields: dict[str, str]) -> TlsRptRecord | None:
    rua = fields.get("rua")
    if rua is None:
        return None
    uris = _parse_rua(rua)
    if uris is None:
        return None
    extensions = tuple((k, v) for k, v in fields.items() if k not in ("v", "rua"))
    return TlsRptRecord(rua=uris, raw=text, extensions=extensions)


def parse_txt_records(strings: Iterable[str], kind: RecordKind) -> Discovery:
    """
    Interpret the TXT strings of a discovery query.

    Args:
        strings: TXT values returned for the query name, each already
            joined from its character-strings
        kind: Which record kind to look for

    Returns:
        Discovery with status ABSENT, AMBIGUOUS or FOUND
    """
    candidates = tuple(text for text in strings if _matches_tag(text, kind))

    if not candidates:
        logger.debug(f"No {kind.value} record among TXT answers")
        return Discovery(status=DiscoveryStatus.ABSENT)

    if len(candidates) > 1:
        logger.debug(f"Found {len(candidates)} competing {kind.value} records")
        return Discovery(status=DiscoveryStatus.AMBIGUOUS, candidates=candidates)

    text = candidates[0]
    pairs = _split_fields(text)
    if pairs is None:
        logger.debug(f"Malformed {kind.value} record: {text!r}")
        return Discovery(status=DiscoveryStatus.ABSENT, candidates=candidates)

    fields: dict[str, str] = {}
    for key, value in pairs:
        if key in fields:
            logger.debug(f"Duplicate key {key!r} in {kind.value} record: {text!r}")
            return Discovery(status=DiscoveryStatus.AMBIGUOUS, candidates=candidates)
        fields[key] = value

    if fields.get("v") != kind.value:
        return Discovery(status=DiscoveryStatus.ABSENT, candidates=candidates)

    record: StsRecord | TlsRptRecord | None
    if kind is RecordKind.STS:
        record = _build_sts(text, fields)
    else:
        record = _build_tlsrpt(text, fields)

    if record is None:
        logger.debug(f"{kind.value} record lacks a valid required field: {text!r}")
        return Discovery(status=DiscoveryStatus.ABSENT, candidates=candidates)

    return Discovery(status=DiscoveryStatus.FOUND, record=record, candidates=candidates)


__all__ = [
    "Discovery",
    "DiscoveryStatus",
    "RecordKind",
    "StsRecord",
    "TlsRptRecord",
    "parse_txt_records",
]
