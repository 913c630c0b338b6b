"""Tests for MTA-STS and TLSRPT discovery record parsing."""

import pytest

from mail_sts.records import (
    Discovery,
    DiscoveryStatus,
    RecordKind,
    StsRecord,
    TlsRptRecord,
    parse_txt_records,
)


# ============================================================================
# Test Record Kinds
# ============================================================================


class TestRecordKind:
    """Test record kind tags and DNS names."""

    def test_tags(self):
        """Test version tags of both kinds."""
        assert RecordKind.STS.tag == "v=STSv1"
        assert RecordKind.TLSRPT.tag == "v=TLSRPTv1"

    def test_record_names(self):
        """Test DNS names the records are published under."""
        assert RecordKind.STS.record_name("example.com") == "_mta-sts.example.com"
        assert RecordKind.TLSRPT.record_name("example.com") == "_smtp._tls.example.com"


# ============================================================================
# Test STS Records
# ============================================================================


class TestStsRecordParsing:
    """Test parsing of _mta-sts TXT answers."""

    def test_valid_record(self):
        """Test a well-formed record is found."""
        discovery = parse_txt_records(["v=STSv1; id=20160831085700Z"], RecordKind.STS)
        assert discovery.status is DiscoveryStatus.FOUND
        assert isinstance(discovery.record, StsRecord)
        assert discovery.record.version == "STSv1"
        assert discovery.record.id == "20160831085700Z"
        assert discovery.record.raw == "v=STSv1; id=20160831085700Z"

    def test_trailing_semicolon_and_whitespace(self):
        """Test trailing delimiter and extra whitespace are accepted."""
        discovery = parse_txt_records(["v=STSv1 ;\tid=abc123 ; "], RecordKind.STS)
        assert discovery.found
        assert discovery.record.id == "abc123"

    def test_no_answers_is_absent(self):
        """Test an empty answer set is absent."""
        discovery = parse_txt_records([], RecordKind.STS)
        assert discovery.absent
        assert discovery.record is None

    def test_unrelated_strings_are_absent(self):
        """Test TXT strings without the version tag are ignored."""
        discovery = parse_txt_records(
            ["v=spf1 -all", "google-site-verification=xyz"], RecordKind.STS
        )
        assert discovery.absent
        assert discovery.candidates == ()

    def test_tag_is_case_sensitive(self):
        """Test a lowercase tag does not count as a record."""
        assert parse_txt_records(["v=stsv1; id=abc"], RecordKind.STS).absent

    def test_tag_prefix_of_longer_version(self):
        """Test 'v=STSv10' is not mistaken for 'v=STSv1'."""
        assert parse_txt_records(["v=STSv10; id=abc"], RecordKind.STS).absent

    def test_two_records_are_ambiguous(self):
        """Test competing records invalidate discovery."""
        discovery = parse_txt_records(["v=STSv1; id=one", "v=STSv1; id=two"], RecordKind.STS)
        assert discovery.ambiguous
        assert discovery.record is None
        assert len(discovery.candidates) == 2

    def test_two_malformed_records_are_ambiguous(self):
        """Test ambiguity does not depend on individual validity."""
        discovery = parse_txt_records(["v=STSv1; id=", "v=STSv1"], RecordKind.STS)
        assert discovery.ambiguous

    def test_duplicate_key_is_ambiguous(self):
        """Test duplicate keys invalidate the record."""
        discovery = parse_txt_records(["v=STSv1; id=one; id=two"], RecordKind.STS)
        assert discovery.ambiguous
        assert discovery.record is None

    @pytest.mark.parametrize(
        "text",
        [
            "v=STSv1",
            "v=STSv1; id=",
            "v=STSv1; id=has-dash",
            "v=STSv1; id=" + "a" * 33,
            "v=STSv1; id=abc;; x=y",
            "v=STSv1; id=abc; novalue",
        ],
    )
    def test_malformed_record_is_absent(self, text):
        """Test malformed single records are treated as absent."""
        discovery = parse_txt_records([text], RecordKind.STS)
        assert discovery.absent
        assert discovery.candidates == (text,)

    def test_id_max_length(self):
        """Test a 32 character id is accepted."""
        discovery = parse_txt_records(["v=STSv1; id=" + "a" * 32], RecordKind.STS)
        assert discovery.found

    def test_extensions_are_kept(self):
        """Test unknown fields are preserved as extensions."""
        discovery = parse_txt_records(["v=STSv1; id=abc; ext=1"], RecordKind.STS)
        assert discovery.found
        assert discovery.record.extensions == (("ext", "1"),)

    def test_other_kind_is_ignored(self):
        """Test a TLSRPT record does not satisfy STS discovery."""
        discovery = parse_txt_records(["v=TLSRPTv1; rua=mailto:a@example.com"], RecordKind.STS)
        assert discovery.absent


# ============================================================================
# Test TLSRPT Records
# ============================================================================


class TestTlsRptRecordParsing:
    """Test parsing of _smtp._tls TXT answers."""

    def test_mailto_rua(self):
        """Test a single mailto reporting URI."""
        discovery = parse_txt_records(
            ["v=TLSRPTv1; rua=mailto:tlsrpt@example.com"], RecordKind.TLSRPT
        )
        assert discovery.found
        assert isinstance(discovery.record, TlsRptRecord)
        assert discovery.record.rua == ("mailto:tlsrpt@example.com",)

    def test_multiple_rua(self):
        """Test comma-separated URIs keep their order."""
        discovery = parse_txt_records(
            ["v=TLSRPTv1; rua=mailto:a@example.com, https://report.example.com/v1"],
            RecordKind.TLSRPT,
        )
        assert discovery.found
        assert discovery.record.rua == (
            "mailto:a@example.com",
            "https://report.example.com/v1",
        )

    @pytest.mark.parametrize(
        "rua",
        [
            "http://report.example.com/",
            "mailto:nobody",
            "https://",
            "ftp://example.com/",
            "mailto:a@example.com,",
        ],
    )
    def test_invalid_rua_is_absent(self, rua):
        """Test unusable reporting URIs make the record absent."""
        discovery = parse_txt_records([f"v=TLSRPTv1; rua={rua}"], RecordKind.TLSRPT)
        assert discovery.absent

    def test_missing_rua_is_absent(self):
        """Test the rua field is required."""
        assert parse_txt_records(["v=TLSRPTv1"], RecordKind.TLSRPT).absent


# ============================================================================
# Test Discovery Metadata
# ============================================================================


class TestDiscovery:
    """Test the Discovery outcome type."""

    def test_with_metadata(self):
        """Test metadata is attached without changing the outcome."""
        discovery = parse_txt_records(["v=STSv1; id=abc"], RecordKind.STS)
        annotated = discovery.with_metadata("_mta-sts.example.com", True)
        assert annotated.found
        assert annotated.record == discovery.record
        assert annotated.name == "_mta-sts.example.com"
        assert annotated.authenticated is True
        assert discovery.name is None

    def test_defaults(self):
        """Test an absent discovery carries no record or metadata."""
        discovery = Discovery(status=DiscoveryStatus.ABSENT)
        assert discovery.record is None
        assert discovery.authenticated is None
        assert discovery.candidates == ()
