"""Tests for the dnspython-backed TXT resolver."""

from unittest.mock import MagicMock, Mock, patch

import dns.exception
import dns.flags
import dns.resolver
import pytest

from mail_sts.config import DnsConfig
from mail_sts.dns_utils import DnspythonResolver, TxtAnswer, TxtResolver, create_resolver
from mail_sts.exceptions import DnsError


def _rdata(*parts: bytes) -> Mock:
    rdata = Mock()
    rdata.strings = parts
    return rdata


def _answer(rdatas, flags=dns.flags.QR | dns.flags.RD | dns.flags.RA) -> Mock:
    answer = Mock()
    answer.rrset = rdatas
    answer.response.flags = flags
    return answer


def _resolver_returning(answer=None, error=None) -> DnspythonResolver:
    dns_resolver = MagicMock(spec=dns.resolver.Resolver)
    if error is not None:
        dns_resolver.resolve.side_effect = error
    else:
        dns_resolver.resolve.return_value = answer
    return DnspythonResolver(resolver=dns_resolver)


# ============================================================================
# Test Resolver Construction
# ============================================================================


class TestCreateResolver:
    """Test dnspython resolver configuration."""

    def test_custom_nameservers_and_timeout(self):
        """Test explicit nameservers and timeout are applied."""
        resolver = create_resolver(nameservers=["9.9.9.9"], timeout=2.5)
        assert resolver.nameservers == ["9.9.9.9"]
        assert resolver.timeout == 2.5
        assert resolver.lifetime == 2.5

    def test_dnssec_flags(self):
        """Test DNSSEC requests set the DO and AD bits."""
        resolver = create_resolver(nameservers=["9.9.9.9"], dnssec=True)
        assert resolver.flags & dns.flags.AD
        assert resolver.ednsflags & dns.flags.DO

    def test_dnssec_disabled(self):
        """Test no DO bit without DNSSEC."""
        resolver = create_resolver(nameservers=["9.9.9.9"], dnssec=False)
        assert not resolver.ednsflags & dns.flags.DO

    def test_fallback_nameservers(self):
        """Test fallback servers are used without a system configuration."""
        with patch("mail_sts.dns_utils.dns.resolver.Resolver") as resolver_cls:
            system = Mock(nameservers=[])
            manual = Mock(nameservers=[])
            resolver_cls.side_effect = [system, manual]

            resolver = create_resolver(fallback_nameservers=["192.0.2.53"], dnssec=False)

        assert resolver is manual
        assert resolver.nameservers == ["192.0.2.53"]

    def test_built_from_config(self):
        """Test DnspythonResolver builds its resolver from DnsConfig."""
        config = DnsConfig(nameservers=["192.0.2.1"], timeout=1.0, dnssec=False)
        resolver = DnspythonResolver(config=config)
        assert resolver._resolver.nameservers == ["192.0.2.1"]
        assert resolver._resolver.timeout == 1.0


# ============================================================================
# Test TXT Queries
# ============================================================================


class TestQueryTxt:
    """Test TXT queries and error mapping."""

    def test_satisfies_protocol(self):
        assert isinstance(_resolver_returning(_answer([])), TxtResolver)

    def test_strings_joined(self):
        """Test multi-part TXT records are concatenated."""
        answer = _answer([_rdata(b"v=STSv1; ", b"id=abc"), _rdata(b"v=spf1 -all")])
        result = _resolver_returning(answer).query_txt("_mta-sts.example.com")
        assert isinstance(result, TxtAnswer)
        assert result.name == "_mta-sts.example.com"
        assert result.strings == ["v=STSv1; id=abc", "v=spf1 -all"]
        assert result.authenticated is False

    def test_query_arguments(self):
        """Test the query asks for TXT without raising on empty answers."""
        resolver = _resolver_returning(_answer([]))
        resolver.query_txt("_mta-sts.example.com")
        resolver._resolver.resolve.assert_called_once_with(
            "_mta-sts.example.com", "TXT", raise_on_no_answer=False
        )

    def test_ad_flag(self):
        """Test the AD flag is reported as authenticated."""
        answer = _answer([_rdata(b"v=STSv1; id=abc")], flags=dns.flags.QR | dns.flags.AD)
        result = _resolver_returning(answer).query_txt("_mta-sts.example.com")
        assert result.authenticated is True

    def test_no_answer(self):
        """Test an empty answer yields no strings."""
        result = _resolver_returning(_answer(None)).query_txt("_mta-sts.example.com")
        assert result.strings == []

    def test_invalid_utf8_replaced(self):
        """Test undecodable bytes do not break the lookup."""
        answer = _answer([_rdata(b"v=STSv1; id=\xff")])
        result = _resolver_returning(answer).query_txt("_mta-sts.example.com")
        assert result.strings[0].startswith("v=STSv1; id=")

    @pytest.mark.parametrize(
        "error, rcode",
        [
            (dns.resolver.NXDOMAIN(), "NXDOMAIN"),
            (dns.exception.Timeout(), "TIMEOUT"),
            (dns.resolver.NoNameservers(), "SERVFAIL"),
            (dns.exception.DNSException("boom"), None),
        ],
    )
    def test_errors_mapped(self, error, rcode):
        """Test dnspython failures become DnsError."""
        resolver = _resolver_returning(error=error)
        with pytest.raises(DnsError) as exc_info:
            resolver.query_txt("_mta-sts.example.com")
        assert exc_info.value.name == "_mta-sts.example.com"
        assert exc_info.value.rcode == rcode
        assert isinstance(exc_info.value.__cause__, dns.exception.DNSException)
