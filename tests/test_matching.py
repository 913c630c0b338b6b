"""Tests for MX host matching."""

import pytest

from mail_sts.matching import MxPattern, matches, normalize_host


class TestNormalizeHost:
    """Test hostname normalization."""

    def test_lowercase_and_trailing_dot(self):
        assert normalize_host("MX1.Example.COM.") == "mx1.example.com"

    def test_only_one_trailing_dot_removed(self):
        assert normalize_host("example.com..") == "example.com."


class TestMxPattern:
    """Test pattern parsing."""

    def test_exact_pattern(self):
        """Test a plain hostname pattern."""
        pattern = MxPattern.parse("mail.example.com")
        assert pattern is not None
        assert not pattern.is_wildcard
        assert pattern.suffix == "mail.example.com"

    def test_wildcard_pattern(self):
        """Test a single-level wildcard pattern."""
        pattern = MxPattern.parse("*.Example.com.")
        assert pattern == MxPattern("*.example.com")
        assert pattern.is_wildcard
        assert pattern.suffix == "example.com"
        assert str(pattern) == "*.example.com"

    @pytest.mark.parametrize("text", ["", "*", "*.", "*.*.example.com", "a..b", "exa mple.com"])
    def test_invalid_patterns(self, text):
        """Test text that is neither a hostname nor a wildcard."""
        assert MxPattern.parse(text) is None


class TestMatches:
    """Test the matching rules."""

    def test_exact_match(self):
        assert matches("mail.example.com", ["mail.example.com"])

    def test_wildcard_single_label(self):
        assert matches("sub.example.com", ["*.example.com"])

    def test_wildcard_does_not_match_suffix_itself(self):
        assert not matches("example.com", ["*.example.com"])

    def test_wildcard_matches_exactly_one_label(self):
        assert not matches("a.b.example.com", ["*.example.com"])

    def test_case_and_trailing_dot_insensitive(self):
        """Test candidate normalization."""
        assert matches("MAIL.example.COM.", ["mail.example.com"])
        assert matches("Mx1.Example.Com.", ["*.EXAMPLE.com"])

    def test_no_substring_matching(self):
        """Test patterns never match partially."""
        assert not matches("mail.example.com.evil.net", ["mail.example.com"])
        assert not matches("notexample.com", ["*.example.com"])
        assert not matches("mail.example.co", ["mail.example.com"])

    def test_any_pattern_matches(self):
        """Test the result is true when any pattern matches."""
        patterns = [MxPattern("mail.example.org"), MxPattern("*.example.com")]
        assert matches("mx2.example.com", patterns)
        assert not matches("mx2.example.net", patterns)

    def test_empty_patterns(self):
        assert not matches("mail.example.com", [])

    def test_invalid_string_patterns_ignored(self):
        """Test unparsable string patterns never match."""
        assert not matches("a.example.com", ["*.*.example.com"])

    def test_empty_first_label(self):
        """Test a candidate with an empty leading label does not match a wildcard."""
        assert not matches(".example.com", ["*.example.com"])
