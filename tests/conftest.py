"""Shared test doubles for the DNS and HTTPS collaborators."""

import pytest

from mail_sts.dns_utils import TxtAnswer
from mail_sts.http_utils import HttpResponse

VALID_POLICY = (
    b"version: STSv1\n"
    b"mode: enforce\n"
    b"mx: mail.example.com\n"
    b"mx: *.example.com\n"
    b"max_age: 604800\n"
)


class CountingResolver:
    """TXT resolver returning canned answers and counting queries."""

    def __init__(self, answers=None, authenticated=None):
        # name -> list of TXT strings, or an exception to raise
        self.answers = answers or {}
        self.authenticated = authenticated
        self.calls: list[str] = []

    def query_txt(self, name: str) -> TxtAnswer:
        self.calls.append(name)
        answer = self.answers.get(name, [])
        if isinstance(answer, Exception):
            raise answer
        return TxtAnswer(name=name, strings=list(answer), authenticated=self.authenticated)


class CountingFetcher:
    """Policy fetcher returning a canned response and counting requests."""

    def __init__(self, response=None, error=None):
        self.response = response or HttpResponse(
            status=200, headers={"Content-Type": "text/plain"}, body=VALID_POLICY
        )
        self.error = error
        self.calls: list[tuple[str, int | None]] = []

    def get(self, url: str, max_size: int | None = None) -> HttpResponse:
        self.calls.append((url, max_size))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def sts_answers():
    """TXT answers for a domain publishing both MTA-STS and TLSRPT."""
    return {
        "_mta-sts.example.com": ["v=STSv1; id=20160831085700Z"],
        "_smtp._tls.example.com": ["v=TLSRPTv1; rua=mailto:tlsrpt@example.com"],
    }


@pytest.fixture
def resolver(sts_answers):
    return CountingResolver(sts_answers)


@pytest.fixture
def fetcher():
    return CountingFetcher()
