"""
Shared pytest fixtures.

Provides fake iHOP / Pathway Commons pages served by an in-memory fetcher, and
a fallback event loop runner so `async def` tests execute even when
pytest-asyncio is unavailable in the environment.
"""
import asyncio
import inspect
from typing import Any, Dict, Iterable, Optional, Tuple

import pytest

from pcviz.core.config import Config
from pcviz.core.exceptions import TransportError


def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    """
    Run coroutine tests using a local event loop when pytest lacks async plugins.

    Returns True when the async test was executed so pytest skips its default
    pyfunc execution path; otherwise returns None to let pytest handle sync tests.
    """
    test_obj = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_obj):
        return None

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        kwargs: Dict[str, Any] = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop.run_until_complete(test_obj(**kwargs))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


IHOP_TEST_URL = "http://ihop.test/iHOP/"


class FakeFetcher:
    """Serves canned pages by URL; unknown URLs fail like a refused connection."""

    def __init__(self, pages: Optional[Dict[str, str]] = None):
        self.pages: Dict[str, str] = dict(pages or {})
        self.calls = []

    async def __call__(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise TransportError("fake", url, "connection refused")
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


class IHOPPages:
    """Builders for pages in the iHOP layout."""

    @staticmethod
    def candidate_row(internal_id: str, symbol: str) -> str:
        return f'<TD nowrap="1"><A HREF="javascript:doaction(null, {internal_id}, 1)">{symbol}</A></TD>'

    @classmethod
    def search_page(cls, exact: Optional[Tuple[str, str]] = None,
                    candidates: Iterable[Tuple[str, str]] = ()) -> str:
        lines = ["<html>", "<body>", "<TABLE>"]
        lines += [cls.candidate_row(internal_id, symbol) for internal_id, symbol in candidates]
        if exact:
            symbol, internal_id = exact
            lines += [
                f"<B>{symbol}</B>",
                "</SYMBOL>",
                f'<A HREF="javascript:doaction(null, {internal_id}, 1)">details</A>',
            ]
        lines += ["</TABLE>", "</body>", "</html>"]
        return "\n".join(lines)

    @staticmethod
    def cocitation_row(symbol: str, count) -> str:
        return (f'           hstore(new Array("type", "GENE", "symbol", "{symbol}", '
                f'"name", "{symbol} protein", "count", "{count}"));')

    @classmethod
    def gene_page(cls, symbol: str, cocitations: Optional[Dict[str, int]] = None) -> str:
        lines = [
            "<html>",
            "<head>",
            f"<title>iHOP - [ {symbol} ] gene information</title>",
            "</head>",
            "<script>",
        ]
        lines += [cls.cocitation_row(co, count) for co, count in (cocitations or {}).items()]
        lines += ["</script>", "</html>"]
        return "\n".join(lines)


@pytest.fixture
def pages():
    return IHOPPages


@pytest.fixture
def ihop_url():
    return IHOP_TEST_URL


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def ihop_site(pages):
    """
    Fetcher serving a small iHOP site: TP53 matches directly, MDM2 only
    through candidate disambiguation and FOO not at all.
    """
    def search(symbol):
        return f"{IHOP_TEST_URL}?field=synonym&ncbi_tax_id=9606&search={symbol}"

    def gene(internal_id):
        return f"{IHOP_TEST_URL}gs/{internal_id}.html?list=1&page=1"

    return FakeFetcher({
        search("TP53"): pages.search_page(exact=("TP53", "1234"), candidates=[("1234", "TP53")]),
        gene("1234"): pages.gene_page("TP53", {"MDM2": 10, "X": 10}),
        search("MDM2"): pages.search_page(candidates=[("41", "MDM4"), ("42", "MDM2")]),
        gene("41"): pages.gene_page("MDM4", {"TP53": 3}),
        gene("42"): pages.gene_page("MDM2", {"TP53": 7, "Y": 8}),
        search("FOO"): pages.search_page(candidates=[("99", "FOOL")]),
        gene("99"): pages.gene_page("FOOL", {"TP53": 1}),
    })


@pytest.fixture
def test_config(monkeypatch):
    """Testing-environment configuration isolated from the caller's env."""
    for name in ("IHOP_URL", "PATHWAYCOMMONS_URL", "COCITATION_MIN_EDGE",
                 "COCITATION_MIN_NODE", "GENE_NAMES_FILE", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    return Config("testing")


class FakeCocitationSource:
    """Co-citation source backed by a dict; counts every scrape."""

    def __init__(self, data: Dict[str, Optional[Dict[str, int]]]):
        self.data = data
        self.calls = []

    async def parse_cocitations(self, symbol: str):
        self.calls.append(symbol)
        await asyncio.sleep(0)
        counts = self.data.get(symbol)
        return dict(counts) if counts is not None else None


@pytest.fixture
def cocitation_source():
    """Factory for dict-backed co-citation sources."""
    return FakeCocitationSource
