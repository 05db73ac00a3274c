"""
iHOP Co-citation Scraper

Parses gene co-citation counts out of the iHOP web pages. iHOP publishes no
API, so the pages are scanned line by line for literal markers. Every marker
lives in IHOP_MARKERS; a layout change on the iHOP side should only require
touching that table.

Resolution works in two phases:
1. the search page is scanned for an exact ``<B>SYMBOL</B>`` match whose
   internal ID can be read directly;
2. otherwise every candidate ID seen on the search page is checked by reading
   the gene symbol from its own gene page title.
"""

import logging
import urllib.parse
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.config import Config, DEFAULT_IHOP_URL
from ..core.exceptions import TransportError, ResolutionError, format_error_for_logging
from ..models.data_models import Resolution, ResolutionKind
from ..utils.http import Fetcher, PageFetcher

logger = logging.getLogger(__name__)

IHOP_SOURCE = "iHOP"
HUMAN_TAXON_ID = 9606


@dataclass(frozen=True)
class IHOPMarkers:
    """Literal anchors of the iHOP page layout."""
    # search page
    exact_match: str = "<B>{symbol}</B>"
    symbol_close: str = "</SYMBOL>"
    candidate_row: str = '<TD nowrap="1"'
    action_call: str = "doaction(null, "
    action_end: str = ", 1"
    # gene page
    cocitation_row: str = '           hstore(new Array("type", "GENE"'
    cocited_symbol_start: str = 'symbol", "'
    cocited_symbol_end: str = '", "name'
    count_start: str = ' "'
    count_end: str = '"'
    title: str = "<title>"
    title_symbol_start: str = "["
    title_symbol_end: str = "]"


IHOP_MARKERS = IHOPMarkers()


# =============================================================================
# Page parsing
# =============================================================================

def extract_internal_id(line: str, markers: IHOPMarkers = IHOP_MARKERS) -> Optional[str]:
    """Read the internal ID out of a ``doaction(null, ID, 1...)`` call on a line."""
    index = line.find(markers.action_call)
    if index < 0:
        return None
    start = index + len(markers.action_call)
    end = line.rfind(markers.action_end)
    if end <= start:
        return None
    return line[start:end]


def scan_search_page(text: str, symbol: str,
                     markers: IHOPMarkers = IHOP_MARKERS) -> Tuple[Optional[str], List[str]]:
    """
    Scan a search results page.

    Args:
        text: Search page content
        symbol: Gene symbol that was searched for

    Returns:
        (exact-match internal ID or None, candidate IDs in encounter order).
        Scanning stops at the first exact match.
    """
    exact_line = markers.exact_match.format(symbol=symbol)
    candidates: List[str] = []
    lines: Iterator[str] = iter(text.splitlines())

    for line in lines:
        if line.startswith(markers.candidate_row):
            candidate = extract_internal_id(line, markers)
            if candidate:
                candidates.append(candidate)

        if line == exact_line:
            # The symbol echo must be closed on the very next line,
            # and the line after that carries the ID.
            line = next(lines, None)
            if line != markers.symbol_close:
                continue

            line = next(lines, None)
            if line is None:
                break

            internal_id = extract_internal_id(line, markers)
            if internal_id:
                return internal_id, candidates

    return None, candidates


def parse_title_symbol(text: str, markers: IHOPMarkers = IHOP_MARKERS) -> Optional[str]:
    """Gene symbol shown in a gene page title, e.g. ``<title>... [TP53] ...``."""
    for line in text.splitlines():
        if line.startswith(markers.title):
            start = line.find(markers.title_symbol_start)
            end = line.find(markers.title_symbol_end)
            if 0 < start < end:
                return line[start + 1:end].strip()
    return None


def parse_cocitation_rows(text: str, markers: IHOPMarkers = IHOP_MARKERS) -> Dict[str, int]:
    """
    Parse co-citation rows of a gene page.

    Lines that are not co-citation rows are ignored. A malformed row is
    skipped without aborting the rest of the page.
    """
    counts: Dict[str, int] = {}
    for line in text.splitlines():
        if not line.startswith(markers.cocitation_row):
            continue
        try:
            sym_start = line.index(markers.cocited_symbol_start) + len(markers.cocited_symbol_start)
            sym_end = line.index(markers.cocited_symbol_end)
            cnt_start = line.rindex(markers.count_start) + len(markers.count_start)
            cnt_end = line.rindex(markers.count_end)
            symbol = line[sym_start:sym_end]
            count = int(line[cnt_start:cnt_end])
        except ValueError:
            logger.debug(f"Skipping malformed co-citation row: {line.strip()[:120]}")
            continue
        if not symbol or sym_end < sym_start or count < 0:
            logger.debug(f"Skipping malformed co-citation row: {line.strip()[:120]}")
            continue
        counts[symbol] = count
    return counts


# =============================================================================
# Scraper
# =============================================================================

class IHOPSpider:
    """
    Gets co-citation data from the iHOP server.

    Each fetch is a single attempt; any transport failure is logged and
    reported as "no data" for the step it occurred in.
    """

    def __init__(
        self,
        ihop_url: str = DEFAULT_IHOP_URL,
        fetcher: Optional[Fetcher] = None,
        timeout: float = 30.0,
        user_agent: str = "pcviz/0.1",
        markers: IHOPMarkers = IHOP_MARKERS,
    ):
        """
        Initialize the scraper.

        Args:
            ihop_url: Base URL of the iHOP gene pages
            fetcher: Async callable url -> page text (defaults to a PageFetcher)
            timeout: Request timeout in seconds for the default fetcher
            user_agent: User-Agent header for the default fetcher
            markers: Page layout anchors
        """
        self.ihop_url = ihop_url
        self.fetcher = fetcher or PageFetcher(IHOP_SOURCE, timeout=timeout, user_agent=user_agent)
        self.markers = markers

    @classmethod
    def from_config(cls, config: Config, fetcher: Optional[Fetcher] = None) -> "IHOPSpider":
        return cls(
            ihop_url=config.ihop_url,
            fetcher=fetcher,
            timeout=config.http_timeout,
            user_agent=config.user_agent,
        )

    def gene_search_url(self, symbol: str) -> str:
        query = urllib.parse.quote(symbol, safe="")
        return f"{self.ihop_url}?field=synonym&ncbi_tax_id={HUMAN_TAXON_ID}&search={query}"

    def gene_page_url(self, internal_id: str) -> str:
        return f"{self.ihop_url.rstrip('/')}/gs/{internal_id}.html?list=1&page=1"

    async def _fetch(self, url: str) -> Optional[str]:
        try:
            return await self.fetcher(url)
        except TransportError as e:
            logger.warning(f"iHOP fetch failed: {e}",
                           extra={"extra_fields": format_error_for_logging(e)})
            return None

    async def symbol_of_id(self, internal_id: str) -> Optional[str]:
        """Gene symbol shown on the gene page of an internal ID."""
        text = await self._fetch(self.gene_page_url(internal_id))
        if text is None:
            return None
        return parse_title_symbol(text, self.markers)

    async def resolve_symbol(self, symbol: str) -> Resolution:
        """
        Map a gene symbol to its iHOP internal ID.

        Returns:
            Resolution tagged MATCHED_DIRECT, MATCHED_BY_DISAMBIGUATION or UNRESOLVED
        """
        text = await self._fetch(self.gene_search_url(symbol))
        if text is None:
            return Resolution(symbol=symbol, kind=ResolutionKind.UNRESOLVED,
                              reason="search page unavailable")

        internal_id, candidates = scan_search_page(text, symbol, self.markers)
        if internal_id:
            return Resolution(symbol=symbol, kind=ResolutionKind.MATCHED_DIRECT,
                              internal_id=internal_id, candidates=candidates)

        # check the encountered internal IDs to see if they map to the symbol
        for candidate in dict.fromkeys(candidates):
            if await self.symbol_of_id(candidate) == symbol:
                return Resolution(symbol=symbol, kind=ResolutionKind.MATCHED_BY_DISAMBIGUATION,
                                  internal_id=candidate, candidates=candidates)

        return Resolution(symbol=symbol, kind=ResolutionKind.UNRESOLVED, candidates=candidates,
                          reason="no exact match and no candidate page shows the symbol")

    async def parse_cocitations(self, symbol: str) -> Optional[Dict[str, int]]:
        """
        Gets the co-citation data of a gene.

        Args:
            symbol: symbol of the gene of interest

        Returns:
            map from co-cited gene symbol to count, or None if the gene cannot
            be resolved or a page cannot be fetched
        """
        resolution = await self.resolve_symbol(symbol)
        if not resolution.resolved:
            error = ResolutionError(symbol, resolution.reason or "unresolved", resolution.candidates)
            logger.debug(str(error))
            return None

        logger.debug(f"Resolved {symbol} to iHOP ID {resolution.internal_id} ({resolution.kind.value})")

        text = await self._fetch(self.gene_page_url(resolution.internal_id))
        if text is None:
            return None

        counts = parse_cocitation_rows(text, self.markers)
        logger.debug(f"Parsed {len(counts)} co-citations for {symbol}")
        return counts

    resolve = parse_cocitations
