"""
Co-citation Cache

Process-lifetime memoization of gene -> co-citation map. The scraper is hit at
most once per gene, failed lookups included. Population is single-flight per
key: concurrent lookups of the same gene wait for the first one.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Dict, Optional, Protocol

from ..models.data_models import CocitationMap

logger = logging.getLogger(__name__)


class CocitationSource(Protocol):
    """Anything that can scrape co-citations for a gene (IHOPSpider)."""

    async def parse_cocitations(self, symbol: str) -> Optional[Dict[str, int]]:
        ...


class CocitationCache:
    """In-memory co-citation cache shared by all concurrent network requests."""

    def __init__(self, source: CocitationSource):
        self.source = source
        self._entries: Dict[str, Optional[CocitationMap]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self.hits = 0
        self.misses = 0
        self.scrapes = 0

    def __contains__(self, gene: str) -> bool:
        return gene in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, gene: str) -> Optional[CocitationMap]:
        """
        Co-citations of the given gene; scrapes on first access.

        Returns:
            read-only map from co-cited gene to count, or None when the gene
            has no co-citation data (memoized as well)
        """
        if gene in self._entries:
            self.hits += 1
            return self._entries[gene]

        lock = self._locks.setdefault(gene, asyncio.Lock())
        try:
            async with lock:
                # another request may have filled the entry while we waited
                if gene in self._entries:
                    self.hits += 1
                    return self._entries[gene]

                self.misses += 1
                self.scrapes += 1
                counts = await self.source.parse_cocitations(gene)
                entry = MappingProxyType(dict(counts)) if counts is not None else None
                self._entries[gene] = entry
        finally:
            self._locks.pop(gene, None)

        if entry is None:
            logger.debug(f"No co-citation data for {gene}")
        return entry

    async def cocitation_count(self, gene1: str, gene2: str) -> int:
        """Co-citations of gene2 on gene1's page, 0 when unknown."""
        counts = await self.get(gene1)
        if counts is None:
            return 0
        return counts.get(gene2, 0)

    async def total_cocitations(self, gene: str) -> int:
        """
        Total co-citations of a gene. This value is useful for co-citation
        count normalization purposes.
        """
        counts = await self.get(gene)
        if counts is None:
            return 0
        return sum(counts.values())

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def stats(self) -> Dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            'size': len(self._entries),
            'absent': sum(1 for v in self._entries.values() if v is None),
            'hits': self.hits,
            'misses': self.misses,
            'scrapes': self.scrapes,
            'hit_rate': self.hits / lookups if lookups else 0.0,
        }
