"""
Co-citation Graph Assembler

Merges a raw interaction list with co-citation statistics, drops weakly
co-cited interactions and builds the node/edge graph shown by the viewer.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence, Set

from .cocitation_cache import CocitationCache
from .config import Config, get_config
from .exceptions import InteractionQueryError, PrecomputedResultError
from .logging_config import bind_query, log_execution_time, log_with_context
from ..models.data_models import (
    Edge,
    Graph,
    GraphKind,
    InteractionRecord,
    NetworkResult,
    Node,
    PrecomputedNetwork,
)
from ..utils.id_mapping import GeneNameService
from ..utils.precomputed import PrecomputedStore

logger = logging.getLogger(__name__)


class GraphAssembler:
    """
    Builds co-citation weighted networks.

    Interactions whose edge co-citation or endpoint total co-citations fall
    below the configured minimums contribute neither nodes nor edges. A query
    that ends up with no nodes is answered with its seed genes as
    disconnected nodes.
    """

    def __init__(
        self,
        cache: CocitationCache,
        gene_names: Optional[GeneNameService] = None,
        interaction_source=None,
        precomputed: Optional[PrecomputedStore] = None,
        config: Optional[Config] = None,
    ):
        """
        Initialize the assembler.

        Args:
            cache: Shared co-citation cache
            gene_names: Gene-name authority; without one every symbol is
                considered valid and has no UniProt ID
            interaction_source: Interaction-query collaborator (query(genes, kind))
            precomputed: Store of precomputed single-gene networks
            config: Configuration (defaults to the global configuration)
        """
        config = config or get_config()
        self.cache = cache
        self.gene_names = gene_names
        self.interaction_source = interaction_source
        self.precomputed = precomputed
        self.min_edge_cocitation = config.cocitation_min_edge
        self.min_node_cocitation = config.cocitation_min_node
        self.max_concurrent_scrapes = config.get('max_concurrent_scrapes', 8)

    @classmethod
    def from_config(cls, config: Optional[Config] = None, interaction_source=None) -> "GraphAssembler":
        """
        Wire the default collaborators: iHOP scraper behind a fresh cache,
        Pathway Commons interactions, the precalculated folder and, when
        configured, the gene names file.
        """
        from ..clients.ihop_spider import IHOPSpider
        from ..clients.pathway_commons import PathwayCommonsClient

        config = config or get_config()
        gene_names = None
        if config.gene_names_file:
            gene_names = GeneNameService.from_file(config.gene_names_file)

        return cls(
            cache=CocitationCache(IHOPSpider.from_config(config)),
            gene_names=gene_names,
            interaction_source=interaction_source or PathwayCommonsClient.from_config(config),
            precomputed=PrecomputedStore(config.precalculated_folder),
            config=config,
        )

    # ------------------------------------------------------------------
    # node / edge construction
    # ------------------------------------------------------------------

    def _is_valid(self, symbol: str) -> bool:
        if self.gene_names is None:
            return True
        return bool(self.gene_names.validate(symbol))

    def _uniprot_id(self, symbol: str) -> Optional[str]:
        if self.gene_names is None:
            return None
        return self.gene_names.uniprot_id(symbol)

    def _create_node(self, symbol: str, total_cocitations: int, seeds: Set[str]) -> Node:
        is_valid = self._is_valid(symbol)
        return Node(
            id=symbol,
            is_valid=is_valid,
            # an unknown symbol never carries citation weight
            cited=total_cocitations if is_valid else 0,
            is_seed=symbol in seeds,
            uniprot=self._uniprot_id(symbol),
        )

    @staticmethod
    def _create_edge(record: InteractionRecord, edge_cocitations: int) -> Edge:
        return Edge(
            id=Edge.make_id(record.source, record.interaction_type, record.target),
            source=record.source,
            target=record.target,
            is_directed=record.directed,
            type=record.interaction_type,
            data_sources=list(record.data_sources),
            publications=list(record.publications),
            cited=edge_cocitations,
        )

    async def _prefetch(self, genes: Iterable[str]) -> None:
        """Warm the cache for all genes, a bounded number of scrapes at a time."""
        pending = [gene for gene in dict.fromkeys(genes) if gene not in self.cache]
        if not pending:
            return
        semaphore = asyncio.Semaphore(max(1, self.max_concurrent_scrapes))

        async def fetch(gene: str) -> None:
            async with semaphore:
                await self.cache.get(gene)

        await asyncio.gather(*(fetch(gene) for gene in pending))

    # ------------------------------------------------------------------
    # assembly
    # ------------------------------------------------------------------

    async def build(
        self,
        query_genes: Iterable[str],
        interactions: Sequence[InteractionRecord],
        min_edge_cocitation: Optional[int] = None,
        min_node_cocitation: Optional[int] = None,
    ) -> Graph:
        """
        Build the co-citation weighted graph.

        Args:
            query_genes: Seed genes of the query
            interactions: Raw interactions, in the order they should appear
            min_edge_cocitation: Minimum co-citations between source and target
            min_node_cocitation: Minimum total co-citations of each endpoint

        Returns:
            Graph with nodes in first-encounter order and edges in input order
        """
        min_edge = self.min_edge_cocitation if min_edge_cocitation is None else min_edge_cocitation
        min_node = self.min_node_cocitation if min_node_cocitation is None else min_node_cocitation

        seeds: List[str] = list(dict.fromkeys(query_genes))
        seed_set = set(seeds)
        interactions = list(interactions)

        await self._prefetch(
            symbol for record in interactions for symbol in (record.source, record.target)
        )

        graph = Graph()
        seen: Set[str] = set()
        dropped = 0

        for record in interactions:
            edge_co = await self.cache.cocitation_count(record.source, record.target)
            src_co = await self.cache.total_cocitations(record.source)
            tgt_co = await self.cache.total_cocitations(record.target)

            if edge_co < min_edge or src_co < min_node or tgt_co < min_node:
                dropped += 1
                continue

            for symbol, total in ((record.source, src_co), (record.target, tgt_co)):
                if symbol not in seen:
                    seen.add(symbol)
                    graph.nodes.append(self._create_node(symbol, total, seed_set))

            graph.edges.append(self._create_edge(record, edge_co))

        if not graph.nodes:
            # add the query genes, to be displayed as disconnected nodes
            for gene in seeds:
                total = await self.cache.total_cocitations(gene)
                graph.nodes.append(self._create_node(gene, total, seed_set))

        graph.validate_integrity()

        log_with_context(
            logger, "info",
            f"Built network: {len(graph.nodes)} nodes, {len(graph.edges)} edges "
            f"({dropped} of {len(interactions)} interactions below co-citation thresholds)",
            seeds=list(seeds),
            nodes=len(graph.nodes),
            edges=len(graph.edges),
            dropped=dropped,
            min_edge_cocitation=min_edge,
            min_node_cocitation=min_node,
        )
        return graph

    async def _read_precomputed(self, gene: str) -> Optional[PrecomputedNetwork]:
        uniprot_id = self._uniprot_id(gene)
        if not uniprot_id:
            return None
        try:
            payload = await self.precomputed.read(uniprot_id)
        except PrecomputedResultError as e:
            logger.error(f"Problem reading precomputed network for {gene}: {e}. "
                         f"Falling back to normal method.")
            return None
        if payload is None:
            return None
        logger.debug(f"Found precomputed network for {gene}: {uniprot_id}.json")
        return PrecomputedNetwork(key=uniprot_id, payload=payload)

    @log_execution_time(logger)
    async def create_network(
        self,
        query_genes: Iterable[str],
        kind: GraphKind = GraphKind.NEIGHBORHOOD,
        min_edge_cocitation: Optional[int] = None,
        min_node_cocitation: Optional[int] = None,
        use_precomputed: bool = True,
    ) -> NetworkResult:
        """
        Answer a network query.

        A single-gene query with a precomputed network is answered with that
        network, unmodified, without querying interactions. Otherwise
        interactions are fetched and run through build(); a failed
        interaction query yields the seed-only graph.

        Args:
            query_genes: Seed genes
            kind: Graph query kind
            min_edge_cocitation: Overrides the configured edge minimum
            min_node_cocitation: Overrides the configured node minimum
            use_precomputed: Set False to always rebuild (used when precomputing)
        """
        genes = list(dict.fromkeys(query_genes))
        bind_query(genes, kind.value)

        if use_precomputed and len(genes) == 1 and self.precomputed is not None:
            precomputed = await self._read_precomputed(genes[0])
            if precomputed is not None:
                return precomputed

        interactions: List[InteractionRecord] = []
        if self.interaction_source is None:
            logger.warning("No interaction source configured; returning query genes only")
        else:
            try:
                interactions = await self.interaction_source.query(genes, kind)
            except InteractionQueryError as e:
                logger.info(f"Interaction query error / no data; {kind.value}, source: {genes}; {e}")

        return await self.build(genes, interactions, min_edge_cocitation, min_node_cocitation)
