"""
End-to-end network pipeline: iHOP pages -> scraper -> cache -> assembler.

The iHOP site and the Pathway Commons SIF response are served from memory.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from pcviz.cli import main
from pcviz.clients.ihop_spider import IHOPSpider
from pcviz.clients.pathway_commons import PathwayCommonsClient
from pcviz.core.cocitation_cache import CocitationCache
from pcviz.core.exceptions import TransportError
from pcviz.core.graph_assembler import GraphAssembler
from pcviz.core.retry import RetryConfig
from pcviz.models.data_models import Graph, GraphKind, InteractionRecord, PrecomputedNetwork
from pcviz.utils.id_mapping import GeneNameService
from pcviz.utils.precomputed import PrecomputedStore

SIF = "\n".join([
    "PARTICIPANT_A\tINTERACTION_TYPE\tPARTICIPANT_B\tINTERACTION_DATA_SOURCE\tINTERACTION_PUBMED_ID",
    "TP53\tcontrols-state-change-of\tMDM2\tReactome\t11900253",
    "MDM2\tcontrols-state-change-of\tTP53\tReactome;PID\t",
    "TP53\tcontrols-expression-of\tFOO\tPID\t",
    "",
])


class CountingSpider(IHOPSpider):
    """IHOPSpider that records every scrape."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.scraped = []

    async def parse_cocitations(self, symbol):
        self.scraped.append(symbol)
        return await super().parse_cocitations(symbol)


@pytest.fixture
def spider(ihop_site, ihop_url):
    return CountingSpider(ihop_url, fetcher=ihop_site)


@pytest.fixture
def pathway_commons():
    return PathwayCommonsClient("http://pc.test/pc2", fetcher=AsyncMock(return_value=SIF),
                                retry_config=RetryConfig(max_attempts=1))


@pytest.fixture
def assembler(spider, pathway_commons, tmp_path, test_config):
    return GraphAssembler(
        CocitationCache(spider),
        gene_names=GeneNameService({"TP53": "P04637", "MDM2": "Q00987", "FOO": None}),
        interaction_source=pathway_commons,
        precomputed=PrecomputedStore(tmp_path / "precalculated"),
        config=test_config,
    )


@pytest.mark.integration
class TestNetworkPipeline:

    @pytest.mark.asyncio
    async def test_tp53_mdm2_network(self, assembler, spider):
        graph = await assembler.create_network(["TP53", "MDM2"])

        assert isinstance(graph, Graph)
        assert graph.node_ids() == ["TP53", "MDM2"]
        assert [n.cited for n in graph.nodes] == [20, 15]
        assert [n.uniprot for n in graph.nodes] == ["P04637", "Q00987"]
        assert [(e.id, e.cited) for e in graph.edges] == [
            ("TP53-controls-state-change-of-MDM2", 10),
            ("MDM2-controls-state-change-of-TP53", 7),
        ]
        assert graph.edges[1].data_sources == ["Reactome", "PID"]
        # FOO has no iHOP page of its own and is dropped; every gene scraped once
        assert sorted(spider.scraped) == ["FOO", "MDM2", "TP53"]

    @pytest.mark.asyncio
    async def test_single_controls_interaction(self, assembler):
        graph = await assembler.build(
            ["TP53", "MDM2"],
            [InteractionRecord.from_sif("TP53", "controls-state-change-of", "MDM2")],
            min_edge_cocitation=3,
            min_node_cocitation=5,
        )

        assert [(n.id, n.cited, n.is_seed) for n in graph.nodes] == [
            ("TP53", 20, True), ("MDM2", 15, True),
        ]
        assert len(graph.edges) == 1
        edge = graph.edges[0]
        assert (edge.id, edge.cited, edge.is_directed) == ("TP53-controls-state-change-of-MDM2", 10, True)

    @pytest.mark.asyncio
    async def test_thresholds_applied_per_request(self, assembler, spider):
        strict = await assembler.create_network(["TP53", "MDM2"], min_edge_cocitation=8)
        assert [e.cited for e in strict.edges] == [10]

        none_left = await assembler.create_network(["MDM2", "TP53"], min_node_cocitation=16)
        assert none_left.edges == []
        assert none_left.node_ids() == ["MDM2", "TP53"]
        assert all(n.is_seed for n in none_left.nodes)

        assert len(spider.scraped) == 3

    @pytest.mark.asyncio
    async def test_query_failure_returns_seeds(self, assembler, pathway_commons):
        pathway_commons.fetcher.side_effect = TransportError("PathwayCommons", "u", "down")

        graph = await assembler.create_network(["TP53", "MDM2"], GraphKind.PATHSBETWEEN)

        assert graph.node_ids() == ["TP53", "MDM2"]
        assert graph.edges == []
        assert [n.cited for n in graph.nodes] == [20, 15]

    @pytest.mark.asyncio
    async def test_precompute_then_short_circuit(self, assembler, pathway_commons, spider):
        built = await assembler.create_network(["TP53"], use_precomputed=False)
        payload = built.to_json_bytes()
        await assembler.precomputed.write("P04637", payload)
        pathway_commons.fetcher.reset_mock()
        scraped = list(spider.scraped)

        result = await assembler.create_network(["TP53"])

        assert isinstance(result, PrecomputedNetwork)
        assert result.to_json_bytes() == payload
        pathway_commons.fetcher.assert_not_called()
        assert spider.scraped == scraped


@pytest.mark.integration
class TestCommandLine:

    def test_network_from_sif_file(self, tmp_path, ihop_site, ihop_url):
        sif = tmp_path / "tp53.sif"
        sif.write_text(SIF)
        config = tmp_path / "pcviz.yaml"
        config.write_text(f"ihop_url: {ihop_url}\nprecalculated_folder: {tmp_path / 'precalculated'}\n")
        output = tmp_path / "out" / "tp53.json"

        with patch("pcviz.clients.ihop_spider.PageFetcher", return_value=ihop_site):
            code = main(["--config", str(config), "network", "TP53", "MDM2",
                         "--sif-file", str(sif), "-o", str(output)])

        assert code == 0
        network = json.loads(output.read_text())
        assert [n["data"]["id"] for n in network["nodes"]] == ["TP53", "MDM2"]
        assert [e["data"]["cited"] for e in network["edges"]] == [10, 7]
        assert network["nodes"][0]["data"]["isseed"] is True
