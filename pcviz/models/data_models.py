"""
Pydantic Data Models

Interaction records, graph elements and resolution results shared by the
scraper, the co-citation cache and the graph assembler.
"""

import json
from enum import Enum
from typing import Dict, List, Mapping, Optional, Any, Union

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import GraphIntegrityError


# Co-cited gene symbol -> co-citation count. Stored read-only by the cache.
CocitationMap = Mapping[str, int]


class PropertyKey(str, Enum):
    """Property names used in the serialized node/edge data."""
    ID = "id"
    SOURCE = "source"
    TARGET = "target"
    CITED = "cited"
    ISVALID = "isvalid"
    ISSEED = "isseed"
    RANK = "rank"
    ALTERED = "altered"
    UNIPROT = "uniprot"
    ISDIRECTED = "isdirected"
    TYPE = "type"
    DATASOURCE = "datasource"
    PUBMED = "pubmed"

    def __str__(self):
        return self.value


class SIFType(str, Enum):
    """Pathway Commons SIF interaction types."""
    CONTROLS_STATE_CHANGE_OF = "controls-state-change-of"
    CONTROLS_TRANSPORT_OF = "controls-transport-of"
    CONTROLS_PHOSPHORYLATION_OF = "controls-phosphorylation-of"
    CONTROLS_EXPRESSION_OF = "controls-expression-of"
    CATALYSIS_PRECEDES = "catalysis-precedes"
    IN_COMPLEX_WITH = "in-complex-with"
    INTERACTS_WITH = "interacts-with"
    NEIGHBOR_OF = "neighbor-of"
    CONSUMPTION_CONTROLLED_BY = "consumption-controlled-by"
    CONTROLS_PRODUCTION_OF = "controls-production-of"
    CONTROLS_TRANSPORT_OF_CHEMICAL = "controls-transport-of-chemical"
    CHEMICAL_AFFECTS = "chemical-affects"
    REACTS_WITH = "reacts-with"
    USED_TO_PRODUCE = "used-to-produce"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def is_directed(self) -> bool:
        return self not in _UNDIRECTED_TYPES

    @classmethod
    def from_tag(cls, tag: str) -> Optional["SIFType"]:
        """Look up a type by its tag; None for tags this table does not know."""
        try:
            return cls(tag)
        except ValueError:
            return None


_UNDIRECTED_TYPES = frozenset({
    SIFType.IN_COMPLEX_WITH,
    SIFType.INTERACTS_WITH,
    SIFType.NEIGHBOR_OF,
    SIFType.REACTS_WITH,
})


def is_directed_tag(tag: str) -> bool:
    """Directedness of a SIF tag. Unknown tags are treated as undirected."""
    sif_type = SIFType.from_tag(tag)
    return sif_type.is_directed if sif_type else False


class GraphKind(str, Enum):
    """Pathway Commons graph query kinds."""
    NEIGHBORHOOD = "neighborhood"
    PATHSBETWEEN = "pathsbetween"
    PATHSFROMTO = "pathsfromto"
    COMMONSTREAM = "commonstream"


class InteractionRecord(BaseModel):
    """SIF-style interaction from the interaction-query collaborator."""
    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Source gene symbol")
    target: str = Field(..., description="Target gene symbol")
    interaction_type: str = Field(..., description="SIF type tag")
    directed: bool = Field(..., description="Whether the interaction is directed")
    data_sources: List[str] = Field(default_factory=list, description="Data source labels")
    publications: List[str] = Field(default_factory=list, description="Publication identifiers")

    @classmethod
    def from_sif(
        cls,
        source: str,
        interaction_type: str,
        target: str,
        data_sources: Optional[List[str]] = None,
        publications: Optional[List[str]] = None,
    ) -> "InteractionRecord":
        """Build a record from SIF columns, deriving directedness from the tag."""
        return cls(
            source=source,
            target=target,
            interaction_type=interaction_type,
            directed=is_directed_tag(interaction_type),
            data_sources=data_sources or [],
            publications=publications or [],
        )


class Node(BaseModel):
    """A gene in the assembled network."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Gene symbol")
    is_valid: bool = Field(..., description="Symbol is known to the gene-name authority")
    cited: int = Field(0, ge=0, description="Total co-citation count")
    is_seed: bool = Field(False, description="Gene was part of the query")
    uniprot: Optional[str] = Field(None, description="UniProt accession")
    rank: int = Field(0, description="Rank placeholder for the viewer")
    altered: int = Field(0, description="Alteration placeholder for the viewer")

    def to_data(self) -> Dict[str, Any]:
        return {
            PropertyKey.ID.value: self.id,
            PropertyKey.ISVALID.value: self.is_valid,
            PropertyKey.CITED.value: self.cited,
            PropertyKey.ISSEED.value: self.is_seed,
            PropertyKey.RANK.value: self.rank,
            PropertyKey.ALTERED.value: self.altered,
            PropertyKey.UNIPROT.value: self.uniprot,
        }


class Edge(BaseModel):
    """An interaction that survived co-citation filtering."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="source-type-target identifier")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    is_directed: bool = Field(..., description="Directed interaction")
    type: str = Field(..., description="SIF type tag")
    data_sources: List[str] = Field(default_factory=list, description="Data source labels")
    publications: List[str] = Field(default_factory=list, description="Publication identifiers")
    cited: int = Field(0, ge=0, description="Co-citation count between source and target")

    @staticmethod
    def make_id(source: str, interaction_type: str, target: str) -> str:
        return f"{source}-{interaction_type}-{target}"

    def to_data(self) -> Dict[str, Any]:
        return {
            PropertyKey.ID.value: self.id,
            PropertyKey.SOURCE.value: self.source,
            PropertyKey.TARGET.value: self.target,
            PropertyKey.ISDIRECTED.value: self.is_directed,
            PropertyKey.TYPE.value: self.type,
            PropertyKey.DATASOURCE.value: list(self.data_sources),
            PropertyKey.PUBMED.value: list(self.publications),
            PropertyKey.CITED.value: self.cited,
        }


class Graph(BaseModel):
    """Ordered nodes and edges produced by one assembly run."""
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def validate_integrity(self) -> None:
        """Raise GraphIntegrityError if an edge points outside the node set."""
        known = set(self.node_ids())
        for edge in self.edges:
            missing = {edge.source, edge.target} - known
            if missing:
                raise GraphIntegrityError(edge.id, missing)

    def to_cytoscape(self) -> Dict[str, List[Dict[str, Any]]]:
        """Cytoscape.js style structure: {"nodes": [{"data": ...}], "edges": [...]}"""
        return {
            "nodes": [{"data": node.to_data()} for node in self.nodes],
            "edges": [{"data": edge.to_data()} for edge in self.edges],
        }

    def to_json_bytes(self) -> bytes:
        return json.dumps(self.to_cytoscape()).encode("utf-8")

    def to_networkx(self) -> nx.MultiDiGraph:
        """Export as a networkx MultiDiGraph; edges are keyed by their type."""
        graph = nx.MultiDiGraph()
        for node in self.nodes:
            graph.add_node(node.id, **node.to_data())
        for edge in self.edges:
            graph.add_edge(edge.source, edge.target, key=edge.type, **edge.to_data())
        return graph


class PrecomputedNetwork(BaseModel):
    """A previously serialized network returned verbatim."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Store key (UniProt accession)")
    payload: bytes = Field(..., description="Serialized network, unmodified")

    def to_json_bytes(self) -> bytes:
        return self.payload


NetworkResult = Union[Graph, PrecomputedNetwork]


class ResolutionKind(str, Enum):
    """How a gene symbol was mapped to a source-internal identifier."""
    MATCHED_DIRECT = "matched_direct"
    MATCHED_BY_DISAMBIGUATION = "matched_by_disambiguation"
    UNRESOLVED = "unresolved"


class Resolution(BaseModel):
    """Tagged result of symbol resolution."""
    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="Queried gene symbol")
    kind: ResolutionKind = Field(..., description="Resolution outcome")
    internal_id: Optional[str] = Field(None, description="Source-internal identifier")
    candidates: List[str] = Field(default_factory=list, description="Candidate identifiers seen")
    reason: Optional[str] = Field(None, description="Why resolution failed")

    @property
    def resolved(self) -> bool:
        return self.kind != ResolutionKind.UNRESOLVED and self.internal_id is not None
