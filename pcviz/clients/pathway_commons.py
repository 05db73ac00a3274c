"""
Pathway Commons Interaction Query

Fetches SIF-style interactions around the query genes from the Pathway Commons
graph web service and parses the extended-SIF text into InteractionRecords.
"""

import logging
import urllib.parse
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Union

from ..core.config import Config, DEFAULT_PATHWAYCOMMONS_URL
from ..core.exceptions import InteractionQueryError, TransportError, format_error_for_logging
from ..core.retry import RetryConfig, retry_async_operation
from ..models.data_models import GraphKind, InteractionRecord
from ..utils.http import Fetcher, PageFetcher

logger = logging.getLogger(__name__)

PATHWAYCOMMONS_SOURCE = "PathwayCommons"

DEFAULT_PATTERNS = (
    "CONTROLS_STATE_CHANGE_OF",
    "CONTROLS_EXPRESSION_OF",
    "CATALYSIS_PRECEDES",
)

SIF_HEADER_FIRST_COLUMN = "PARTICIPANT_A"


class InteractionSource(Protocol):
    """Interaction-query collaborator used by the graph assembler."""

    async def query(self, genes: Sequence[str], kind: GraphKind) -> List[InteractionRecord]:
        ...


def _split_list(value: str) -> List[str]:
    return [token for token in value.split(";") if token]


def parse_sif_text(text: str) -> List[InteractionRecord]:
    """
    Parse Pathway Commons extended SIF text.

    The header line is skipped; the first blank line ends the interaction
    section (the node description section that follows is ignored). Columns:
    source, type, target, data sources (';'), publications (';').
    """
    records: List[InteractionRecord] = []
    lines = text.splitlines()
    if lines and lines[0].split("\t", 1)[0] == SIF_HEADER_FIRST_COLUMN:
        logger.debug(lines[0])
        lines = lines[1:]

    for line in lines:
        if not line.strip():
            break

        # keep empty tokens from '\t\t' and a trailing tab
        sif = line.split("\t")
        if len(sif) < 3 or not sif[0] or not sif[2]:
            logger.debug(f"Skipping malformed SIF line: {line[:120]}")
            continue

        records.append(InteractionRecord.from_sif(
            source=sif[0],
            interaction_type=sif[1],
            target=sif[2],
            data_sources=_split_list(sif[3]) if len(sif) > 3 else [],
            publications=_split_list(sif[4]) if len(sif) > 4 else [],
        ))
    return records


class PathwayCommonsClient:
    """Graph queries against the Pathway Commons web service."""

    def __init__(
        self,
        base_url: str = DEFAULT_PATHWAYCOMMONS_URL,
        fetcher: Optional[Fetcher] = None,
        timeout: float = 30.0,
        user_agent: str = "pcviz/0.1",
        retry_config: Optional[RetryConfig] = None,
        patterns: Iterable[str] = DEFAULT_PATTERNS,
    ):
        self.base_url = base_url.rstrip('/')
        self.fetcher = fetcher or PageFetcher(PATHWAYCOMMONS_SOURCE, timeout=timeout, user_agent=user_agent)
        self.retry_config = retry_config or RetryConfig()
        self.patterns = tuple(patterns)
        self._metadata: Dict[str, str] = {}

    @classmethod
    def from_config(cls, config: Config, fetcher: Optional[Fetcher] = None) -> "PathwayCommonsClient":
        return cls(
            base_url=config.pathwaycommons_url,
            fetcher=fetcher,
            timeout=config.http_timeout,
            user_agent=config.user_agent,
            retry_config=RetryConfig(max_attempts=config.query_max_retries),
        )

    def graph_url(self, genes: Sequence[str], kind: GraphKind) -> str:
        params = [("source", gene) for gene in genes]
        params.append(("kind", kind.value))
        params += [("pattern", pattern) for pattern in self.patterns]
        params.append(("format", "TXT"))
        return f"{self.base_url}/graph?{urllib.parse.urlencode(params)}"

    async def query(self, genes: Sequence[str], kind: GraphKind = GraphKind.NEIGHBORHOOD) -> List[InteractionRecord]:
        """
        Interactions around the genes.

        Raises:
            InteractionQueryError: the service could not be reached
        """
        url = self.graph_url(genes, kind)
        try:
            text = await retry_async_operation(
                self.fetcher, url,
                config=self.retry_config,
                operation_name="pathwaycommons_graph"
            )
        except TransportError as e:
            raise InteractionQueryError(genes, kind.value, str(e), e) from e

        if not text or not text.strip():
            return []

        records = parse_sif_text(text)
        logger.debug(f"Pathway Commons returned {len(records)} interactions for {','.join(genes)}")
        return records

    def metadata_url(self, datatype: str) -> str:
        return f"{self.base_url}/metadata/{urllib.parse.quote(datatype, safe='')}"

    async def metadata(self, datatype: str) -> Optional[str]:
        """
        Service metadata of one type (e.g. "datasources"), as published.

        Successful answers are kept for the lifetime of the client. A failed
        fetch is logged and returns None without being remembered.
        """
        if datatype in self._metadata:
            return self._metadata[datatype]

        url = self.metadata_url(datatype)
        try:
            text = await self.fetcher(url)
        except TransportError as e:
            logger.warning(f"Pathway Commons metadata unavailable: {e}",
                           extra={"extra_fields": format_error_for_logging(e)})
            return None

        self._metadata[datatype] = text
        return text


class SifFileSource:
    """Interactions read from a local SIF file, regardless of the query."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def query(self, genes: Sequence[str], kind: GraphKind = GraphKind.NEIGHBORHOOD) -> List[InteractionRecord]:
        try:
            text = self.path.read_text()
        except OSError as e:
            raise InteractionQueryError(genes, kind.value, f"cannot read {self.path}: {e}", e) from e
        return parse_sif_text(text)
