"""
Gene Name Service

Symbol validation and UniProt cross-references from an HGNC-style table.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

# HGNC custom download headers, matched case-insensitively by prefix
APPROVED_COLUMN = "approved symbol"
PREVIOUS_COLUMN = "previous symbol"
SYNONYM_COLUMN = "synonym"
UNIPROT_COLUMN = "uniprot"


def _split_aliases(value) -> List[str]:
    if not isinstance(value, str):
        return []
    return [alias.strip() for alias in value.split(",") if alias.strip()]


class GeneNameService:
    """Gene-name authority: exact-match symbol validation and UniProt lookup."""

    def __init__(
        self,
        uniprot_ids: Optional[Dict[str, Optional[str]]] = None,
        aliases: Optional[Dict[str, Iterable[str]]] = None,
    ):
        """
        Initialize from in-memory tables.

        Args:
            uniprot_ids: approved symbol -> UniProt accession (or None)
            aliases: approved symbol -> previous symbols and synonyms
        """
        self.uniprot_ids: Dict[str, Optional[str]] = dict(uniprot_ids or {})
        self.alias_index: Dict[str, List[str]] = {}
        for approved, names in (aliases or {}).items():
            self.uniprot_ids.setdefault(approved, None)
            for alias in names:
                matches = self.alias_index.setdefault(alias, [])
                if approved not in matches:
                    matches.append(approved)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GeneNameService":
        """
        Load an HGNC custom download (tab-delimited, header row).

        Rows without an approved symbol are ignored.
        """
        table = pd.read_csv(path, sep='\t', dtype=str)
        columns = {col.lower(): col for col in table.columns}

        def find(prefix: str) -> Optional[str]:
            for lowered, original in columns.items():
                if lowered.startswith(prefix):
                    return original
            return None

        approved_col = find(APPROVED_COLUMN)
        if approved_col is None:
            raise ValueError(f"No '{APPROVED_COLUMN}' column in {path}")
        previous_col = find(PREVIOUS_COLUMN)
        synonym_col = find(SYNONYM_COLUMN)
        uniprot_col = find(UNIPROT_COLUMN)

        uniprot_ids: Dict[str, Optional[str]] = {}
        aliases: Dict[str, List[str]] = {}
        for _, row in table.iterrows():
            approved = row[approved_col]
            if not isinstance(approved, str) or not approved.strip():
                continue
            approved = approved.strip()
            uniprot = row[uniprot_col] if uniprot_col else None
            uniprot_ids[approved] = uniprot.strip() if isinstance(uniprot, str) and uniprot.strip() else None
            names = []
            if previous_col:
                names += _split_aliases(row[previous_col])
            if synonym_col:
                names += _split_aliases(row[synonym_col])
            aliases[approved] = names

        logger.info(f"Loaded {len(uniprot_ids)} approved gene symbols from {path}")
        return cls(uniprot_ids, aliases)

    def validate(self, symbol: str) -> List[str]:
        """
        Approved symbols matching the given symbol exactly.

        An approved symbol matches itself; otherwise every approved gene that
        lists the symbol as a previous symbol or synonym is returned.
        Empty list for unknown symbols.
        """
        if symbol in self.uniprot_ids:
            return [symbol]
        return list(self.alias_index.get(symbol, []))

    def is_valid(self, symbol: str) -> bool:
        return bool(self.validate(symbol))

    def uniprot_id(self, symbol: str) -> Optional[str]:
        """UniProt accession of the symbol; None when unknown or ambiguous."""
        matches = self.validate(symbol)
        if len(matches) != 1:
            return None
        return self.uniprot_ids.get(matches[0])
