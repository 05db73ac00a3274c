"""
Precomputed Network Store

Single-gene networks serialized ahead of time, one ``{uniprot}.json`` file per
gene in the precalculated folder.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

import aiofiles

from ..core.exceptions import PrecomputedResultError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class PrecomputedStore:
    """File-backed store of serialized networks keyed by UniProt accession."""

    def __init__(self, folder: Union[str, Path]):
        self.folder = Path(folder)

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key in (".", ".."):
            raise PrecomputedResultError(key, str(self.folder), "invalid key")
        return self.folder / f"{key}.json"

    def exists(self, key: Optional[str]) -> bool:
        if not key:
            return False
        try:
            return self.path_for(key).is_file()
        except PrecomputedResultError:
            return False

    async def read(self, key: Optional[str]) -> Optional[bytes]:
        """
        Serialized network for the key, None if nothing was precomputed.

        Raises:
            PrecomputedResultError: the file exists but cannot be read
        """
        if not key or not self.exists(key):
            return None
        path = self.path_for(key)
        try:
            async with aiofiles.open(path, 'rb') as f:
                payload = await f.read()
        except OSError as e:
            raise PrecomputedResultError(key, str(path), str(e)) from e
        logger.debug(f"Found precomputed network {path.name}")
        return payload

    async def write(self, key: str, payload: bytes) -> Path:
        """Store a serialized network and return its path."""
        path = self.path_for(key)
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'wb') as f:
                await f.write(payload)
        except OSError as e:
            raise PrecomputedResultError(key, str(path), str(e)) from e
        logger.info(f"Saved precomputed network to {path}")
        return path
