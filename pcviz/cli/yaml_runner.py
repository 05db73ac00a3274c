"""
YAML Runner

YAML-based batch execution: several network queries share one co-citation
cache, so genes common to several networks are scraped only once.

Example file:

    output_dir: results
    global_params:
      kind: neighborhood
      min_edge: 3
      min_node: 5
    networks:
      - name: tp53_mdm2
        genes: [TP53, MDM2]
      - name: brca1
        genes: [BRCA1]
        precompute: true
"""

import logging
import json
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime

import aiofiles
import yaml

from ..core.config import Config, get_config
from ..core.exceptions import PCVizException
from ..core.graph_assembler import GraphAssembler
from ..models.data_models import Graph, GraphKind

logger = logging.getLogger(__name__)

NETWORK_PARAMS = {'kind', 'min_edge', 'min_node', 'precompute'}


class YAMLRunner:
    """YAML-based batch executor for network queries."""

    def __init__(self, config: Optional[Config] = None, assembler: Optional[GraphAssembler] = None):
        """Initialize YAML runner."""
        self.config = config or get_config()
        self.assembler = assembler
        self.last_summary_path: Optional[Path] = None

    async def run(self, yaml_path: str) -> int:
        """
        Run the networks of a YAML batch file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Exit code (0 when every network succeeded, 1 otherwise)
        """
        batch = self._load_config(yaml_path)
        if batch is None:
            return 1

        if self.assembler is None:
            self.assembler = GraphAssembler.from_config(self.config)

        output_dir = Path(batch.get('output_dir', 'results'))
        results = await self._execute_networks(batch, output_dir)
        self.last_summary_path = await self._save_summary(results, output_dir, yaml_path)

        failed = [r for r in results if r['status'] != 'success']
        print(f"\n{'⚠️' if failed else '✅'} {len(results) - len(failed)}/{len(results)} networks completed")
        return 1 if failed else 0

    def _load_config(self, yaml_path: str) -> Optional[Dict[str, Any]]:
        """Load and validate YAML configuration."""
        yaml_file = Path(yaml_path)

        if not yaml_file.exists():
            print(f"❌ YAML file not found: {yaml_path}")
            return None

        logger.info(f"📄 Loading YAML batch from: {yaml_path}")

        try:
            with open(yaml_file, 'r') as f:
                batch = yaml.safe_load(f)
        except yaml.YAMLError as e:
            print(f"❌ YAML parsing error: {e}")
            return None

        errors = self.validate_batch(batch)
        if errors:
            print("❌ Batch file validation errors:")
            for error in errors:
                print(f"  - {error}")
            return None

        return batch

    @staticmethod
    def validate_batch(batch: Any) -> List[str]:
        """Structural checks of a batch file; returns a list of problems."""
        if not isinstance(batch, dict):
            return ["Batch file must contain a mapping"]

        networks = batch.get('networks')
        if not isinstance(networks, list) or not networks:
            return ["'networks' must be a non-empty list"]

        errors = []
        kinds = {kind.value for kind in GraphKind}
        global_params = batch.get('global_params') or {}
        for i, network in enumerate(networks, 1):
            if not isinstance(network, dict):
                errors.append(f"Network #{i} must be a mapping")
                continue
            genes = network.get('genes')
            if not isinstance(genes, list) or not genes or not all(isinstance(g, str) and g for g in genes):
                errors.append(f"Network #{i} needs a non-empty 'genes' list of symbols")
            params = {**global_params, **network}
            if params.get('kind', 'neighborhood') not in kinds:
                errors.append(f"Network #{i}: unknown kind {params.get('kind')!r}")
            for key in ('min_edge', 'min_node'):
                value = params.get(key)
                if value is not None and (not isinstance(value, int) or value < 0):
                    errors.append(f"Network #{i}: {key} must be a non-negative integer")
            if params.get('precompute') and isinstance(genes, list) and len(genes) != 1:
                errors.append(f"Network #{i}: only single-gene networks can be precomputed")
        return errors

    async def _execute_networks(self, batch: Dict[str, Any], output_dir: Path) -> List[Dict[str, Any]]:
        """Execute all networks sequentially."""
        global_params = batch.get('global_params') or {}
        networks = batch['networks']
        results = []

        logger.info(f"⚡ Starting execution of {len(networks)} network(s)")

        for i, network in enumerate(networks, 1):
            params = {**global_params, **network}
            genes = params['genes']
            name = params.get('name') or "_".join(genes)
            print(f"[{i}/{len(networks)}] Building: {name}")

            try:
                result = await self.assembler.create_network(
                    genes,
                    GraphKind(params.get('kind', 'neighborhood')),
                    min_edge_cocitation=params.get('min_edge'),
                    min_node_cocitation=params.get('min_node'),
                    use_precomputed=not params.get('precompute', False),
                )
                payload = result.to_json_bytes()
                output_path = output_dir / f"{name}.json"
                await self._write(output_path, payload)

                result_data = {
                    'name': name,
                    'genes': genes,
                    'status': 'success',
                    'output': str(output_path),
                    'execution_time': datetime.now().isoformat(),
                }
                if isinstance(result, Graph):
                    result_data['nodes'] = len(result.nodes)
                    result_data['edges'] = len(result.edges)

                if params.get('precompute'):
                    result_data['precomputed'] = await self._precompute(genes[0], payload)

                results.append(result_data)
                print(f"  ✅ Saved to {output_path}")

            except (PCVizException, OSError) as e:
                print(f"  ❌ Failed: {e}")
                logger.error(f"Network {name} failed: {e}")
                results.append({
                    'name': name,
                    'genes': genes,
                    'status': 'failed',
                    'error': str(e),
                    'error_type': type(e).__name__,
                })

        return results

    async def _precompute(self, gene: str, payload: bytes) -> Optional[str]:
        """Store a single-gene network under its UniProt ID."""
        store = self.assembler.precomputed
        gene_names = self.assembler.gene_names
        uniprot_id = gene_names.uniprot_id(gene) if gene_names else None
        if store is None or not uniprot_id:
            logger.warning(f"Cannot precompute {gene}: no UniProt ID or no precalculated folder")
            return None
        path = await store.write(uniprot_id, payload)
        return str(path)

    @staticmethod
    async def _write(path: Path, payload: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, 'wb') as f:
            await f.write(payload)

    async def _save_summary(self, results: List[Dict[str, Any]], output_dir: Path, yaml_path: str) -> Path:
        summary = {
            'batch_file': yaml_path,
            'completed_at': datetime.now().isoformat(),
            'cache': self.assembler.cache.stats(),
            'results': results,
        }
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = output_dir / f"batch_summary_{timestamp}.json"
        await self._write(path, json.dumps(summary, indent=2, default=str).encode("utf-8"))
        logger.info(f"✅ Batch summary saved to {path}")
        return path
