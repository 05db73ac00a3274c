"""
PCViz CLI

Command-line interface for building co-citation weighted networks.
"""

import asyncio
import argparse
import json
import sys
import logging
from pathlib import Path
from typing import Optional

from ..core.config import Config, get_config
from ..core.exceptions import PCVizException


class ColoredFormatter(logging.Formatter):
    """User-friendly colored formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Simplify logger names for readability (keep only last component)
        record.name = record.name.split('.')[-1]

        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"

        return super().format(record)


def setup_cli_logging(config: Config, verbose: bool = False) -> None:
    """Colored console logging, or structured JSON logs when configured."""
    if config.structured_logging:
        from ..core.logging_config import setup_structured_logging
        setup_structured_logging("DEBUG" if verbose else config.log_level, config.log_file or None)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter('%(levelname)s %(name)s: %(message)s'))
    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else getattr(logging, config.log_level.upper()))


def _write_output(payload: bytes, output: Optional[str]) -> None:
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        print(f"💾 Network saved to: {path}", file=sys.stderr)
    else:
        sys.stdout.write(payload.decode("utf-8") + "\n")


async def run_network(args: argparse.Namespace, config: Config) -> int:
    """Build one network and print or save its JSON."""
    from ..core.graph_assembler import GraphAssembler
    from ..clients.pathway_commons import SifFileSource
    from ..models.data_models import GraphKind

    source = SifFileSource(args.sif_file) if args.sif_file else None
    assembler = GraphAssembler.from_config(config, interaction_source=source)

    result = await assembler.create_network(
        args.genes,
        GraphKind(args.kind),
        min_edge_cocitation=args.min_edge,
        min_node_cocitation=args.min_node,
        use_precomputed=not args.no_precomputed,
    )
    _write_output(result.to_json_bytes(), args.output)
    return 0


async def run_cocitations(args: argparse.Namespace, config: Config) -> int:
    """Print the co-citation map of one gene."""
    from ..clients.ihop_spider import IHOPSpider

    spider = IHOPSpider.from_config(config)
    counts = await spider.parse_cocitations(args.gene)
    if counts is None:
        print(f"❌ No co-citation data for {args.gene}", file=sys.stderr)
        return 1

    ranked = dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))
    print(json.dumps(ranked, indent=2))
    return 0


async def run_metadata(args: argparse.Namespace, config: Config) -> int:
    """Print Pathway Commons metadata of one type."""
    from ..clients.pathway_commons import PathwayCommonsClient

    client = PathwayCommonsClient.from_config(config)
    text = await client.metadata(args.datatype)
    if text is None:
        print(f"❌ No {args.datatype} metadata from Pathway Commons", file=sys.stderr)
        return 1

    sys.stdout.write(text if text.endswith("\n") else text + "\n")
    return 0


async def run_batch(args: argparse.Namespace, config: Config) -> int:
    """Run the networks listed in a YAML file."""
    from .yaml_runner import YAMLRunner

    runner = YAMLRunner(config)
    return await runner.run(args.file_path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pcviz",
        description="PCViz - co-citation weighted pathway networks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pcviz.cli network TP53 MDM2
  python -m pcviz.cli network TP53 --sif-file tp53.sif -o results/tp53.json
  python -m pcviz.cli cocitations TP53
  python -m pcviz.cli metadata datasources
  python -m pcviz.cli batch examples/networks.yaml
        """
    )
    parser.add_argument("--config", help="JSON or YAML configuration overrides")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    network = commands.add_parser("network", help="Build a network for one or more genes")
    network.add_argument("genes", nargs="+", help="Gene symbols")
    network.add_argument("--kind", default="neighborhood",
                         choices=["neighborhood", "pathsbetween", "pathsfromto", "commonstream"],
                         help="Graph query kind")
    network.add_argument("--sif-file", help="Read interactions from a local SIF file")
    network.add_argument("--min-edge", type=int, help="Minimum co-citations per interaction")
    network.add_argument("--min-node", type=int, help="Minimum total co-citations per gene")
    network.add_argument("--no-precomputed", action="store_true",
                         help="Ignore precomputed single-gene networks")
    network.add_argument("--output", "-o", help="Write JSON here instead of stdout")

    cocitations = commands.add_parser("cocitations", help="Show iHOP co-citations of a gene")
    cocitations.add_argument("gene", help="Gene symbol")

    metadata = commands.add_parser("metadata", help="Show Pathway Commons metadata")
    metadata.add_argument("datatype", help="Metadata type, e.g. datasources")

    batch = commands.add_parser("batch", help="Run networks listed in a YAML file")
    batch.add_argument("file_path", help="YAML batch file")

    return parser


COMMANDS = {
    "network": run_network,
    "cocitations": run_cocitations,
    "metadata": run_metadata,
    "batch": run_batch,
}


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.from_file(args.config) if args.config else get_config()
    except (PCVizException, OSError) as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 2

    setup_cli_logging(config, args.verbose)

    try:
        return asyncio.run(COMMANDS[args.command](args, config))
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted", file=sys.stderr)
        return 130
