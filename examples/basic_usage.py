"""
Basic Usage Example

Builds a TP53 / MDM2 network from Pathway Commons weighted by iHOP
co-citations and prints the strongest interactions.
"""

import asyncio

from pcviz.core.config import get_config, configure_logging
from pcviz.core.graph_assembler import GraphAssembler
from pcviz.models.data_models import GraphKind


async def main():
    """Main example function."""
    print("🧬 PCViz - Basic Usage Example")
    print("=" * 50)

    config = get_config()
    configure_logging(config)
    assembler = GraphAssembler.from_config(config)

    # Example 1: co-citations of a single gene
    print("\n🔍 Example 1: Co-citations of TP53")
    print("-" * 30)
    counts = await assembler.cache.get("TP53")
    if counts is None:
        print("No co-citation data (iHOP unreachable or symbol unknown)")
    else:
        top = sorted(counts.items(), key=lambda item: -item[1])[:5]
        for symbol, count in top:
            print(f"  {symbol}: {count}")

    # Example 2: network around two genes
    print("\n🕸️ Example 2: Network")
    print("-" * 30)
    graph = await assembler.create_network(["TP53", "MDM2"], GraphKind.NEIGHBORHOOD)
    print(f"{len(graph.nodes)} nodes, {len(graph.edges)} edges")
    for edge in sorted(graph.edges, key=lambda e: -e.cited)[:5]:
        print(f"  {edge.id}: {edge.cited} co-citations")

    # Example 3: networkx export
    nx_graph = graph.to_networkx()
    print(f"\nnetworkx degree of TP53: {nx_graph.degree('TP53') if 'TP53' in nx_graph else 0}")

    print(f"\nCache: {assembler.cache.stats()}")


if __name__ == "__main__":
    asyncio.run(main())
