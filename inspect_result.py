#!/usr/bin/env python3
"""Inspect how a saved query result is modeled.

Usage:
    python inspect_result.py result.json
    python inspect_result.py result.json --schema schema.txt
    python inspect_result.py result.json --layout --json
    python inspect_result.py result.json --iterations 100 --seed 7
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd

from dgraph_lens import EngineSettings, ModelingEngine


def nodes_frame(engine: ModelingEngine) -> pd.DataFrame:
    """Tabulate graph nodes with their connection counts."""
    rows = [
        {
            "id": node.id,
            "label": node.label,
            "type": node.type or "unknown",
            "color": node.color,
            "x": node.x,
            "y": node.y,
        }
        for node in engine.graph
    ]
    df = pd.DataFrame(rows, columns=["id", "label", "type", "color", "x", "y"])
    if not df.empty:
        df["connections"] = df["id"].apply(lambda node_id: len(engine.graph.neighbors(node_id)))
        for column in ("x", "y"):
            df[column] = df[column].apply(lambda v: f"{v:.3f}" if pd.notna(v) else "-")
    return df


def edges_frame(engine: ModelingEngine) -> pd.DataFrame:
    return pd.DataFrame([edge.to_dict() for edge in engine.graph.edges], columns=["id", "source", "target", "label"])


def geo_frame(engine: ModelingEngine) -> pd.DataFrame:
    rows = [
        {"id": node.id, "label": node.label, "type": node.type, "lat": node.lat, "lng": node.lng}
        for node in engine.geo.nodes.values()
    ]
    return pd.DataFrame(rows, columns=["id", "label", "type", "lat", "lng"])


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Inspect the graph and geo models built from a query result",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s result.json                       # Tables for nodes, edges and geo points
  %(prog)s result.json --schema schema.txt   # Also summarize the schema
  %(prog)s result.json --layout --json       # Dump the laid-out graph as JSON
        """,
    )
    parser.add_argument("result", help="Path to a JSON query result")
    parser.add_argument("--schema", help="Path to schema text")
    parser.add_argument("--layout", action="store_true", help="Run the force-directed layout")
    parser.add_argument("--iterations", type=int, help="Layout iterations (implies --layout)")
    parser.add_argument("--seed", type=int, help="Layout random seed")
    parser.add_argument("--json", action="store_true", help="Print the graph model as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    result_path = Path(args.result)
    if not result_path.exists():
        print(f"❌ No such file: {result_path}")
        sys.exit(1)

    try:
        payload = json.loads(result_path.read_text())
    except json.JSONDecodeError as e:
        print(f"❌ Invalid JSON in {result_path}: {e}")
        sys.exit(1)

    settings = EngineSettings.from_env()
    if args.iterations is not None:
        settings.layout_iterations = args.iterations
    if args.seed is not None:
        settings.layout_seed = args.seed
    run_layout = args.layout or args.iterations is not None

    with ModelingEngine(settings) as engine:
        if args.schema:
            schema = engine.load_schema(Path(args.schema).read_text())
            print(f"📐 Schema: {len(schema.types)} types, {len(schema.predicates)} predicates")
            for type_def in schema.types:
                print(f"  {type_def.name}: {', '.join(type_def.field_names()) or '-'}")
            print()

        engine.load_result(payload, layout=run_layout)

        print("=" * 80)
        print(f"🕸️  Graph: {len(engine.graph.nodes)} nodes, {len(engine.graph.edges)} edges")
        print("=" * 80)
        for info in engine.graph.type_summary():
            print(f"  {info.color} {info.type}: {info.count}")

        if args.json:
            print(json.dumps(engine.graph.to_dict(), indent=2, default=str))
            return

        with pd.option_context("display.max_rows", 200, "display.width", 160):
            print(f"\n📋 Nodes:")
            print(nodes_frame(engine).to_string(index=False))
            print(f"\n🔗 Edges:")
            print(edges_frame(engine).to_string(index=False))

            if engine.has_geo_data(payload) or engine.geo.nodes:
                lat, lng = engine.geo_layout.center(list(engine.geo.nodes.values()))
                print(f"\n🗺️  Geo: {len(engine.geo.nodes)} points, center ({lat:.4f}, {lng:.4f})")
                print(geo_frame(engine).to_string(index=False))
            else:
                print("\n🗺️  No geographic data")


if __name__ == "__main__":
    main()
