"""Basic usage example for dgraph-lens.

Demonstrates schema parsing, autocomplete, graph building with layout,
and geographic extraction from a sample query result.
"""

import sys
from pathlib import Path

# Add project root to path for imports without pip install
sys.path.insert(0, str(Path(__file__).parent.parent))

from dgraph_lens import ModelingEngine, EngineSettings


SCHEMA = """
name: string @index(exact, term) .
location: geo @index(geo) .
friend: [uid] @reverse @count .
dgraph.type: [string] @index(exact) .

type Person {
    name
    friend
}

type Place {
    name
    location
}
"""

RESULT = {
    "data": {
        "people": [
            {
                "uid": "0x1",
                "name": "Alice",
                "dgraph.type": ["Person"],
                "friend": [
                    {"uid": "0x2", "name": "Bob", "dgraph.type": ["Person"]},
                    {"uid": "0x3", "name": "Carol", "dgraph.type": ["Person"]},
                ],
                "visits": {
                    "uid": "0x10",
                    "name": "Central Park",
                    "dgraph.type": ["Place"],
                    "location": {"type": "Point", "coordinates": [-73.9654, 40.7829]},
                },
            },
            {
                "uid": "0x2",
                "name": "Bob",
                "dgraph.type": ["Person"],
                "friend": [{"uid": "0x1", "name": "Alice"}],
            },
        ]
    }
}


def main():
    """Run the basic usage example."""
    engine = ModelingEngine(EngineSettings(layout_seed=42))

    print("=" * 60)
    print("SCHEMA")
    print("=" * 60)

    schema = engine.load_schema(SCHEMA)
    for type_def in schema.types:
        print(f"type {type_def.name}")
        for field in type_def.fields:
            print(f"  {field.name}: {field.type} {' '.join(field.directives)}")
    print(f"Predicates: {', '.join(p.name for p in schema.predicates)}\n")

    print("=" * 60)
    print("AUTOCOMPLETE")
    print("=" * 60)

    for text in ("{ people(func: ", "name: string @in", "{ people { fr"):
        suggestions = engine.suggest(text, len(text))
        print(f"{text!r:24} -> {[s.label for s in suggestions][:6]}")
    print()

    print("=" * 60)
    print("RESULT GRAPH")
    print("=" * 60)

    graph = engine.load_result(RESULT)
    for node in graph:
        print(f"  [{node.type or 'untyped'}] {node.label} ({node.id}) at ({node.x:.2f}, {node.y:.2f})")
    for edge in graph.edges:
        print(f"  {edge.source} -[{edge.label}]-> {edge.target}")
    print(f"Legend: {[(info.type, info.color, info.count) for info in graph.type_summary()]}\n")

    print("=" * 60)
    print("GEO")
    print("=" * 60)

    print(f"Has geo data (top level only): {engine.has_geo_data(RESULT)}")
    for geo_node_id, (lat, lng) in engine.geo_positions().items():
        print(f"  {geo_node_id}: {lat:.4f}, {lng:.4f}")

    print("\nRunning continuous layout briefly...")
    with engine:
        worker = engine.start_layout()
        worker.token.wait(0.5)
        print(f"Layout steps: {worker.steps}")


if __name__ == "__main__":
    main()
