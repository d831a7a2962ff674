#!/usr/bin/env python3
"""Analyze a Go project and explore it as a KGLite knowledge graph.

Demonstrates: AstModule.analyze, the query helpers, KGLite export and
Cypher queries over the exported graph.

Generates: Package, Struct, Interface, Function, Field, Import nodes
           with CALLS, IMPLEMENTS, EMBEDS, USES, CONTAINS, IMPORTS edges.

Requires: pip install astgraph
"""

import sys
from pathlib import Path

from astgraph import AstModule, MemoryStore, Settings
from astgraph.export import save_knowledge_graph

# -- Analyze ---------------------------------------------------------------

src_dir = sys.argv[1] if len(sys.argv) > 1 else "."
src_path = Path(src_dir).resolve()

if not src_path.is_dir():
    print(f"Not a directory: {src_path}", file=sys.stderr)
    sys.exit(1)

store = MemoryStore()
module = AstModule(store, Settings(verbose=True))
stats = module.analyze(src_path)

print("\nNodes:")
for nt, count in sorted(stats["nodes_by_type"].items()):
    print(f"  {nt}: {count}")

# -- Query helpers ---------------------------------------------------------

print("\n--- Interfaces and their implementations ---")
for t in module.show_types():
    if t["type"] != "interface":
        continue
    impls = module.show_implementations(t["name"])
    print(f"  {t['name']}: {', '.join(impls) or '(none)'}")

# -- Export ----------------------------------------------------------------

output = f"{src_path.name}.kgl"
graph = save_knowledge_graph(store, output, verbose=True)

# Most-called functions (by incoming CALLS edges)
print("\n--- Most-called functions ---")
for row in graph.cypher("""
    MATCH (caller:Function)-[:CALLS]->(f:Function)
    RETURN f.name, f.pos, count(caller) AS callers
    ORDER BY callers DESC LIMIT 10
"""):
    print(f"  {row['f.name']} ({row['f.pos']}): {row['callers']} callers")

# Most widely used types
print("\n--- Most used types ---")
for row in graph.cypher("""
    MATCH (f:Function)-[:USES]->(t:Struct)
    RETURN t.name, count(f) AS users
    ORDER BY users DESC LIMIT 10
"""):
    print(f"  {row['t.name']}: {row['users']} functions")
