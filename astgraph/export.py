"""Load a built code graph into a KGLite knowledge graph."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Union

import pandas as pd
import kglite

from .kinds import LinkType, NodeType
from .store import GraphStore

# Graph node type -> KGLite node type
NODE_TYPE_MAP = {
    NodeType.PACKAGE: "Package",
    NodeType.FUNCTION: "Function",
    NodeType.STRUCT: "Struct",
    NodeType.INTERFACE: "Interface",
    NodeType.FIELD: "Field",
    NodeType.METHOD: "Method",
    NodeType.IMPORT: "Import",
}


def _row(node) -> dict:
    row = {"id": node.id, "name": node.name}
    for key, value in node.meta.items():
        if key in row:
            continue
        if isinstance(value, (list, tuple)):
            row[key] = ", ".join(value) if value else None
        elif not isinstance(value, dict):
            row[key] = value
    return row


def to_knowledge_graph(store: GraphStore, verbose: bool = False) -> kglite.KnowledgeGraph:
    """Copy every node and link of ``store`` into a new KnowledgeGraph.

    Node ids become KGLite unique ids; link types become upper-case
    connection types (CALLS, IMPLEMENTS, ...).
    """
    graph = kglite.KnowledgeGraph()

    # -- Nodes --
    type_of: dict[str, str] = {}
    for nt, kg_type in NODE_TYPE_MAP.items():
        nodes = store.nodes(nt)
        if not nodes:
            continue
        rows = [_row(n) for n in nodes]
        # Metadata keys missing on some nodes (e.g. receiver) become None
        columns = list(dict.fromkeys(k for r in rows for k in r))
        df = pd.DataFrame([{c: r.get(c) for c in columns} for r in rows])
        graph.add_nodes(data=df, node_type=kg_type,
                        unique_id_field="id", node_title_field="name")
        for n in nodes:
            type_of[n.id] = kg_type
        if verbose:
            print(f"  {kg_type}: {len(nodes)} nodes")

    # -- Edges --
    groups: dict[tuple[LinkType, str, str], list[dict]] = defaultdict(list)
    for node_id, src_nt in type_of.items():
        for link in store.get_links(node_id):
            # Each link is taken once, from its source side
            if link.source != node_id:
                continue
            tgt_nt = type_of.get(link.target)
            if tgt_nt is None:
                continue
            groups[(link.type, src_nt, tgt_nt)].append({
                "source": link.source,
                "target": link.target,
            })

    for (lt, src_nt, tgt_nt), rows in groups.items():
        graph.add_connections(
            data=pd.DataFrame(rows), connection_type=lt.value.upper(),
            source_type=src_nt, source_id_field="source",
            target_type=tgt_nt, target_id_field="target",
        )
        if verbose:
            print(f"  {src_nt} -{lt.value.upper()}-> {tgt_nt}: {len(rows)} edges")

    return graph


def save_knowledge_graph(store: GraphStore, path: Union[str, Path],
                         verbose: bool = False) -> kglite.KnowledgeGraph:
    """Export ``store`` and write it as a ``.kgl`` file."""
    graph = to_knowledge_graph(store, verbose=verbose)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    graph.save(str(path))
    if verbose:
        print(f"Graph saved to {path}")
    return graph
