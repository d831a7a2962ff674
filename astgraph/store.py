"""Graph store contract and a NetworkX-backed implementation persisted as JSON."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import networkx as nx

from .errors import NotFoundError, StoreError
from .kinds import LinkType, NodeType, as_link_type, as_node_type

# File holding the graph inside a repository directory.
GRAPH_FILENAME = "graph.json"


@dataclass
class Node:
    id: str
    type: NodeType
    content: bytes
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.meta.get("name") or self.content.decode("utf8", "replace")


@dataclass
class Link:
    source: str
    target: str
    type: LinkType
    meta: Optional[dict[str, Any]] = None


class GraphStore(ABC):
    """The storage contract the graph builder writes through."""

    @abstractmethod
    def add_node(self, content: bytes, node_type: Union[str, NodeType],
                 meta: dict[str, Any]) -> str:
        """Create a node and return its identifier.

        Raises:
            StoreError: If the node type is unknown or the write fails.
        """
        ...

    @abstractmethod
    def add_link(self, source_id: str, target_id: str,
                 link_type: Union[str, LinkType],
                 meta: Optional[dict[str, Any]] = None) -> None:
        """Create a directed link.

        Raises:
            StoreError: If the link type or an endpoint is unknown.
        """
        ...

    @abstractmethod
    def get_node(self, id_or_name: str) -> Node:
        """Look a node up by identifier, falling back to its name.

        Raises:
            NotFoundError: If nothing matches.
        """
        ...

    @abstractmethod
    def get_links(self, node_id: str) -> list[Link]:
        """Links touching a node, outgoing and incoming.

        Raises:
            NotFoundError: If the node does not exist.
        """
        ...

    @abstractmethod
    def nodes(self, node_type: Union[str, NodeType, None] = None) -> list[Node]:
        """All nodes in creation order, optionally filtered by type."""
        ...

    def find_nodes(self, name: str,
                   node_type: Union[str, NodeType, None] = None) -> list[Node]:
        """Every node whose content or name is ``name``, in creation order."""
        return [n for n in self.nodes(node_type)
                if name in (n.name, n.content.decode("utf8", "replace"))]


class MemoryStore(GraphStore):
    """Store backed by a NetworkX multi-digraph.

    Every ``add_node`` creates a new node: the store does not deduplicate by
    content and type. Identifiers are ``n1``, ``n2``, ... in creation order.
    Parallel links are kept; each link's edge key is its global creation
    sequence number.
    """

    def __init__(self, graph: Optional[nx.MultiDiGraph] = None):
        self._graph = graph if graph is not None else nx.MultiDiGraph()
        self._counter = 0
        self._link_counter = 0
        for node_id in self._graph.nodes:
            if node_id.startswith("n") and node_id[1:].isdigit():
                self._counter = max(self._counter, int(node_id[1:]))
        for _, _, key in self._graph.edges(keys=True):
            self._link_counter = max(self._link_counter, key)

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    # ─── Nodes ────────────────────────────────────

    def add_node(self, content, node_type, meta):
        try:
            nt = as_node_type(node_type)
        except ValueError as e:
            raise StoreError(f"unknown node type: {node_type!r}") from e
        if isinstance(content, bytes):
            content = content.decode("utf8", "replace")

        self._counter += 1
        node_id = f"n{self._counter}"
        self._graph.add_node(node_id, type=nt.value, content=content,
                             meta=dict(meta or {}))
        return node_id

    def _node(self, node_id: str) -> Node:
        attrs = self._graph.nodes[node_id]
        return Node(id=node_id, type=NodeType(attrs["type"]),
                    content=attrs["content"].encode("utf8"),
                    meta=attrs["meta"])

    def get_node(self, id_or_name):
        if id_or_name in self._graph:
            return self._node(id_or_name)
        found = self.find_nodes(id_or_name)
        if found:
            return found[0]
        raise NotFoundError(f"node not found: {id_or_name}")

    def nodes(self, node_type=None):
        nt = as_node_type(node_type) if node_type is not None else None
        return [self._node(n) for n, t in self._graph.nodes(data="type")
                if nt is None or t == nt.value]

    def find_nodes(self, name: str,
                   node_type: Union[str, NodeType, None] = None) -> list[Node]:
        """Every node whose content or name is ``name``, in creation order."""
        return [n for n in self.nodes(node_type)
                if name in (n.content.decode("utf8", "replace"), n.meta.get("name"))]

    # ─── Links ────────────────────────────────────

    def add_link(self, source_id, target_id, link_type, meta=None):
        try:
            lt = as_link_type(link_type)
        except ValueError as e:
            raise StoreError(f"unknown link type: {link_type!r}") from e
        for endpoint in (source_id, target_id):
            if endpoint not in self._graph:
                raise StoreError(f"link endpoint does not exist: {endpoint}")

        self._link_counter += 1
        self._graph.add_edge(source_id, target_id, key=self._link_counter,
                             type=lt.value, meta=dict(meta) if meta else None)

    @staticmethod
    def _links(edges) -> list[Link]:
        return [Link(source=u, target=v, type=LinkType(data["type"]),
                     meta=data.get("meta"))
                for u, v, _, data in sorted(edges, key=lambda e: e[2])]

    def get_links(self, node_id):
        if node_id not in self._graph:
            raise NotFoundError(f"node not found: {node_id}")
        edges = list(self._graph.out_edges(node_id, keys=True, data=True))
        # A self link is already among the outgoing edges
        edges.extend(e for e in self._graph.in_edges(node_id, keys=True, data=True)
                     if e[0] != node_id)
        return self._links(edges)

    def links(self) -> list[Link]:
        return self._links(self._graph.edges(keys=True, data=True))

    @property
    def graph(self) -> nx.MultiDiGraph:
        """The backing graph, for NetworkX algorithms."""
        return self._graph

    # ─── Persistence ──────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return nx.node_link_data(self._graph, edges="links")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "MemoryStore":
        graph = nx.node_link_graph(raw, directed=True, multigraph=True,
                                   edges="links")
        for node_id, attrs in graph.nodes(data=True):
            try:
                as_node_type(attrs.get("type"))
            except ValueError as e:
                raise StoreError(f"unknown node type for {node_id}: "
                                 f"{attrs.get('type')!r}") from e
        return cls(graph)

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise StoreError(f"saving graph to {path}: {e}") from e

    @classmethod
    def load(cls, path: Union[str, Path]) -> "MemoryStore":
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise NotFoundError(f"graph file not found: {path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"loading graph from {path}: {e}") from e
        try:
            return cls.from_dict(raw)
        except (KeyError, TypeError, AttributeError, nx.NetworkXError) as e:
            raise StoreError(f"loading graph from {path}: {e}") from e

    @classmethod
    def open(cls, repo_dir: Union[str, Path]) -> "MemoryStore":
        """Open ``<repo_dir>/graph.json``, or start an empty store."""
        graph_file = Path(repo_dir) / GRAPH_FILENAME
        if graph_file.exists():
            return cls.load(graph_file)
        return cls()
