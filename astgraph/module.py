"""The analyzer's public face: one ``analyze`` entry point plus queries.

Usage::

    from astgraph import AstModule, MemoryStore

    store = MemoryStore()
    module = AstModule(store)
    module.analyze("/path/to/go/project")
    module.show_implementations("Greeter")
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Union

from .analyzer import Analyzer
from .builder import GraphBuilder
from .errors import AstGraphError, NotFoundError
from .kinds import MODULE_ID, LinkType, NodeType
from .parsers.go import GoExtractor
from .settings import Settings
from .store import GraphStore, Node


class AstModule:
    """Wires extractor -> analyzer -> builder over one graph store."""

    id = MODULE_ID
    name = "AST Analysis"
    description = "Analyzes Go source code structure"

    def __init__(self, store: GraphStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or Settings()
        self.extractor: GoExtractor | None = None
        self.analyzer: Analyzer | None = None
        self.builder: GraphBuilder | None = None

    def analyze(self, path: Union[str, Path]) -> dict[str, dict[str, int]]:
        """Parse, analyze and build the graph for a file or directory.

        Each call runs on fresh components. The first failing stage aborts
        the run; its error carries the stage name in ``error.stage``.

        Returns:
            Node and edge counts from the builder.
        """
        t0 = time.time()
        verbose = self.settings.verbose
        src = Path(path).resolve()
        if verbose:
            print(f"Parsing {src} ...")

        self.extractor = GoExtractor(self.settings)
        self.analyzer = Analyzer(verbose=verbose)
        self.builder = GraphBuilder(self.store, strict=self.settings.strict,
                                    verbose=verbose)
        self.analyzer.set_extractor(self.extractor)
        self.builder.set_analyzer(self.analyzer)

        self._run("parsing files", self.extractor.parse_path, src)
        self._run("analyzing code", self.analyzer.analyze)
        stats = self._run("building graph", self.builder.build)

        if verbose:
            print(f"Done in {time.time() - t0:.2f}s")
        return stats

    @staticmethod
    def _run(stage: str, fn, *args):
        try:
            return fn(*args)
        except AstGraphError as e:
            e.stage = stage
            raise

    @property
    def warnings(self) -> list[dict[str, str]]:
        """Per-file extraction failures and strict-mode warnings of the last run."""
        found = []
        if self.extractor is not None:
            found.extend(self.extractor.errors)
        if self.builder is not None:
            found.extend(self.builder.warnings)
        return found

    # ── Queries ─────────────────────────────────────────────────────────

    def _find(self, name: str, *node_types: NodeType) -> list[Node]:
        """Nodes named ``name`` of the given types; empty when absent."""
        return [n for n in self.store.find_nodes(name)
                if not node_types or n.type in node_types]

    def _neighbours(self, node: Node, link_type: LinkType,
                    outgoing: bool = True) -> list[Node]:
        try:
            links = self.store.get_links(node.id)
        except NotFoundError:
            return []
        found = []
        for link in links:
            if link.type is not link_type:
                continue
            if outgoing and link.source != node.id:
                continue
            if not outgoing and link.target != node.id:
                continue
            other = link.target if outgoing else link.source
            try:
                found.append(self.store.get_node(other))
            except NotFoundError:
                continue
        return found

    def show_types(self, name: str | None = None) -> list[dict[str, Any]]:
        """Struct and interface nodes with their method and embedded lists."""
        kinds = (NodeType.STRUCT, NodeType.INTERFACE)
        if name:
            nodes = self._find(name, *kinds)
        else:
            nodes = [n for nt in kinds for n in self.store.nodes(nt)]
        return [{
            "name": n.name,
            "type": n.type.value,
            "methods": list(n.meta.get("methods") or []),
            "embedded": list(n.meta.get("embedded") or []),
        } for n in nodes]

    def show_calls(self, name: str | None = None) -> list[tuple[str, str]]:
        """(caller, callee) pairs from outgoing CALLS links."""
        if name:
            callers = self._find(name, NodeType.FUNCTION)
        else:
            callers = self.store.nodes(NodeType.FUNCTION)
        return [(fn.name, callee.name)
                for fn in callers
                for callee in self._neighbours(fn, LinkType.CALLS)]

    def show_implementations(self, interface: str) -> list[str]:
        """Sorted names of structs with an IMPLEMENTS link into ``interface``."""
        found = set()
        for node in self._find(interface, NodeType.INTERFACE):
            for impl in self._neighbours(node, LinkType.IMPLEMENTS, outgoing=False):
                found.add(impl.name)
        return sorted(found)

    def show_dependencies(self, package: str | None = None) -> list[tuple[str, str]]:
        """(package, import path) pairs from outgoing IMPORTS links."""
        if package:
            packages = self._find(package, NodeType.PACKAGE)
        else:
            packages = self.store.nodes(NodeType.PACKAGE)
        return [(pkg.name, dep.meta.get("path") or dep.name)
                for pkg in packages
                for dep in self._neighbours(pkg, LinkType.IMPORTS)]
