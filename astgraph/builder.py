"""
Build the code graph from analysis results through the graph store contract.

Stages run in a fixed order, each depending on identifiers created by the
previous ones: packages, types, functions, fields and imports, then links
(CALLS, EMBEDS, USES, IMPLEMENTS, CONTAINS, IMPORTS). A link whose source or
target name has no node is skipped, never an error.
"""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any

from .analyzer import Analyzer, TypeInfo
from .errors import NotReadyError, StoreError
from .kinds import MODULE_ID, TYPE_KIND_MAP, LinkType, NodeType
from .store import GraphStore


class GraphBuilder:
    """Writes nodes and links for one analysis into a GraphStore.

    Owns the name -> node id indexes. The first declaration of a name owns
    it; later declarations still get nodes but links resolve to the first.
    """

    def __init__(self, store: GraphStore, analyzer: Analyzer | None = None,
                 *, strict: bool = False, verbose: bool = False):
        self.store = store
        self.analyzer = analyzer
        self.strict = strict
        self.verbose = verbose

        self.packages: dict[str, str] = {}
        self.types: dict[str, str] = {}
        self.functions: dict[str, str] = {}
        self.imports: dict[str, str] = {}

        self.warnings: list[dict[str, str]] = []
        self.stats: dict[str, Counter] = {
            "nodes_by_type": Counter(),
            "edges_by_type": Counter(),
        }

    def set_analyzer(self, analyzer: Analyzer) -> None:
        self.analyzer = analyzer

    def build(self) -> dict[str, dict[str, int]]:
        """Create every node and link.

        Returns:
            ``{"nodes_by_type": {...}, "edges_by_type": {...}}`` counts.

        Raises:
            NotReadyError: If no analyzer is attached or it has not run.
            StoreError: If the store rejects a write.
        """
        if self.analyzer is None:
            raise NotReadyError("analyzer not set")
        if not self.analyzer.analyzed:
            raise NotReadyError("analyzer has not run")

        self._stage("building packages", self._build_packages)
        self._stage("building types", self._build_types)
        self._stage("building functions", self._build_functions)
        self._stage("building fields", self._build_fields)
        self._stage("building imports", self._build_imports)
        self._stage("building relationships", self._build_relationships)

        if self.verbose:
            nodes = sum(self.stats["nodes_by_type"].values())
            edges = sum(self.stats["edges_by_type"].values())
            print(f"  Built: {nodes} nodes, {edges} edges")

        return {k: dict(v) for k, v in self.stats.items()}

    def _stage(self, name: str, fn) -> None:
        try:
            fn()
        except StoreError as e:
            e.message = f"{name}: {e.message}"
            raise

    # ── Nodes ──────────────────────────────────────────────────────────

    def _add_node(self, content: str, node_type: NodeType,
                  meta: dict[str, Any]) -> str:
        node_id = self.store.add_node(content.encode("utf8"), node_type,
                                      {"module": MODULE_ID, **meta})
        self.stats["nodes_by_type"][node_type.value] += 1
        return node_id

    def _build_packages(self) -> None:
        extractor = self.analyzer.extractor
        dirs: dict[str, str] = {}
        for decl in extractor.package_decls():
            dirs.setdefault(decl.name, str(Path(decl.file_path).parent))

        for pkg in extractor.packages():
            self.packages[pkg] = self._add_node(pkg, NodeType.PACKAGE, {
                "name": pkg,
                "path": dirs.get(pkg, ""),
            })

    def _build_types(self) -> None:
        for name, info in self.analyzer.types.items():
            self.types[name] = self._add_node(name, TYPE_KIND_MAP[info.kind], {
                "name": name,
                "pos": info.position,
                "methods": list(info.methods),
                "embedded": list(info.embedded),
            })

    def _build_functions(self) -> None:
        for fn in self.analyzer.extractor.functions():
            meta = {"name": fn.name, "pos": fn.position}
            if fn.receiver:
                meta["receiver"] = fn.receiver
            node_id = self._add_node(fn.name, NodeType.FUNCTION, meta)
            self.functions.setdefault(fn.name, node_id)

            self._link_to_owner(fn.package, node_id)
            if fn.receiver_type:
                type_id = self.types.get(fn.receiver_type)
                if type_id is not None:
                    self._add_link(type_id, node_id, LinkType.CONTAINS)

    def _build_fields(self) -> None:
        for decl in self.analyzer.extractor.types():
            info = self.analyzer.types.get(decl.name)
            # Fields of a declaration replaced by a later same-named one are dropped
            if decl.kind != "struct" or info is None or info.position != decl.position:
                continue
            owner_id = self.types.get(decl.name)
            for f in decl.fields:
                meta = {"type": f.type_name,
                        "pos": f"{decl.file_path}:{f.line_number}:{f.column}"}
                if f.name is not None:
                    meta["name"] = f.name
                field_id = self._add_node(f.name or f.type_name, NodeType.FIELD, meta)
                if owner_id is not None:
                    self._add_link(owner_id, field_id, LinkType.CONTAINS)

    def _build_imports(self) -> None:
        seen: set[tuple[str, str]] = set()
        for imp in self.analyzer.extractor.import_decls():
            import_id = self.imports.get(imp.path)
            if import_id is None:
                meta = {"path": imp.path}
                if imp.alias:
                    meta["alias"] = imp.alias
                import_id = self._add_node(imp.path, NodeType.IMPORT, meta)
                self.imports[imp.path] = import_id

            key = (imp.package, imp.path)
            pkg_id = self.packages.get(imp.package)
            if pkg_id is not None and key not in seen:
                seen.add(key)
                self._add_link(pkg_id, import_id, LinkType.IMPORTS)

    # ── Links ──────────────────────────────────────────────────────────

    def _add_link(self, source_id: str, target_id: str,
                  link_type: LinkType) -> None:
        self.store.add_link(source_id, target_id, link_type, None)
        self.stats["edges_by_type"][link_type.value] += 1

    def _link_to_owner(self, package: str, node_id: str) -> None:
        pkg_id = self.packages.get(package)
        if pkg_id is not None:
            self._add_link(pkg_id, node_id, LinkType.CONTAINS)

    def _build_relationships(self) -> None:
        self._build_type_containment()
        self._build_call_links()
        self._build_embed_links()
        self._build_use_links()
        self._build_implements_links()

    def _build_type_containment(self) -> None:
        for name, info in self.analyzer.types.items():
            self._link_to_owner(info.package, self.types[name])

    def _build_call_links(self) -> None:
        noise = self.analyzer.extractor.noise_names
        for caller, callees in self.analyzer.calls.items():
            caller_id = self.functions.get(caller)
            if caller_id is None:
                continue
            for callee in callees:
                callee_id = self.functions.get(callee)
                if callee_id is None:
                    if callee not in noise and callee not in self.types:
                        self._report_unresolved("calls", caller, callee)
                    continue
                self._add_link(caller_id, callee_id, LinkType.CALLS)

    def _build_embed_links(self) -> None:
        for name, info in self.analyzer.types.items():
            type_id = self.types[name]
            for embedded in info.embedded:
                embedded_id = self.types.get(embedded)
                if embedded_id is None:
                    self._report_unresolved("embeds", name, embedded)
                    continue
                self._add_link(type_id, embedded_id, LinkType.EMBEDS)

    def _build_use_links(self) -> None:
        for context, used in self.analyzer.uses.items():
            context_id = self.functions.get(context)
            if context_id is None:
                continue
            for type_name in used:
                used_id = self.types.get(type_name)
                if used_id is None:
                    continue
                self._add_link(context_id, used_id, LinkType.USES)

    def _build_implements_links(self) -> None:
        """Add struct -> interface links by structural method-name match."""
        interfaces: list[TypeInfo] = [i for i in self.analyzer.interfaces()
                                      if i.method_set]
        for struct in self.analyzer.structs():
            for iface in interfaces:
                if struct.satisfies(iface):
                    self._add_link(self.types[struct.name], self.types[iface.name],
                                   LinkType.IMPLEMENTS)

    def _report_unresolved(self, context: str, source: str, target: str) -> None:
        """Record an unresolved cross-reference (strict mode only)."""
        if self.strict:
            self.warnings.append({
                "context": context,
                "message": f"{source} -> {target}: no node for {target!r}",
            })
