"""Relationship analysis over extracted Go declarations.

Produces three tables from one extractor snapshot:

- ``types``: one TypeInfo per declared struct or interface name,
- ``calls``: caller function name -> callee names, one entry per call site,
- ``uses``: enclosing function name -> referenced type names.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from functools import cached_property

from .errors import NotReadyError
from .parsers.base import SourceExtractor, node_text
from .parsers.go import FUNCTION_NODE_TYPES, function_name
from .parsers.models import ParsedFile, TypeDecl


@dataclass
class TypeInfo:
    """Classification of one declared type.

    Exactly one of ``is_struct`` / ``is_interface`` is true. ``methods`` keeps
    declaration order without duplicates; ``embedded`` keeps both order and
    duplicates.
    """
    name: str
    is_struct: bool
    is_interface: bool
    package: str = ""
    position: str = ""
    methods: list[str] = field(default_factory=list)
    embedded: list[str] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return "interface" if self.is_interface else "struct"

    @cached_property
    def method_set(self) -> frozenset[str]:
        return frozenset(self.methods)

    def add_method(self, name: str) -> None:
        if name not in self.methods:
            self.methods.append(name)
            self.__dict__.pop("method_set", None)

    def satisfies(self, interface: "TypeInfo") -> bool:
        """Structural satisfaction by method name only.

        An interface with no methods is satisfied by nothing.
        """
        return (self.is_struct and interface.is_interface
                and bool(interface.method_set)
                and interface.method_set <= self.method_set)


class Analyzer:
    """Computes type, call and usage tables from an attached extractor."""

    def __init__(self, extractor: SourceExtractor | None = None,
                 verbose: bool = False):
        self.extractor = extractor
        self.verbose = verbose
        self.types: dict[str, TypeInfo] = {}
        self.calls: dict[str, list[str]] = {}
        self.uses: dict[str, list[str]] = {}
        self.analyzed = False

    def set_extractor(self, extractor: SourceExtractor) -> None:
        self.extractor = extractor
        self.analyzed = False

    def analyze(self) -> None:
        """Run type classification, then call and usage resolution.

        Raises:
            NotReadyError: If no extractor is attached.
        """
        if self.extractor is None:
            raise NotReadyError("extractor not set")

        self.analyzed = False
        self.types = self._classify_types(self.extractor.types())
        self._attach_receiver_methods()

        calls: dict[str, list[str]] = defaultdict(list)
        uses: dict[str, list[str]] = defaultdict(list)
        for parsed in self.extractor.files().values():
            self._resolve_file(parsed, calls, uses)
        self.calls = dict(calls)
        self.uses = dict(uses)
        self.analyzed = True

        if self.verbose:
            n_calls = sum(len(v) for v in self.calls.values())
            n_uses = sum(len(v) for v in self.uses.values())
            print(f"  Analyzed: {len(self.types)} types, "
                  f"{n_calls} call sites, {n_uses} type uses")

    # ── Type classification ────────────────────────────────────────────

    def _classify_types(self, decls: list[TypeDecl]) -> dict[str, TypeInfo]:
        types: dict[str, TypeInfo] = {}
        for decl in decls:
            info = TypeInfo(
                name=decl.name,
                is_struct=decl.kind == "struct",
                is_interface=decl.kind == "interface",
                package=decl.package,
                position=decl.position,
            )
            for f in decl.fields:
                if f.is_embedded:
                    info.embedded.append(f.type_name)
            for m in decl.methods:
                info.add_method(m.name)
            # A later declaration of the same name replaces the earlier one
            types[decl.name] = info
        return types

    def _attach_receiver_methods(self) -> None:
        """Give each struct the names of methods declared on it."""
        for fn in self.extractor.functions():
            if not fn.receiver_type:
                continue
            info = self.types.get(fn.receiver_type)
            if info is not None and info.is_struct:
                info.add_method(fn.name)

    # ── Call and usage resolution ──────────────────────────────────────

    def _resolve_file(self, parsed: ParsedFile,
                      calls: dict[str, list[str]],
                      uses: dict[str, list[str]]) -> None:
        """Walk one syntax tree, attributing sites to the enclosing function.

        The enclosing function is the top of ``scope``: a name is pushed when
        a function or method declaration is entered and popped after its
        subtree has been visited. Sites with an empty scope are at file
        level and are dropped.
        """
        source = parsed.source
        scope: list[str] = []
        # (node, leaving) pairs; a leaving entry pops the scope
        stack = [(parsed.tree.root_node, False)]

        while stack:
            node, leaving = stack.pop()
            if leaving:
                scope.pop()
                continue

            kind = node.type
            if kind in FUNCTION_NODE_TYPES:
                name = function_name(node, source)
                if name:
                    scope.append(name)
                    stack.append((node, True))
            elif scope:
                if kind == "call_expression":
                    callee = node.child_by_field_name("function")
                    # Selector calls (x.Method()) are not resolved
                    if callee is not None and callee.type == "identifier":
                        callee_name = node_text(callee, source)
                        calls[scope[-1]].append(callee_name)
                        # Conversions such as Dog(x) also use the type
                        if callee_name in self.types:
                            uses[scope[-1]].append(callee_name)
                elif kind == "type_identifier" and self._is_type_reference(node):
                    type_name = node_text(node, source)
                    if type_name in self.types:
                        uses[scope[-1]].append(type_name)

            stack.extend((child, False) for child in reversed(node.children))

    @staticmethod
    def _is_type_reference(node) -> bool:
        """False for the name of a type_spec and the name part of ``pkg.Type``."""
        parent = node.parent
        if parent is None:
            return True
        if parent.type == "qualified_type":
            return False
        if parent.type in ("type_spec", "type_alias"):
            name = parent.child_by_field_name("name")
            return name is None or name.start_byte != node.start_byte
        return True

    # ── Accessors ──────────────────────────────────────────────────────

    def structs(self) -> list[TypeInfo]:
        return [t for t in self.types.values() if t.is_struct]

    def interfaces(self) -> list[TypeInfo]:
        return [t for t in self.types.values() if t.is_interface]
