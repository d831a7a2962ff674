"""Go source extractor using tree-sitter-go."""

from __future__ import annotations

from pathlib import Path

from tree_sitter import Language, Parser
import tree_sitter_go as ts_go

from ..errors import ExtractionError
from .base import (
    SourceExtractor, node_text, node_position,
    find_error_node, describe_syntax_error,
)
from .models import (
    ParsedFile, FunctionDecl, ImportDecl, TypeDecl,
    StructField, InterfaceMethod,
)

GO_LANGUAGE = Language(ts_go.language())

GO_NOISE_NAMES: frozenset[str] = frozenset({
    # Builtins
    "len", "cap", "append", "copy", "delete", "make", "new", "close",
    "panic", "recover", "print", "println", "min", "max", "clear",
    "complex", "real", "imag",
    # Conversions
    "string", "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "float32", "float64", "byte", "rune", "bool", "error", "any",
    # Common interface methods
    "Error", "String",
    # fmt package
    "Format", "Sprintf", "Fprintf", "Errorf", "Printf", "Println",
    "Print", "Fprintln", "Fprint",
    # log package
    "Fatal", "Fatalf", "Fatalln",
})

# Declarations that open a new enclosing-function scope.
FUNCTION_NODE_TYPES = frozenset({"function_declaration", "method_declaration"})

# Interface elements across grammar versions: method_elem/type_elem (>= 0.20),
# method_spec/constraint_elem before that.
_METHOD_ELEMS = ("method_elem", "method_spec")
_TYPE_ELEMS = ("type_elem", "constraint_elem")
_NAMED_TYPES = ("type_identifier", "qualified_type", "generic_type",
                "interface_type_name")


def function_name(node, source: bytes) -> str | None:
    """Name of a function_declaration or method_declaration node."""
    name = node.child_by_field_name("name")
    if name is not None:
        return node_text(name, source)
    for child in node.children:
        if child.type in ("identifier", "field_identifier"):
            return node_text(child, source)
    return None


def base_type_name(node, source: bytes) -> str:
    """Strip pointer and type arguments: ``*Box[T]`` -> ``Box``."""
    while node.type in ("pointer_type", "generic_type", "parenthesized_type"):
        inner = node.child_by_field_name("type")
        if inner is None:
            named = node.named_children
            if not named:
                break
            inner = named[0]
        node = inner
    text = node_text(node, source)
    return text.lstrip("*")


class GoExtractor(SourceExtractor):

    @property
    def language_name(self) -> str:
        return "go"

    @property
    def file_extensions(self) -> list[str]:
        return [".go"]

    @property
    def noise_names(self) -> frozenset[str]:
        return GO_NOISE_NAMES

    def __init__(self, settings=None):
        super().__init__(settings)
        self._parser = Parser(GO_LANGUAGE)

    def is_test_file(self, filepath: Path) -> bool:
        return filepath.name.endswith("_test.go")

    # ── Helpers ─────────────────────────────────────────────────────────

    def _get_package_name(self, root, source: bytes) -> str | None:
        """Extract package name from the package clause."""
        for child in root.children:
            if child.type == "package_clause":
                for sub in child.children:
                    if sub.type == "package_identifier":
                        return node_text(sub, source)
        return None

    def _get_receiver(self, node, source: bytes) -> tuple[str | None, str | None]:
        """Return (receiver as written, base type name) of a method_declaration."""
        receiver = node.child_by_field_name("receiver")
        if receiver is None:
            for child in node.children:
                if child.type == "parameter_list":
                    receiver = child
                    break
        if receiver is None:
            return None, None
        for param in receiver.named_children:
            if param.type == "parameter_declaration":
                type_node = param.child_by_field_name("type")
                if type_node is None:
                    continue
                return node_text(type_node, source), base_type_name(type_node, source)
        return None, None

    def _get_type_node(self, spec):
        type_node = spec.child_by_field_name("type")
        if type_node is not None:
            return type_node
        # Skip the first type_identifier (that's the name)
        saw_name = False
        for sub in spec.children:
            if sub.type == "type_identifier" and not saw_name:
                saw_name = True
                continue
            if sub.is_named and sub.type != "type_parameter_list":
                return sub
        return None

    def _extract_struct_fields(self, node, source: bytes,
                               owner: str) -> list[StructField]:
        """Extract fields from a struct type's field_declaration_list."""
        fields: list[StructField] = []
        for child in node.children:
            if child.type != "field_declaration_list":
                continue
            for field in child.children:
                if field.type != "field_declaration":
                    continue
                type_node = field.child_by_field_name("type")
                if type_node is None:
                    continue
                line, col = node_position(field)
                names = [node_text(fc, source) for fc in field.children
                         if fc.type == "field_identifier"]
                if not names:
                    # Embedded field: `Base`, `*Base`, `io.Reader`
                    fields.append(StructField(
                        owner=owner,
                        name=None,
                        type_name=base_type_name(type_node, source),
                        line_number=line,
                        column=col,
                    ))
                    continue
                type_text = node_text(type_node, source)
                for name in names:
                    fields.append(StructField(
                        owner=owner,
                        name=name,
                        type_name=type_text,
                        line_number=line,
                        column=col,
                    ))
        return fields

    def _extract_interface_elems(self, node, source: bytes, owner: str
                                 ) -> tuple[list[InterfaceMethod], list[StructField]]:
        """Split an interface body into method names and embedded interfaces."""
        methods: list[InterfaceMethod] = []
        embedded: list[StructField] = []
        for elem in node.named_children:
            line, col = node_position(elem)
            if elem.type in _METHOD_ELEMS:
                name = function_name(elem, source)
                if name:
                    methods.append(InterfaceMethod(owner=owner, name=name,
                                                   line_number=line, column=col))
                continue

            if elem.type in _TYPE_ELEMS:
                inner = elem.named_children
                # Unions and approximations (~int | ~string) are constraints,
                # not embeddings
                if len(inner) != 1 or inner[0].type not in _NAMED_TYPES:
                    continue
                elem = inner[0]
            if elem.type in _NAMED_TYPES:
                embedded.append(StructField(
                    owner=owner,
                    name=None,
                    type_name=base_type_name(elem, source),
                    line_number=line,
                    column=col,
                ))
        return methods, embedded

    # ── Parsing ─────────────────────────────────────────────────────────

    def _parse_function(self, node, source: bytes, rel_path: str,
                        package: str) -> FunctionDecl | None:
        name = function_name(node, source)
        if not name:
            return None
        receiver, receiver_type = None, None
        if node.type == "method_declaration":
            receiver, receiver_type = self._get_receiver(node, source)
        line, col = node_position(node)
        return FunctionDecl(
            name=name,
            receiver=receiver,
            receiver_type=receiver_type,
            package=package,
            file_path=rel_path,
            line_number=line,
            column=col,
        )

    def _parse_imports(self, node, source: bytes, rel_path: str,
                       package: str) -> list[ImportDecl]:
        specs = []
        for child in node.children:
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(c for c in child.children if c.type == "import_spec")

        imports = []
        for spec in specs:
            path_node = spec.child_by_field_name("path")
            if path_node is None:
                for sub in spec.children:
                    if sub.type in ("interpreted_string_literal", "raw_string_literal"):
                        path_node = sub
                        break
            if path_node is None:
                continue
            alias_node = spec.child_by_field_name("name")
            imports.append(ImportDecl(
                path=node_text(path_node, source).strip('"`'),
                alias=node_text(alias_node, source) if alias_node is not None else None,
                package=package,
                file_path=rel_path,
                line_number=node_position(spec)[0],
            ))
        return imports

    def _collect_types(self, root, source: bytes, rel_path: str,
                       package: str) -> list[TypeDecl]:
        """Find every struct and interface type_spec, including local ones."""
        types: list[TypeDecl] = []
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "type_spec":
                decl = self._parse_type_spec(node, source, rel_path, package)
                if decl is not None:
                    types.append(decl)
            stack.extend(reversed(node.children))
        return types

    def _parse_type_spec(self, spec, source: bytes, rel_path: str,
                         package: str) -> TypeDecl | None:
        name_node = spec.child_by_field_name("name")
        if name_node is None:
            return None
        name = node_text(name_node, source)
        type_node = self._get_type_node(spec)
        if type_node is None:
            return None

        line, col = node_position(spec)
        if type_node.type == "struct_type":
            return TypeDecl(
                name=name, kind="struct", package=package,
                file_path=rel_path, line_number=line, column=col,
                fields=self._extract_struct_fields(type_node, source, name),
            )
        if type_node.type == "interface_type":
            methods, embedded = self._extract_interface_elems(type_node, source, name)
            return TypeDecl(
                name=name, kind="interface", package=package,
                file_path=rel_path, line_number=line, column=col,
                fields=embedded, methods=methods,
            )
        # Named non-struct types (type ID string) are not modelled
        return None

    def parse_file(self, filepath: Path) -> ParsedFile:
        rel_path = str(filepath)
        try:
            source = filepath.read_bytes()
        except OSError as e:
            raise ExtractionError(f"reading file: {e}", path=rel_path) from e

        tree = self._parser.parse(source)
        root = tree.root_node

        error_node = find_error_node(root)
        if error_node is not None:
            raise ExtractionError(
                f"{rel_path}:{describe_syntax_error(error_node, source)}",
                path=rel_path,
            )

        package = self._get_package_name(root, source)
        if package is None:
            raise ExtractionError(f"{rel_path}:1:1: expected 'package' clause",
                                  path=rel_path)

        parsed = ParsedFile(path=rel_path, source=source, tree=tree, package=package)
        for child in root.children:
            if child.type in FUNCTION_NODE_TYPES:
                fn = self._parse_function(child, source, rel_path, package)
                if fn is not None:
                    parsed.functions.append(fn)
            elif child.type == "import_declaration":
                parsed.imports.extend(
                    self._parse_imports(child, source, rel_path, package))

        parsed.types = self._collect_types(root, source, rel_path, package)
        return parsed
