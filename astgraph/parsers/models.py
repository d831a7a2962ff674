"""Declarations extracted from Go source files."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PackageDecl:
    name: str
    file_path: str


@dataclass
class ImportDecl:
    path: str                  # unquoted, e.g. "net/http"
    alias: str | None          # "h" in `import h "net/http"`, "_" and "." kept
    package: str               # importing package
    file_path: str
    line_number: int


@dataclass
class FunctionDecl:
    name: str
    receiver: str | None       # as written: "Dog", "*Dog"
    receiver_type: str | None  # base type name: "Dog"
    package: str
    file_path: str
    line_number: int
    column: int

    @property
    def is_method(self) -> bool:
        return self.receiver is not None

    @property
    def position(self) -> str:
        return f"{self.file_path}:{self.line_number}:{self.column}"


@dataclass
class StructField:
    """A struct field, or an embedded element of an interface.

    ``name`` is None for embedded (anonymous) fields; ``type_name`` then
    holds the embedded type with any pointer star removed.
    """
    owner: str
    name: str | None
    type_name: str
    line_number: int
    column: int

    @property
    def is_embedded(self) -> bool:
        return self.name is None


@dataclass
class InterfaceMethod:
    owner: str
    name: str
    line_number: int
    column: int


@dataclass
class TypeDecl:
    name: str
    kind: str                  # "struct" | "interface"
    package: str
    file_path: str
    line_number: int
    column: int
    fields: list[StructField] = field(default_factory=list)
    methods: list[InterfaceMethod] = field(default_factory=list)

    @property
    def position(self) -> str:
        return f"{self.file_path}:{self.line_number}:{self.column}"


@dataclass
class ParsedFile:
    """One parsed source file and the declarations found in it."""
    path: str
    source: bytes
    tree: object               # tree_sitter.Tree
    package: str
    imports: list[ImportDecl] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    functions: list[FunctionDecl] = field(default_factory=list)
