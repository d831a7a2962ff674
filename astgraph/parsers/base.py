"""Abstract base class for source extractors and shared helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from ..errors import ExtractionError
from ..settings import Settings
from .models import FunctionDecl, ImportDecl, PackageDecl, ParsedFile, TypeDecl


class SourceExtractor(ABC):
    """Base class that language extractors extend.

    Holds the parsed files of one analysis run. ``parse_path`` may be called
    repeatedly; results merge into the same collection, keyed by file path.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._files: dict[str, ParsedFile] = {}
        self.errors: list[dict[str, str]] = []

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the language identifier (e.g. 'go')."""
        ...

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """Return list of file extensions this extractor handles (e.g. ['.go'])."""
        ...

    @property
    def noise_names(self) -> frozenset[str]:
        """Builtin and stdlib names never worth reporting as unresolved.

        Override in subclasses to provide language-specific noise sets.
        """
        return frozenset()

    @abstractmethod
    def parse_file(self, filepath: Path) -> ParsedFile:
        """Parse a single source file.

        Raises:
            ExtractionError: If the file is unreadable or syntax-invalid.
        """
        ...

    # ── Collecting ─────────────────────────────────────────────────────

    def parse_path(self, path: Union[str, Path]) -> None:
        """Parse a single file, or every matching file below a directory."""
        path = Path(path)
        if not path.exists():
            raise ExtractionError(f"checking path: no such file or directory: {path}",
                                  path=str(path))

        if path.is_dir():
            self.parse_directory(path)
            return

        if path.suffix not in self.file_extensions:
            raise ExtractionError(
                f"source file must be a {'/'.join(self.file_extensions)} file: {path}",
                path=str(path),
            )
        self._add(self.parse_file(path))

    def parse_directory(self, src_root: Path) -> None:
        """Parse all matching files under src_root, in sorted path order.

        A file that fails is recorded in ``errors`` and skipped. An
        aggregate ExtractionError is raised when every file failed, or when
        any file failed in strict mode.
        """
        source_files = self.find_source_files(src_root)
        if self.settings.verbose:
            print(f"  Found {len(source_files)} {self.language_name} files")
        if not source_files:
            raise ExtractionError(
                f"no {self.language_name} source files found in {src_root}",
                path=str(src_root),
            )

        failures: list[tuple[str, str]] = []
        for filepath in source_files:
            try:
                parsed = self.parse_file(filepath)
            except ExtractionError as e:
                failures.append((str(filepath), e.message))
                self._report_error(str(filepath), e.message)
                continue
            self._add(parsed)

        if failures and (self.settings.strict or len(failures) == len(source_files)):
            listing = "; ".join(f"{p}: {msg}" for p, msg in failures)
            raise ExtractionError(
                f"{len(failures)} of {len(source_files)} files failed: {listing}",
                path=str(src_root),
                failures=failures,
            )

    def find_source_files(self, src_root: Path) -> list[Path]:
        source_files = []
        for ext in self.file_extensions:
            source_files.extend(src_root.rglob(f"*{ext}"))

        selected = []
        for filepath in sorted(set(source_files)):
            if not filepath.is_file():
                continue
            rel_dirs = filepath.relative_to(src_root).parts[:-1]
            if any(self._is_excluded_dir(d) for d in rel_dirs):
                continue
            if not self.settings.include_tests and self.is_test_file(filepath):
                continue
            selected.append(filepath)
        return selected

    def _is_excluded_dir(self, name: str) -> bool:
        return (name in self.settings.exclude_dirs
                or name.startswith(".") or name.startswith("_"))

    def is_test_file(self, filepath: Path) -> bool:
        return False

    def _add(self, parsed: ParsedFile) -> None:
        self._files[parsed.path] = parsed
        if self.settings.verbose:
            print(f"  Parsed {parsed.path} (package {parsed.package})")

    def _report_error(self, context: str, message: str) -> None:
        """Accumulate a per-file failure."""
        self.errors.append({"context": context, "message": message})

    # ── Queries ─────────────────────────────────────────────────────────

    def files(self) -> dict[str, ParsedFile]:
        return dict(self._files)

    def package_decls(self) -> list[PackageDecl]:
        """One package clause per parsed file."""
        return [PackageDecl(name=f.package, file_path=f.path)
                for f in self._files.values()]

    def packages(self) -> list[str]:
        """Distinct package names seen, sorted."""
        return sorted({p.name for p in self.package_decls()})

    def imports(self) -> dict[str, list[str]]:
        """Map package name -> import paths across all of its files."""
        result: dict[str, list[str]] = {}
        for f in self._files.values():
            for imp in f.imports:
                result.setdefault(f.package, []).append(imp.path)
        return result

    def import_decls(self) -> list[ImportDecl]:
        return [imp for f in self._files.values() for imp in f.imports]

    def types(self) -> list[TypeDecl]:
        return [t for f in self._files.values() for t in f.types]

    def functions(self) -> list[FunctionDecl]:
        return [fn for f in self._files.values() for fn in f.functions]

    def position(self, decl: Union[FunctionDecl, TypeDecl]) -> str:
        """Human-readable ``file:line:column`` location of a declaration."""
        return decl.position


# ── Shared helpers ─────────────────────────────────────────────────────


def node_text(node, source: bytes) -> str:
    """Extract the text of a tree-sitter node."""
    return source[node.start_byte:node.end_byte].decode("utf8")


def node_position(node) -> tuple[int, int]:
    """1-based (line, column) of a tree-sitter node's start."""
    row, col = node.start_point
    return row + 1, col + 1


def find_error_node(root):
    """Return the first ERROR or MISSING node in document order, or None."""
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        # Only descend into subtrees that contain an error
        stack.extend(c for c in reversed(node.children) if c.has_error or c.is_missing)
    return None


def describe_syntax_error(node, source: bytes) -> str:
    line, col = node_position(node)
    if node.is_missing:
        return f"{line}:{col}: syntax error: missing {node.type}"
    snippet = node_text(node, source).splitlines()[0] if node.end_byte > node.start_byte else ""
    if len(snippet) > 40:
        snippet = snippet[:40] + "..."
    return f"{line}:{col}: syntax error near {snippet!r}"
