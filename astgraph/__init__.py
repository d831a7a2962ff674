"""astgraph - analyze Go source code into a queryable graph using tree-sitter.

Usage::

    from astgraph import AstModule, MemoryStore

    store = MemoryStore()
    AstModule(store).analyze("/path/to/project")
    store.get_node("Greeter")
"""

try:
    import tree_sitter  # noqa: F401
except ImportError:
    raise ImportError(
        "astgraph requires tree-sitter. "
        "Install with: pip install tree-sitter tree-sitter-go"
    ) from None

__version__ = "0.1.0"

from .errors import (
    AstGraphError, ExtractionError, NotReadyError, StoreError, NotFoundError,
)
from .kinds import MODULE_ID, NodeType, LinkType
from .settings import Settings, load_settings
from .store import GraphStore, MemoryStore, Node, Link
from .parsers import GoExtractor
from .analyzer import Analyzer, TypeInfo
from .builder import GraphBuilder
from .module import AstModule

__all__ = [
    "__version__",
    "AstGraphError", "ExtractionError", "NotReadyError", "StoreError", "NotFoundError",
    "MODULE_ID", "NodeType", "LinkType",
    "Settings", "load_settings",
    "GraphStore", "MemoryStore", "Node", "Link",
    "GoExtractor", "Analyzer", "TypeInfo", "GraphBuilder", "AstModule",
]
