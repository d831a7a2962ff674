"""Closed vocabularies for graph node and link types."""

from enum import Enum

# Tag written into every node's ``module`` metadata.
MODULE_ID = "ast"


class NodeType(str, Enum):
    PACKAGE = "package"
    FUNCTION = "function"
    STRUCT = "struct"
    INTERFACE = "interface"
    FIELD = "field"
    METHOD = "method"
    IMPORT = "import"


class LinkType(str, Enum):
    CALLS = "calls"              # function calls function
    IMPLEMENTS = "implements"    # struct satisfies interface
    CONTAINS = "contains"        # package -> type/func, struct -> field
    IMPORTS = "imports"          # package -> import
    EMBEDS = "embeds"            # type embeds type
    USES = "uses"                # function references type


# Declaration kind -> graph node type
TYPE_KIND_MAP = {
    "struct": NodeType.STRUCT,
    "interface": NodeType.INTERFACE,
}


def as_node_type(value) -> NodeType:
    """Coerce a string or NodeType to NodeType, raising ValueError if unknown."""
    if isinstance(value, NodeType):
        return value
    return NodeType(value)


def as_link_type(value) -> LinkType:
    """Coerce a string or LinkType to LinkType, raising ValueError if unknown."""
    if isinstance(value, LinkType):
        return value
    return LinkType(value)
