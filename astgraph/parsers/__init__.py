"""Source extractors producing declarations from syntax trees."""

from .models import (
    PackageDecl, ImportDecl, FunctionDecl, TypeDecl,
    StructField, InterfaceMethod, ParsedFile,
)
from .base import SourceExtractor
from .go import GoExtractor

__all__ = [
    "PackageDecl", "ImportDecl", "FunctionDecl", "TypeDecl",
    "StructField", "InterfaceMethod", "ParsedFile",
    "SourceExtractor", "GoExtractor",
]
