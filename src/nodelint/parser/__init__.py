"""Parser modules for node package discovery and fact extraction."""

from nodelint.parser.discovery import PackageDiscovery
from nodelint.parser.extractors import CrossReferenceExtractor, FactSet
from nodelint.parser.loader import ArtifactLoader

__all__ = [
    "ArtifactLoader",
    "CrossReferenceExtractor",
    "FactSet",
    "PackageDiscovery",
]
