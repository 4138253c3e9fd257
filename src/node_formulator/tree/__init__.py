"""Dependency tree flattening: tokenize, classify, resolve, normalize."""

from .classify import (
    Classification,
    DeferredRoot,
    NestedResolved,
    RootResolved,
    Unresolved,
    classify,
)
from .errors import (
    DuplicateRootDependencyError,
    OrphanedDependencyError,
    StructuralError,
    UnindexedLocationError,
    UnresolvedRootDependencyError,
)
from .location import tokenize_location
from .normalizer import normalize_parents
from .resolver import ResolutionContext, force_source_build, resolve_dependencies

__all__ = [
    # Classification
    "Classification",
    "DeferredRoot",
    "NestedResolved",
    "RootResolved",
    "Unresolved",
    "classify",
    # Errors
    "DuplicateRootDependencyError",
    "OrphanedDependencyError",
    "StructuralError",
    "UnindexedLocationError",
    "UnresolvedRootDependencyError",
    # Passes
    "ResolutionContext",
    "force_source_build",
    "normalize_parents",
    "resolve_dependencies",
    "tokenize_location",
]
