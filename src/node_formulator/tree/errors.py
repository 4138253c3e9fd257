"""Errors raised when a dependency tree violates the flattening assumptions."""

from __future__ import annotations


class StructuralError(RuntimeError):
    """Base error for inconsistent dependency trees. Always fatal."""


class DuplicateRootDependencyError(StructuralError):
    """Raised when the same root-level dependency is declared twice."""


class UnindexedLocationError(StructuralError):
    """Raised when a requirer location was never assigned a resource."""


class OrphanedDependencyError(StructuralError):
    """Raised when a nested dependency has no requirer."""


class UnresolvedRootDependencyError(StructuralError):
    """Raised when a deferred root dependency never appears resolved."""
