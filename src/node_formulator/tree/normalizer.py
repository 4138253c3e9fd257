"""Rewrite raw requirer locations into resource identifiers."""

from __future__ import annotations

import logging

from .errors import (
    OrphanedDependencyError,
    UnindexedLocationError,
    UnresolvedRootDependencyError,
)
from .resolver import ResolutionContext

logger = logging.getLogger(__name__)


def _lookup(ctx: ResolutionContext, location: str, message: str) -> str:
    identifier = ctx.locations.get(location)
    if identifier is None:
        raise UnindexedLocationError(f"{message} (unknown location {location!r})")
    return identifier


def _reconcile_deferred_roots(ctx: ResolutionContext) -> None:
    for name, occurrences in ctx.deferred.items():
        for deferred in occurrences:
            record = ctx.resources.get(name)
            if record is None:
                raise UnresolvedRootDependencyError(
                    f"error resolving nested root dependency: {deferred.identifier}"
                )
            if deferred.location:
                ctx.locations[deferred.location] = name
            for location in deferred.required_by:
                record.add_parent(
                    _lookup(
                        ctx,
                        location,
                        f"error normalizing nested root dependency: {deferred.identifier}",
                    )
                )


def _resolve_pending_parents(ctx: ResolutionContext) -> None:
    for identifier, record in ctx.resources.items():
        if not record.is_nested:
            continue
        pending = record.pending_locations
        if not pending:
            raise OrphanedDependencyError(f"error normalizing nested dependency: {identifier}")
        record.parents = []
        for location in pending:
            record.add_parent(
                _lookup(ctx, location, f"error normalizing nested dependency: {identifier}")
            )
        record.pending_locations = []


def normalize_parents(ctx: ResolutionContext) -> ResolutionContext:
    """Translate parent references once the resolver has finished.

    Deferred root dependencies are reconciled first so that their own
    locations are indexed before nested requirers are looked up.

    Raises:
        UnresolvedRootDependencyError: A deferred root never appeared resolved.
        UnindexedLocationError: A requirer location has no resource.
        OrphanedDependencyError: A nested resource has no requirer.
    """
    _reconcile_deferred_roots(ctx)
    _resolve_pending_parents(ctx)
    logger.debug("Normalized parents for %d resources", len(ctx.resources))
    return ctx
