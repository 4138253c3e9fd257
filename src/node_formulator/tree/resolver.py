"""Flatten the nested npm dependency tree into resource records.

The walk is depth-first in mapping order. Root-level dependencies (a single
location segment) are keyed by bare name; deeper occurrences are keyed by
their ``name@version`` identifier and merged when seen again. Requirers of
nested dependencies are kept as raw locations here and translated later by
:func:`~node_formulator.tree.normalizer.normalize_parents`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from dataclasses import dataclass, field

from ..models import DependencyNode, NativeAddon, ResourceRecord
from .classify import DeferredRoot, NestedResolved, RootResolved, Unresolved, classify
from .errors import DuplicateRootDependencyError

logger = logging.getLogger(__name__)

HashFetch = Callable[[str | None], Future[str | None]]

# Prebuilt binary tools and the flag forcing each of them to compile locally.
_SOURCE_BUILD_REWRITES = (
    (re.compile(r"(?<![\w-])node-pre-gyp(?![\w-])"), "node-pre-gyp --build-from-source"),
    (re.compile(r"(?<![\w-])prebuild(?![\w-])"), "prebuild --compile"),
)


@dataclass
class ResolutionContext:
    """Mutable state for one resolution run.

    ``locations`` maps tree locations to resource identifiers. ``deferred``
    holds, per name, the occurrences seen without a download URL.
    """

    fetch_hash: HashFetch
    native: bool = False
    resources: dict[str, ResourceRecord] = field(default_factory=dict)
    locations: dict[str, str] = field(default_factory=dict)
    hashes: dict[str, Future[str | None]] = field(default_factory=dict)
    deferred: dict[str, list[DeferredRoot]] = field(default_factory=dict)
    native_addons: list[NativeAddon] = field(default_factory=list)


def force_source_build(command: str) -> str:
    """Rewrite prebuilt binary downloads in an install script to build from source."""
    for pattern, replacement in _SOURCE_BUILD_REWRITES:
        command = pattern.sub(replacement, command, count=1)
    return command


def _warn_unsupported(node: DependencyNode) -> None:
    label = node.identifier or node.name
    if node.bundled_dependencies:
        logger.warning(
            "No support for bundled dependencies yet requested by %s. They are installed "
            "a second time in the flat dependency structure, which may cause linking "
            "conflicts you need to resolve by hand!",
            label,
        )
    if node.optional_dependencies:
        logger.warning(
            "No support for optional dependencies yet requested by %s. They are ignored "
            "because they may not work on the current platform and there is no fallback "
            "for them yet.",
            label,
        )


def _add_root(entry: RootResolved, ctx: ResolutionContext) -> ResourceRecord:
    if entry.name in ctx.resources:
        raise DuplicateRootDependencyError(
            f"error resolving root dependency: {entry.identifier}"
        )
    record = ResourceRecord(
        name=entry.name,
        url=entry.url,
        is_nested=False,
        bin=entry.bin if ctx.native and entry.bin else None,
    )
    ctx.resources[entry.name] = record
    ctx.hashes[entry.name] = ctx.fetch_hash(entry.url)
    ctx.locations[entry.location] = entry.name
    return record


def _add_nested(entry: NestedResolved, ctx: ResolutionContext) -> ResourceRecord:
    record = ctx.resources.get(entry.identifier)
    if record is not None:
        record.pending_locations.extend(entry.required_by)
    else:
        record = ResourceRecord(
            name=entry.identifier,
            url=entry.url,
            is_nested=True,
            pending_locations=list(entry.required_by),
        )
        ctx.resources[entry.identifier] = record
        ctx.hashes[entry.identifier] = ctx.fetch_hash(entry.url)
    ctx.locations[entry.location] = entry.identifier
    return record


def resolve_dependencies(
    dependencies: Mapping[str, DependencyNode], ctx: ResolutionContext
) -> ResolutionContext:
    """Walk ``dependencies`` recursively, filling ``ctx`` in place.

    Raises:
        DuplicateRootDependencyError: If a root-level name is declared twice.
    """
    for node in dependencies.values():
        _warn_unsupported(node)
        entry = classify(node)

        if isinstance(entry, Unresolved):
            # TODO: descendants of an identifier-less node are dropped even when
            # independently resolvable; decide whether they should still be walked.
            logger.debug("Skipping unresolved dependency %s", entry.name)
            continue

        if isinstance(entry, DeferredRoot):
            ctx.deferred.setdefault(entry.name, []).append(entry)
        else:
            if isinstance(entry, RootResolved):
                record = _add_root(entry, ctx)
                identifier = entry.name
            else:
                record = _add_nested(entry, ctx)
                identifier = entry.identifier

            # merged duplicates share one build step
            if entry.install_script and record.install_command is None:
                command = force_source_build(entry.install_script)
                record.install_command = command
                ctx.native_addons.append(NativeAddon(identifier=identifier, command=command))

        resolve_dependencies(node.dependencies, ctx)

    return ctx
