"""Classify dependency nodes into the shapes the resolver handles.

Each variant carries only the fields meaningful to it, so the resolver decides
once per node instead of probing optional npm fields at every use site.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from ..models import DependencyNode
from .location import tokenize_location


@dataclass(frozen=True, slots=True)
class Unresolved:
    """Node without an ``_id``; skipped together with its subtree."""

    name: str


@dataclass(frozen=True, slots=True)
class DeferredRoot:
    """Node referenced without a download URL, reconciled after the walk."""

    name: str
    identifier: str
    location: str
    required_by: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RootResolved:
    name: str
    identifier: str
    url: str
    location: str
    bin: dict[str, str]
    install_script: str | None


@dataclass(frozen=True, slots=True)
class NestedResolved:
    identifier: str
    url: str
    location: str
    required_by: tuple[str, ...]
    install_script: str | None


Classification: TypeAlias = Unresolved | DeferredRoot | RootResolved | NestedResolved


def classify(node: DependencyNode) -> Classification:
    if not node.identifier:
        return Unresolved(name=node.name)

    if not node.resolved:
        return DeferredRoot(
            name=node.name,
            identifier=node.identifier,
            location=node.location,
            required_by=node.required_by,
        )

    branch = tokenize_location(node.location)
    if len(branch) == 1:
        return RootResolved(
            name=node.name,
            identifier=node.identifier,
            url=node.resolved,
            location=node.location,
            bin=dict(node.bin),
            install_script=node.install_script,
        )

    return NestedResolved(
        identifier=node.identifier,
        url=node.resolved,
        location=node.location,
        required_by=node.required_by,
        install_script=node.install_script,
    )
