"""Flattened resource models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ResourceRecord:
    """One deduplicated installable package.

    Root-level records are keyed by their bare name, nested ones by their
    ``name@version`` identifier. ``pending_locations`` holds raw requirer
    locations until the parent normalizer turns them into ``parents``.
    """

    name: str
    url: str
    is_nested: bool
    parents: list[str] = field(default_factory=list)
    pending_locations: list[str] = field(default_factory=list)
    bin: dict[str, str] | None = None
    install_command: str | None = None

    def add_parent(self, identifier: str) -> None:
        if identifier not in self.parents:
            self.parents.append(identifier)


@dataclass(frozen=True)
class NativeAddon:
    """A resource needing a manual post-install build step."""

    identifier: str
    command: str
