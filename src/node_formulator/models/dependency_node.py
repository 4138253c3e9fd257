"""Dependency node model decoded from ``npm ls --json --long`` output."""

from __future__ import annotations

from dataclasses import dataclass, field
from collections.abc import Iterable, Mapping
from typing import Any


def _names(value: Any) -> tuple[str, ...]:
    """Return dependency names from a list, mapping or ``true`` flag."""
    if isinstance(value, Mapping):
        return tuple(str(k) for k in value.keys())
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    if value is True:
        # ``bundleDependencies: true`` bundles every runtime dependency
        return ("*",)
    return ()


def _bin_mapping(name: str, value: Any) -> dict[str, str]:
    if isinstance(value, str):
        return {name.rsplit("/", 1)[-1]: value}
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items()}
    return {}


@dataclass(frozen=True)
class DependencyNode:
    """One entry in the nested dependency tree.

    Only the fields the resolver and formula renderer read are kept. Absent
    npm fields become ``None`` or empty collections.
    """

    name: str
    identifier: str | None = None
    resolved: str | None = None
    location: str = ""
    required_by: tuple[str, ...] = ()
    install_script: str | None = None
    bin: dict[str, str] = field(default_factory=dict)
    bundled_dependencies: tuple[str, ...] = ()
    optional_dependencies: tuple[str, ...] = ()
    dependencies: dict[str, DependencyNode] = field(default_factory=dict)
    description: str | None = None
    homepage: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> DependencyNode:
        scripts = data.get("scripts")
        install = scripts.get("install") if isinstance(scripts, Mapping) else None

        children: dict[str, DependencyNode] = {}
        deps = data.get("dependencies")
        if isinstance(deps, Mapping):
            for child_name, child in deps.items():
                if isinstance(child, Mapping):
                    children[str(child_name)] = cls.from_dict(str(child_name), child)

        required_by = data.get("_requiredBy") or []

        return cls(
            name=name,
            identifier=data.get("_id") or None,
            resolved=data.get("_resolved") or None,
            location=str(data.get("_location") or ""),
            required_by=tuple(str(r) for r in required_by),
            install_script=install if isinstance(install, str) and install else None,
            bin=_bin_mapping(name, data.get("bin")),
            bundled_dependencies=_names(
                data.get("bundleDependencies", data.get("bundledDependencies"))
            ),
            optional_dependencies=_names(data.get("optionalDependencies")),
            dependencies=children,
            description=data.get("description") or None,
            homepage=data.get("homepage") or None,
        )

    def walk(self) -> Iterable[DependencyNode]:
        """Yield every descendant, depth-first, in mapping order."""
        for child in self.dependencies.values():
            yield child
            yield from child.walk()

    def has_install_scripts(self) -> bool:
        """Return True when this node or any descendant declares an install script."""
        if self.install_script:
            return True
        return any(node.install_script for node in self.walk())
