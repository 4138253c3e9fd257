"""Homebrew formula rendering for flattened node module resources."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Mapping, Sequence

from .models import DependencyNode, NativeAddon, ResourceRecord

# Homebrew audits ``desc`` against this line budget, including the formula name.
DESC_BUDGET = 62


def class_name(module_name: str) -> str:
    """``node-sass`` -> ``NodeSass``; ``@scope/pkg`` -> ``ScopePkg``."""
    titled = re.sub(r"\b\w", lambda m: m.group(0).upper(), module_name)
    return re.sub(r"\W", "", titled)


def sort_resources(resources: Mapping[str, ResourceRecord]) -> list[str]:
    """Root-level identifiers first, then nested ones, each group sorted."""
    return sorted(resources, key=lambda key: (resources[key].is_nested, key))


def _render_header(module_name: str, package: DependencyNode, sha256: str | None) -> list[str]:
    lines = ['require File.expand_path("../../Homebrew/node", __FILE__)', ""]
    lines.append(f"class {class_name(module_name)} < Formula")

    if package.description:
        if len(package.description) > DESC_BUDGET - len(module_name):
            lines.append("  # TODO: shorten description")
        lines.append(f'  desc "{package.description}"')
    else:
        lines.append('  desc "" # TODO: add a description')

    if package.homepage:
        lines.append(f'  homepage "{package.homepage}"')
    else:
        lines.append('  homepage "" # TODO: add a homepage')

    if package.resolved:
        lines.append(f'  url "{package.resolved}"')
    else:
        lines.append('  url "" # TODO: add the download URL')
    if package.resolved and sha256:
        lines.append(f'  sha256 "{sha256}"')
    else:
        lines.append('  sha256 "" # TODO: add the sha256 sum')
    lines.append("")
    return lines


def _render_dependencies(native: bool) -> list[str]:
    lines = ['  depends_on "node"']
    if native:
        lines.extend(
            [
                "  depends_on :python => :build",
                "",
                "  pour_bottle? do",
                '    reason "The bottle requires Node v5.x"',
                "    satisfy { Language::Node.is_major(5) }",
                "  end",
            ]
        )
    lines.append("")
    return lines


def render_resource(identifier: str, record: ResourceRecord, sha256: str | None) -> list[str]:
    lines = [f'  resource "{identifier}", NodeModule do', f'    url "{record.url}"']
    if sha256:
        lines.append(f'    sha256 "{sha256}"')
    else:
        lines.append('    sha256 "" # TODO: fill in download informations manually')

    if record.bin:
        pairs = ", ".join(
            f'"{posixpath.normpath(path)}" => "{name}"' for name, path in record.bin.items()
        )
        lines.append(f"    bin({{{pairs}}})")

    if record.parents:
        if len(record.parents) == 1:
            lines.append(f'    parent "{record.parents[0]}"')
        else:
            joined = '", "'.join(record.parents)
            lines.append(f'    parent ["{joined}"]')

    lines.append("  end")
    lines.append("")
    return lines


def _render_install(
    package: DependencyNode, native: bool, native_addons: Sequence[NativeAddon]
) -> list[str]:
    lines = ["  def install", '    libexec.install Dir["*"]']
    if native:
        lines.append(
            '    Language::Node.node_modules_install resources, libexec/"node_modules", true'
        )
        for addon in native_addons:
            lines.append(f'    cd libexec/"node_modules/{addon.identifier}" do')
            lines.append(f'      system "{addon.command}"')
            lines.append("    end")
    else:
        lines.append('    Language::Node.node_modules_install resources, libexec/"node_modules"')

    for name, path in package.bin.items():
        lines.append(f'    bin.install_symlink libexec/"{posixpath.normpath(path)}" => "{name}"')
    lines.append("  end")
    lines.append("")
    return lines


def render_formula(
    module_name: str,
    package: DependencyNode,
    resources: Mapping[str, ResourceRecord],
    hashes: Mapping[str, str | None],
    native_addons: Sequence[NativeAddon],
    *,
    native: bool,
    package_sha256: str | None = None,
) -> str:
    """Return the Ruby source of the formula for ``module_name``."""
    lines = _render_header(module_name, package, package_sha256)
    lines.extend(_render_dependencies(native))
    for identifier in sort_resources(resources):
        lines.extend(render_resource(identifier, resources[identifier], hashes.get(identifier)))
    lines.extend(_render_install(package, native, native_addons))
    lines.extend(["  test do", "    # TODO: add a test", "  end", "end"])
    return "\n".join(lines) + "\n"
