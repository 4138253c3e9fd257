from __future__ import annotations

import logging
from typing import Any

import pytest

from node_formulator.models import DependencyNode, NativeAddon
from node_formulator.tree import (
    DuplicateRootDependencyError,
    ResolutionContext,
    force_source_build,
    resolve_dependencies,
)

from conftest import dep, tarball


def _children(deps: dict[str, Any]) -> dict[str, DependencyNode]:
    return DependencyNode.from_dict("app", {"dependencies": deps}).dependencies


def _resolve(deps: dict[str, Any], fetcher, native: bool = False) -> ResolutionContext:
    ctx = ResolutionContext(fetch_hash=fetcher.submit, native=native)
    return resolve_dependencies(_children(deps), ctx)


def test_root_and_nested_records(fetcher) -> None:
    ctx = _resolve(
        {
            "A": dep(
                "A",
                "1.0.0",
                "/A",
                ["/"],
                dependencies={"B": dep("B", "2.0.0", "/A/B", ["/A"])},
            )
        },
        fetcher,
    )

    assert list(ctx.resources) == ["A", "B@2.0.0"]
    root = ctx.resources["A"]
    assert root.name == "A"
    assert root.is_nested is False
    assert root.url == tarball("A", "1.0.0")
    nested = ctx.resources["B@2.0.0"]
    assert nested.name == "B@2.0.0"
    assert nested.is_nested is True
    assert nested.pending_locations == ["/A"]
    assert ctx.locations == {"/A": "A", "/A/B": "B@2.0.0"}
    assert fetcher.urls == [tarball("A", "1.0.0"), tarball("B", "2.0.0")]
    assert set(ctx.hashes) == {"A", "B@2.0.0"}


def test_nested_duplicates_merge_into_one_record(fetcher) -> None:
    ctx = _resolve(
        {
            "A": dep(
                "A",
                "1.0.0",
                "/A",
                ["/"],
                dependencies={"B": dep("B", "2.0.0", "/A/node_modules/B", ["/A"])},
            ),
            "C": dep(
                "C",
                "1.0.0",
                "/C",
                ["/"],
                dependencies={"B": dep("B", "2.0.0", "/C/node_modules/B", ["/C"])},
            ),
        },
        fetcher,
    )

    assert [k for k in ctx.resources if k.startswith("B")] == ["B@2.0.0"]
    assert ctx.resources["B@2.0.0"].pending_locations == ["/A", "/C"]
    assert ctx.locations["/A/node_modules/B"] == "B@2.0.0"
    assert ctx.locations["/C/node_modules/B"] == "B@2.0.0"
    # only the first occurrence starts a download
    assert fetcher.urls.count(tarball("B", "2.0.0")) == 1


def test_root_and_nested_with_same_name_are_distinct(fetcher) -> None:
    ctx = _resolve(
        {
            "debug": dep("debug", "3.0.0", "/debug", ["/"]),
            "A": dep(
                "A",
                "1.0.0",
                "/A",
                ["/"],
                dependencies={"debug": dep("debug", "2.6.9", "/A/debug", ["/A"])},
            ),
        },
        fetcher,
    )

    assert ctx.resources["debug"].is_nested is False
    assert ctx.resources["debug@2.6.9"].is_nested is True


def test_duplicate_root_dependency_is_fatal(fetcher) -> None:
    deps = {
        "A": dep(
            "A",
            "1.0.0",
            "/A",
            ["/"],
            dependencies={"left-pad": dep("left-pad", "1.1.0", "/left-pad", ["/A"])},
        ),
        "left-pad": dep("left-pad", "1.1.0", "/left-pad", ["/"]),
    }

    with pytest.raises(DuplicateRootDependencyError, match="left-pad@1.1.0"):
        _resolve(deps, fetcher)


def test_node_without_identifier_is_skipped_with_its_subtree(fetcher) -> None:
    ctx = _resolve(
        {
            "ghost": {
                "required": "ghost@^1.0.0",
                "missing": True,
                "dependencies": {"inner": dep("inner", "1.0.0", "/inner", ["/ghost"])},
            }
        },
        fetcher,
    )

    assert ctx.resources == {}
    assert ctx.locations == {}
    assert fetcher.urls == []


def test_unresolved_node_is_deferred_and_children_still_walked(fetcher) -> None:
    ctx = _resolve(
        {
            "A": dep(
                "A",
                "1.0.0",
                "/A",
                ["/"],
                dependencies={
                    "D": dep(
                        "D",
                        "1.0.0",
                        "/A/D",
                        ["/A"],
                        resolved=False,
                        dependencies={"E": dep("E", "1.0.0", "/A/D/E", ["/A/D"])},
                    )
                },
            ),
            "D": dep("D", "1.0.0", "/D", ["/"]),
        },
        fetcher,
    )

    assert [d.location for d in ctx.deferred["D"]] == ["/A/D"]
    assert "E@1.0.0" in ctx.resources
    assert ctx.resources["D"].is_nested is False
    assert "/A/D" not in ctx.locations


def test_bin_captured_only_in_native_mode(fetcher) -> None:
    deps = {"tool": dep("tool", "1.0.0", "/tool", ["/"], bin={"tool": "./bin/tool"})}

    assert _resolve(deps, fetcher).resources["tool"].bin is None
    assert _resolve(deps, fetcher, native=True).resources["tool"].bin == {"tool": "./bin/tool"}


def test_nested_resources_never_carry_bin(fetcher) -> None:
    deps = {
        "A": dep(
            "A",
            "1.0.0",
            "/A",
            ["/"],
            dependencies={"t": dep("t", "1.0.0", "/A/t", ["/A"], bin={"t": "t.js"})},
        )
    }
    assert _resolve(deps, fetcher, native=True).resources["t@1.0.0"].bin is None


def test_install_scripts_are_rewritten_and_recorded(fetcher) -> None:
    ctx = _resolve(
        {
            "sqlite3": dep(
                "sqlite3",
                "3.1.8",
                "/sqlite3",
                ["/"],
                scripts={"install": "node-pre-gyp install --fallback-to-build"},
                dependencies={
                    "leveldown": dep(
                        "leveldown",
                        "1.5.0",
                        "/sqlite3/leveldown",
                        ["/sqlite3"],
                        scripts={"install": "prebuild --install"},
                    )
                },
            )
        },
        fetcher,
        native=True,
    )

    assert ctx.native_addons == [
        NativeAddon("sqlite3", "node-pre-gyp --build-from-source install --fallback-to-build"),
        NativeAddon("leveldown@1.5.0", "prebuild --compile --install"),
    ]
    assert ctx.resources["sqlite3"].install_command == (
        "node-pre-gyp --build-from-source install --fallback-to-build"
    )


def test_force_source_build_leaves_other_tools_alone() -> None:
    assert force_source_build("node-gyp rebuild") == "node-gyp rebuild"
    assert force_source_build("prebuild-install || node-gyp rebuild") == (
        "prebuild-install || node-gyp rebuild"
    )


def test_unsupported_dependency_kinds_warn(fetcher, caplog) -> None:
    deps = {
        "chokidar": dep(
            "chokidar",
            "1.7.0",
            "/chokidar",
            ["/"],
            optionalDependencies={"fsevents": "^1.0.0"},
        ),
        "npm-bundle": dep(
            "npm-bundle",
            "1.0.0",
            "/npm-bundle",
            ["/"],
            bundleDependencies=["inner"],
        ),
    }

    with caplog.at_level(logging.WARNING, logger="node_formulator"):
        ctx = _resolve(deps, fetcher)

    messages = [r.getMessage() for r in caplog.records]
    assert any("optional dependencies" in m and "chokidar@1.7.0" in m for m in messages)
    assert any("bundled dependencies" in m and "npm-bundle@1.0.0" in m for m in messages)
    assert set(ctx.resources) == {"chokidar", "npm-bundle"}


def test_merged_native_duplicate_is_built_once(fetcher) -> None:
    def _native(location: str, requirer: str) -> dict[str, Any]:
        return dep("N", "1.0.0", location, [requirer], scripts={"install": "node-pre-gyp install"})

    ctx = _resolve(
        {
            "A": dep("A", "1.0.0", "/A", ["/"], dependencies={"N": _native("/A/N", "/A")}),
            "C": dep("C", "1.0.0", "/C", ["/"], dependencies={"N": _native("/C/N", "/C")}),
        },
        fetcher,
        native=True,
    )

    assert ctx.native_addons == [
        NativeAddon("N@1.0.0", "node-pre-gyp --build-from-source install")
    ]
    assert ctx.resources["N@1.0.0"].pending_locations == ["/A", "/C"]
