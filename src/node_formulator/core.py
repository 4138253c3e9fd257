"""Formula generation entrypoints.

This module wires the npm collaborator, the tree flattening passes and the
hash fetcher together. It performs no output of its own; callers decide where
the returned formula text goes.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .config import Settings
from .formula import render_formula
from .hashing import HashFetcher, gather_hashes
from .models import DependencyNode, NativeAddon, ResourceRecord
from .npm import check_npm_version, install_module, list_dependencies
from .tree import ResolutionContext, normalize_parents, resolve_dependencies

logger = logging.getLogger(__name__)

_PACKAGE_KEY = "\0package"


@dataclass
class FlattenedTree:
    """Result of flattening one dependency tree, hashes included."""

    resources: dict[str, ResourceRecord]
    hashes: dict[str, str | None]
    native_addons: list[NativeAddon]
    native: bool
    package_sha256: str | None


def flatten_tree(package: DependencyNode, fetcher: HashFetcher) -> FlattenedTree:
    """Resolve and normalize ``package``'s dependencies, then collect all hashes.

    Raises:
        StructuralError: If the tree is inconsistent; no hashes are awaited.
        HashFetchError: If any resource download fails.
    """
    native = package.has_install_scripts()
    ctx = ResolutionContext(fetch_hash=fetcher.submit, native=native)

    futures = {_PACKAGE_KEY: fetcher.submit(package.resolved)}

    logger.info("Resolving dependency tree")
    resolve_dependencies(package.dependencies, ctx)
    logger.info("Normalizing dependency parents")
    normalize_parents(ctx)

    futures.update(ctx.hashes)
    hashes = gather_hashes(futures)
    package_sha256 = hashes.pop(_PACKAGE_KEY)

    return FlattenedTree(
        resources=ctx.resources,
        hashes=hashes,
        native_addons=ctx.native_addons,
        native=native,
        package_sha256=package_sha256,
    )


def _fetcher_for(settings: Settings) -> HashFetcher:
    return HashFetcher(
        max_workers=settings.max_workers,
        timeout=settings.request_timeout,
        chunk_size=settings.chunk_size,
        user_agent=settings.user_agent,
    )


def formula_for_tree(module_name: str, package: DependencyNode, settings: Settings) -> str:
    """Render the formula for an already decoded ``npm ls`` tree."""
    with _fetcher_for(settings) as fetcher:
        flat = flatten_tree(package, fetcher)

    return render_formula(
        module_name,
        package,
        flat.resources,
        flat.hashes,
        flat.native_addons,
        native=flat.native,
        package_sha256=flat.package_sha256,
    )


def generate_formula(
    module_name: str,
    module_path: Path | None = None,
    settings: Settings | None = None,
) -> str:
    """Generate a Homebrew formula for ``module_name``.

    Params:
        module_name: npm package to package
        module_path: existing install of the module (dependencies installed
            with a supported npm); when None the module is installed from the
            registry into a temporary prefix which is removed afterwards
        settings: loaded settings; defaults when None
    """
    settings = settings or Settings()
    npm = settings.npm_executable
    check_npm_version(settings.npm_specifier, npm)

    tmpdir: Path | None = None
    try:
        if module_path is None:
            tmpdir = Path(tempfile.mkdtemp(prefix=settings.temp_prefix))
            module_path = install_module(module_name, tmpdir, npm)

        _, package = list_dependencies(module_path, module_name, npm)
        formula = formula_for_tree(module_name, package, settings)
    finally:
        if tmpdir is not None:
            logger.info("Cleaning up: removing %s", tmpdir)
            shutil.rmtree(tmpdir, ignore_errors=True)

    logger.info("Finished generating formula!")
    return formula
