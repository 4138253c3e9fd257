"""npm subprocess helpers.

Only the commands the formula generator needs: version check, a global
install into a throwaway prefix, and ``npm ls --json --long``.
"""

from __future__ import annotations

import json
import logging
import subprocess
import sys
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

from .models import DependencyNode

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "npm-ls.schema.json"


class NpmError(RuntimeError):
    """Raised when an npm command fails."""


class UnsupportedNpmError(NpmError):
    """Raised when the installed npm does not produce the expected ls output."""


class NpmListError(NpmError):
    """Raised when ``npm ls`` output cannot be decoded or validated."""


def _run(npm: str, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run([npm, *args], text=True, **kwargs)
    except OSError as exc:
        raise NpmError(f"Failed to run {npm}: {exc}") from exc


def npm_version(npm: str = "npm") -> Version:
    proc = _run(npm, ["--version"], capture_output=True)
    if proc.returncode != 0:
        raise NpmError(f"'{npm} --version' exited with status {proc.returncode}")
    try:
        return Version(proc.stdout.strip())
    except InvalidVersion as exc:
        raise NpmError(f"Unrecognised npm version: {proc.stdout.strip()!r}") from exc


def check_npm_version(spec: SpecifierSet, npm: str = "npm") -> Version:
    """Return the npm version, or raise UnsupportedNpmError if outside ``spec``."""
    version = npm_version(npm)
    if version not in spec:
        raise UnsupportedNpmError(
            f"unsupported npm {version} (need {spec}): install a supported npm, "
            "then reinstall the npm module with it and retry creating the formula"
        )
    return version


def install_module(module_name: str, prefix: Path, npm: str = "npm") -> Path:
    """Install ``module_name`` globally under ``prefix`` and return its directory.

    npm's own progress output is forwarded to stderr so stdout stays clean
    for the formula.
    """
    logger.info("Installing %s into %s", module_name, prefix)
    proc = _run(
        npm,
        ["install", "--global", "--prefix", str(prefix), module_name],
        stdout=sys.stderr,
        stderr=sys.stderr,
    )
    if proc.returncode != 0:
        raise NpmError(f"'npm install {module_name}' exited with status {proc.returncode}")
    return prefix / "lib" / "node_modules" / module_name


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema = json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))
    return Draft202012Validator(schema)


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def parse_listing(text: str, name: str) -> tuple[dict[str, Any], DependencyNode]:
    """Decode and validate ``npm ls --json --long`` output.

    Returns the raw payload and the decoded top-level node.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise NpmListError(f"npm ls did not return JSON: {exc}") from exc

    errors = sorted(_validator().iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise NpmListError("npm ls output failed validation:\n" + _format_errors(errors))

    return payload, DependencyNode.from_dict(payload.get("name") or name, payload)


def list_dependencies(cwd: Path, name: str, npm: str = "npm") -> tuple[dict[str, Any], DependencyNode]:
    """Run ``npm ls --json --long`` in ``cwd`` and decode the tree."""
    logger.info("Getting dependency tree data from npm ls --json --long")
    proc = _run(npm, ["ls", "--json", "--long"], cwd=cwd, capture_output=True)
    if proc.returncode != 0:
        if not proc.stdout.strip():
            raise NpmListError(
                f"'npm ls' exited with status {proc.returncode}: {proc.stderr.strip()}"
            )
        logger.warning(
            "npm ls reported problems (status %d); continuing with its output",
            proc.returncode,
        )
    return parse_listing(proc.stdout, name)
