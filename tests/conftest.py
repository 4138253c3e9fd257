from __future__ import annotations

import hashlib
import logging
import os
import sys
from concurrent.futures import Future
from typing import Any

import pytest

_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

REGISTRY = "https://registry.npmjs.org"


def tarball(name: str, version: str) -> str:
    return f"{REGISTRY}/{name}/-/{name}-{version}.tgz"


def fake_digest(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def dep(
    name: str,
    version: str,
    location: str,
    required_by: list[str],
    *,
    resolved: bool = True,
    **extra: Any,
) -> dict[str, Any]:
    """Build one ``npm ls --json --long`` dependency entry."""
    data: dict[str, Any] = {
        "name": name,
        "version": version,
        "_id": f"{name}@{version}",
        "_location": location,
        "_requiredBy": required_by,
    }
    if resolved:
        data["_resolved"] = tarball(name, version)
    data.update(extra)
    return data


class FakeFetcher:
    """Hash fetcher returning completed futures keyed off the URL."""

    def __init__(self) -> None:
        self.urls: list[str | None] = []

    def __enter__(self) -> FakeFetcher:
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def submit(self, url: str | None) -> Future[str | None]:
        self.urls.append(url)
        future: Future[str | None] = Future()
        future.set_result(fake_digest(url) if url else None)
        return future


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("node_formulator")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
