"""SHA-256 content hashes for registry tarballs.

Hashes are computed on a thread pool so that every resource of a tree can be
fetched concurrently while the resolver keeps walking; callers collect the
results as a single batch with :func:`gather_hashes`.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait

import requests

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_TIMEOUT = 30
USER_AGENT = "node-formulator (+https://github.com/Homebrew/homebrew-core)"


class HashFetchError(RuntimeError):
    """Raised when a resource cannot be downloaded for hashing."""


def fetch_sha256(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    user_agent: str = USER_AGENT,
) -> str:
    """Stream ``url`` and return the lowercase hex SHA-256 of its body."""

    digest = hashlib.sha256()
    try:
        with requests.get(
            url, headers={"User-Agent": user_agent}, stream=True, timeout=timeout
        ) as response:
            response.raise_for_status()
            for chunk in response.iter_content(chunk_size=chunk_size):
                if chunk:
                    digest.update(chunk)
    except requests.RequestException as exc:
        raise HashFetchError(f"Failed to fetch {url}: {exc}") from exc

    return digest.hexdigest()


def _completed(value: str | None) -> Future[str | None]:
    future: Future[str | None] = Future()
    future.set_result(value)
    return future


class HashFetcher:
    """Submit hash fetches to a shared worker pool.

    Only ``https://`` URLs are hashed; anything else (git, ssh, file, plain
    http) resolves to ``None`` after a warning so the formula can be finished
    by hand.
    """

    def __init__(
        self,
        *,
        max_workers: int = 8,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="sha256"
        )
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._user_agent = user_agent

    def __enter__(self) -> HashFetcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        self.close(cancel=exc is not None)

    def close(self, cancel: bool = False) -> None:
        self._executor.shutdown(wait=True, cancel_futures=cancel)

    def submit(self, url: str | None) -> Future[str | None]:
        if url is None:
            return _completed(None)
        if not url.startswith("https://"):
            logger.warning(
                "Only npm registry hosted dependencies are supported, not the one hosted "
                "at %s. You will have to fill out the resource fields for this dependency "
                "by hand.",
                url,
            )
            return _completed(None)
        return self._executor.submit(
            fetch_sha256,
            url,
            timeout=self._timeout,
            chunk_size=self._chunk_size,
            user_agent=self._user_agent,
        )


def gather_hashes(futures: Mapping[str, Future[str | None]]) -> dict[str, str | None]:
    """Wait for every future; the first failure cancels the rest and is raised."""

    if not futures:
        return {}

    done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)
    for future in done:
        if future.exception() is not None:
            for other in pending:
                other.cancel()
            raise future.exception()  # type: ignore[misc]

    return {key: future.result() for key, future in futures.items()}
