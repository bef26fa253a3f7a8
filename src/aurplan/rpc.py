"""Client for the remote source-package registry (the AUR RPC interface)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from requests import RequestException, Session

from .config import DEFAULT_RPC_URL
from .models import RemotePackage, split_dep

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import Settings

logger = logging.getLogger(__name__)

RPC_VERSION = 5


class RemoteServiceError(RuntimeError):
    """Raised when the registry can not be reached or returns something unusable."""


class RemoteMetadataService(ABC):
    """Where remote package metadata comes from."""

    @abstractmethod
    def info(self, names: Iterable[str]) -> list[RemotePackage]:
        """Fetch the packages called ``names`` in one batch.

        Names that do not exist are absent from the result rather than an error.
        """
        raise NotImplementedError

    @abstractmethod
    def search(self, fragment: str) -> list[RemotePackage]:
        """Search packages by a fragment of their name or description."""
        raise NotImplementedError


@dataclass
class RemoteWarnings:
    """Things worth telling the user about the packages that were fetched."""

    missing: set[str] = field(default_factory=set)
    orphans: set[str] = field(default_factory=set)
    out_of_date: set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        """Return True if there is anything to report."""
        return bool(self.missing or self.orphans or self.out_of_date)

    def record(self, requested: Iterable[str], found: Iterable[RemotePackage]) -> None:
        """Update the warnings from one info request."""
        found = list(found)
        self.missing.update(set(requested) - {pkg.name for pkg in found})
        for pkg in found:
            if pkg.maintainer is None:
                self.orphans.add(pkg.name)
            if pkg.out_of_date:
                self.out_of_date.add(pkg.name)

    def log(self) -> None:
        """Log every warning at WARNING level."""
        if self.missing:
            logger.warning("Missing AUR packages: %s", " ".join(sorted(self.missing)))
        if self.orphans:
            logger.warning("Orphaned AUR packages: %s", " ".join(sorted(self.orphans)))
        if self.out_of_date:
            logger.warning("Flagged out of date AUR packages: %s", " ".join(sorted(self.out_of_date)))


class AURClient(RemoteMetadataService):
    """Client for the AUR RPC interface."""

    def __init__(
        self,
        url: str = DEFAULT_RPC_URL,
        *,
        timeout: float = 30.0,
        chunk_size: int = 150,
        session: Session | None = None,
    ) -> None:
        """Initialize the AUR RPC client.

        Args:
            url: Base URL of the RPC endpoint
            timeout: Timeout in seconds for each request
            chunk_size: Maximum number of names per info request
            session: HTTP session to reuse

        """
        if chunk_size <= 0:
            msg = "chunk_size must be positive"
            raise ValueError(msg)
        self.url = url
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session if session is not None else Session()
        self.session.headers["Accept"] = "application/json"
        self.warnings = RemoteWarnings()

    @classmethod
    def from_settings(cls, settings: Settings) -> AURClient:
        """Create a client configured by ``settings``."""
        return cls(settings.rpc_url, timeout=settings.rpc_timeout, chunk_size=settings.rpc_chunk_size)

    def _request(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Perform one RPC request and return its ``results``."""
        try:
            response = self.session.get(self.url, params={"v": RPC_VERSION, **params}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except RequestException as e:
            msg = f"AUR request failed: {e!s}"
            raise RemoteServiceError(msg) from e
        except ValueError as e:
            msg = f"AUR returned an invalid response: {e!s}"
            raise RemoteServiceError(msg) from e

        if not isinstance(payload, dict):
            msg = f"AUR returned an unexpected response: {payload!r}"
            raise RemoteServiceError(msg)
        if payload.get("type") == "error":
            msg = f"AUR error: {payload.get('error', 'unknown error')}"
            raise RemoteServiceError(msg)
        results = payload.get("results", [])
        if not isinstance(results, list):
            msg = f"AUR returned malformed results: {results!r}"
            raise RemoteServiceError(msg)
        return results

    @staticmethod
    def _parse(results: list[dict[str, Any]]) -> list[RemotePackage]:
        try:
            return [RemotePackage.model_validate(record) for record in results]
        except ValidationError as e:
            msg = f"AUR returned a malformed package record: {e!s}"
            raise RemoteServiceError(msg) from e

    def info(self, names: Iterable[str]) -> list[RemotePackage]:
        """Fetch package information, one request per ``chunk_size`` names.

        Version constraints are stripped from the names since the RPC only takes plain names.
        """
        query = sorted({split_dep(name)[0] for name in names} - {""})
        packages: list[RemotePackage] = []
        for start in range(0, len(query), self.chunk_size):
            chunk = query[start : start + self.chunk_size]
            logger.debug("Requesting info for %d AUR packages", len(chunk))
            found = self._parse(self._request({"type": "info", "arg[]": chunk}))
            self.warnings.record(chunk, found)
            packages.extend(found)
        return packages

    def search(self, fragment: str) -> list[RemotePackage]:
        """Search packages whose name or description contains ``fragment``."""
        logger.debug("Searching the AUR for %s", fragment)
        return self._parse(self._request({"type": "search", "by": "name-desc", "arg": fragment}))
