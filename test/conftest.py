from __future__ import annotations

from threading import Lock
from typing import TYPE_CHECKING, Any

import pytest

from aurplan.rpc import RemoteMetadataService, RemoteServiceError, RemoteWarnings
from aurplan.models import RemotePackage

if TYPE_CHECKING:
    from collections.abc import Iterable


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--runintegration",
        action="store_true",
        default=False,
        help="run integration tests",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "integration: mark test as an integration test")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--runintegration"):
        # --runintegration given in cli: do not skip integration tests
        return
    skip_integration = pytest.mark.skip(reason="need --runintegration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeAUR(RemoteMetadataService):
    """An in-memory AUR that records every request made to it."""

    def __init__(self) -> None:
        self.packages: dict[str, RemotePackage] = {}
        self.refuse: set[str] = set()
        self.fail = False
        self.info_calls: list[list[str]] = []
        self.search_calls: list[str] = []
        self.warnings = RemoteWarnings()
        self._lock = Lock()

    def add(self, name: str, version: str = "1.0-1", **kwargs: Any) -> RemotePackage:
        pkg = RemotePackage(name=name, version=version, **kwargs)
        self.packages[name] = pkg
        return pkg

    def info(self, names: Iterable[str]) -> list[RemotePackage]:
        names = list(names)
        self.info_calls.append(names)
        if self.fail:
            msg = "connection refused"
            raise RemoteServiceError(msg)
        found = [self.packages[name] for name in names if name in self.packages]
        self.warnings.record(names, found)
        return found

    def search(self, fragment: str) -> list[RemotePackage]:
        with self._lock:
            self.search_calls.append(fragment)
        if fragment in self.refuse:
            msg = "Too many package results."
            raise RemoteServiceError(msg)
        return [
            pkg
            for pkg in self.packages.values()
            if fragment in pkg.name or any(fragment in provide for provide in pkg.provides)
        ]


@pytest.fixture
def aur() -> FakeAUR:
    return FakeAUR()
