"""Access to the local package databases: the configured sync repositories and the installed packages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .models import LocalPackage
from .satisfy import package_satisfies, provide_satisfies
from .version import vercmp

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .version import VersionComparator


class ConfigurationError(ValueError):
    """Raised when the request refers to something the configuration does not have."""


class UnknownRepositoryError(ConfigurationError):
    """Raised when a target names a repository that is not configured."""


class PackageDatabase(ABC):
    """The binary package databases the resolver reads from.

    Implementations are read-only from the resolver's point of view.
    """

    @abstractmethod
    def find_installed_satisfier(self, dep: str) -> LocalPackage | None:
        """Return an installed package satisfying ``dep``, or None."""
        raise NotImplementedError

    @abstractmethod
    def find_sync_satisfier(self, dep: str, db: str | None = None) -> LocalPackage | None:
        """Return a package satisfying ``dep`` from repository ``db``, or from any repository if ``db`` is None.

        Raises:
            UnknownRepositoryError: ``db`` is not a configured repository.

        """
        raise NotImplementedError

    @abstractmethod
    def find_group(self, name: str, db: str | None = None) -> bool:
        """Check whether ``name`` is a package group in repository ``db`` (or in any repository)."""
        raise NotImplementedError

    @abstractmethod
    def sync_db_names(self) -> list[str]:
        """Names of the configured repositories, in priority order."""
        raise NotImplementedError


def find_satisfier(
    packages: Iterable[LocalPackage],
    dep: str,
    compare: VersionComparator = vercmp,
) -> LocalPackage | None:
    """Find a satisfier in one package list, preferring a package of that name over a provider."""
    packages = list(packages)
    for package in packages:
        if package_satisfies(package.name, package.version, dep, compare):
            return package
    for package in packages:
        if any(provide_satisfies(provide, dep, compare) for provide in package.provides):
            return package
    return None


class InMemoryPackageDatabase(PackageDatabase):
    """A package database held in memory.

    Args:
        sync: Repository name to its packages. Iteration order is the repository priority.
        installed: The installed packages.
        compare: Version comparator used for constrained lookups.

    """

    def __init__(
        self,
        sync: Mapping[str, Iterable[LocalPackage]] | None = None,
        installed: Iterable[LocalPackage] = (),
        compare: VersionComparator = vercmp,
    ) -> None:
        """Initialize the database from package lists."""
        self._sync: dict[str, list[LocalPackage]] = {name: list(pkgs) for name, pkgs in (sync or {}).items()}
        self._installed: list[LocalPackage] = list(installed)
        self.compare: VersionComparator = compare

    def _repositories(self, db: str | None) -> list[list[LocalPackage]]:
        if db is None:
            return list(self._sync.values())
        if db not in self._sync:
            msg = f"Repository {db!r} is not configured (known repositories: {', '.join(self._sync) or 'none'})"
            raise UnknownRepositoryError(msg)
        return [self._sync[db]]

    def find_installed_satisfier(self, dep: str) -> LocalPackage | None:
        """Return an installed package satisfying ``dep``, or None."""
        return find_satisfier(self._installed, dep, self.compare)

    def find_sync_satisfier(self, dep: str, db: str | None = None) -> LocalPackage | None:
        """Return the first package satisfying ``dep``, walking the repositories in priority order."""
        for packages in self._repositories(db):
            found = find_satisfier(packages, dep, self.compare)
            if found is not None:
                return found
        return None

    def find_group(self, name: str, db: str | None = None) -> bool:
        """Check whether any package of the searched repositories belongs to group ``name``."""
        return any(name in package.groups for packages in self._repositories(db) for package in packages)

    def sync_db_names(self) -> list[str]:
        """Names of the configured repositories, in priority order."""
        return list(self._sync)
