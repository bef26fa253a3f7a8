"""Resolve targets into a pool of repository packages to install and AUR packages to build."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from threading import Lock
from typing import TYPE_CHECKING

from tqdm import tqdm

from .models import AUR_DB, Target, all_depends, split_dep
from .rpc import RemoteServiceError
from .satisfy import package_satisfies, provide_satisfies, satisfies
from .version import vercmp

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .config import Settings
    from .database import PackageDatabase
    from .models import LocalPackage, RemotePackage
    from .rpc import RemoteMetadataService
    from .version import VersionComparator

    ProviderChooser = Callable[[str, list[RemotePackage]], RemotePackage]

logger = logging.getLogger(__name__)


def first_provider(_dep: str, providers: list[RemotePackage]) -> RemotePackage:
    """Pick the first candidate. Candidates come ordered with the exact name match first."""
    return providers[0]


class DependencyPool:
    """The working set of a resolution.

    ``repo`` holds the packages that will be installed from the sync repositories and
    ``remote`` the AUR packages that will be built; a name is never in both. ``remote_cache``
    holds every AUR package fetched so far, used or not.
    """

    def __init__(  # noqa: PLR0913
        self,
        database: PackageDatabase,
        service: RemoteMetadataService,
        *,
        provides: bool = False,
        max_workers: int | None = None,
        choose_provider: ProviderChooser | None = None,
        compare: VersionComparator = vercmp,
    ) -> None:
        """Initialize an empty pool.

        Args:
            database: The local package databases
            service: Where AUR metadata is fetched from
            provides: Search the AUR for possible providers before fetching unknown names
            max_workers: Number of concurrent provider searches, None for the CPU count
            choose_provider: Called when several AUR packages satisfy a dependency
            compare: Version comparator

        """
        self.database = database
        self.service = service
        self.provides = provides
        self.max_workers = max_workers
        self.choose_provider: ProviderChooser = choose_provider or first_provider
        self.compare = compare

        self.targets: list[Target] = []
        self.explicit: set[str] = set()
        self.repo: dict[str, LocalPackage] = {}
        self.remote: dict[str, RemotePackage] = {}
        self.remote_cache: dict[str, RemotePackage] = {}
        self.groups: list[str] = []
        self._queried: set[str] = set()

    def __str__(self) -> str:
        """Summarize the pool."""
        lines = [
            f"Targets ({len(self.targets)}): {' '.join(map(str, self.targets))}",
            f"Repo ({len(self.repo)}): {' '.join(sorted(self.repo))}",
            f"Aur ({len(self.remote)}): {' '.join(sorted(self.remote))}",
            f"Aur Cache ({len(self.remote_cache)}): {' '.join(sorted(self.remote_cache))}",
            f"Groups ({len(self.groups)}): {' '.join(self.groups)}",
        ]
        return "\n".join(lines)

    def _is_resolved(self, name: str) -> bool:
        return name in self.repo or name in self.remote

    def resolve_targets(self, targets: Iterable[str | Target]) -> None:
        """Resolve user targets, which may carry ``db/`` prefixes or name package groups.

        Targets that something in the pool already satisfies are skipped, even if they
        name a different database; the first match wins. AUR lookups of all targets are
        combined into a single resolution.

        Raises:
            UnknownRepositoryError: A target names a repository that is not configured.
            RemoteServiceError: The AUR could not be queried.

        """
        new_targets = [t if isinstance(t, Target) else Target.parse(t) for t in targets]
        self.targets.extend(new_targets)

        aur_targets: list[str] = []
        for target in new_targets:
            dep = target.dep_string
            existing = self.find_satisfier_repo(dep) or self.find_satisfier_remote(dep)
            if existing is not None:
                logger.info("Skipping target %s, it is already satisfied by %s", target, existing)
                self.explicit.add(existing.name)
                continue

            if target.db == AUR_DB:
                aur_targets.append(dep)
                continue

            db = target.db or None
            found = self.database.find_sync_satisfier(dep, db)
            if found is not None:
                if not self._is_resolved(found.name):
                    self.explicit.add(found.name)
                    self.resolve_repo_dependency(found)
                continue

            # groups are installed as a whole and never expanded
            if self.database.find_group(target.name, db):
                if str(target) not in self.groups:
                    self.groups.append(str(target))
                continue

            if db is None:
                aur_targets.append(dep)
            else:
                logger.warning("Target %s was not found in %s", target, db)

        if aur_targets:
            self.resolve_remote_packages(aur_targets)
            for dep in aur_targets:
                pkg = self.find_satisfier_remote(dep)
                if pkg is not None:
                    self.explicit.add(pkg.name)

    def resolve_repo_dependency(self, package: LocalPackage) -> None:
        """Add a repository package and, transitively, the repository packages it depends on.

        Dependencies already in the pool or already installed are skipped. Dependencies the
        repositories do not have are not looked up in the AUR; the missing-dependency check
        reports them.
        """
        stack = [package]
        while stack:
            pkg = stack.pop()
            if self._is_resolved(pkg.name):
                continue
            self.repo[pkg.name] = pkg
            for dep in reversed(pkg.depends):
                if self.has_satisfier(dep):
                    continue
                if self.database.find_installed_satisfier(dep) is not None:
                    continue
                found = self.database.find_sync_satisfier(dep)
                if found is not None:
                    stack.append(found)

    def resolve_remote_packages(self, deps: Iterable[str]) -> None:
        """Resolve dependency strings against the AUR, round by round.

        Every round fetches all names it does not know yet in one batch, moves the
        satisfying packages into the pool and collects their dependencies. Dependencies
        that are installed or available from the repositories do not go to the next round.
        The first round walks ``deps`` in the given order, so an earlier dependency wins
        when one package satisfies several; later rounds are sorted.

        Raises:
            RemoteServiceError: A batch could not be fetched. Rounds completed before stay in the pool.

        """
        pending = list(dict.fromkeys(deps))
        round_number = 0
        while pending:
            round_number += 1
            logger.debug("AUR resolution round %d: %d dependencies", round_number, len(pending))
            self.cache_remote_packages(pending)

            new_deps: set[str] = set()
            for dep in pending:
                if self.find_satisfier_remote(dep) is not None:
                    continue
                pkg = self.find_satisfier_remote_cache(dep)
                if pkg is None:
                    continue
                if self._is_resolved(pkg.name):
                    logger.debug("%s would satisfy %s but %s is already resolved", pkg, dep, pkg.name)
                    continue
                self.remote[pkg.name] = pkg
                for dep_list in all_depends(pkg):
                    new_deps.update(dep_list)

            pending = []
            for dep in sorted(new_deps):
                if self.has_satisfier(dep):
                    continue
                if self.database.find_installed_satisfier(dep) is not None:
                    continue
                found = self.database.find_sync_satisfier(dep)
                if found is not None:
                    self.resolve_repo_dependency(found)
                    continue
                pending.append(dep)

    def cache_remote_packages(self, deps: Iterable[str]) -> None:
        """Fetch every package named by ``deps`` that has not been requested before, in one batch."""
        names = {split_dep(dep)[0] for dep in deps}
        names -= self._queried | set(self.remote_cache) | {""}
        if not names:
            return

        if self.provides:
            names |= self.find_provides(names)
            names -= self._queried | set(self.remote_cache)

        query = sorted(names)
        fetched = self.service.info(query)
        self._queried.update(query)
        for pkg in fetched:
            # keep everything, it may be needed later
            self.remote_cache[pkg.name] = pkg
        logger.debug("Fetched %d of %d requested AUR packages", len(fetched), len(query))

    def find_provides(self, names: Iterable[str]) -> set[str]:
        """Search the AUR for packages that might provide any of ``names``.

        For ``java-environment`` the search starts with ``java`` and adds words while the
        AUR refuses the query (e.g. because it has too many results). The search finds
        false positives too; they are only fetched, never resolved unless they match.

        Returns:
            The names of all packages found that are not cached yet.

        """
        found: set[str] = set()
        lock = Lock()

        def _search(name: str) -> None:
            words = name.split("-")
            for i in range(len(words)):
                fragment = "-".join(words[: i + 1])
                try:
                    results = self.service.search(fragment)
                except RemoteServiceError as e:
                    logger.debug("Searching for %s failed: %s", fragment, e)
                    continue
                with lock:
                    found.update(pkg.name for pkg in results if pkg.name not in self.remote_cache)
                return
            logger.debug("No usable search for %s", name)

        max_workers = self.max_workers if self.max_workers and self.max_workers > 0 else None
        with (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aurplan-provides") as executor,
            tqdm(desc="Searching for providers", leave=False, unit=" packages") as t,
        ):
            futures = [executor.submit(_search, name) for name in sorted(names)]
            t.total = len(futures)
            for future in as_completed(futures):
                t.update(1)
                future.result()
        return found

    def find_satisfier_remote(self, dep: str) -> RemotePackage | None:
        """Return the AUR package in the pool satisfying ``dep``, or None."""
        for name in sorted(self.remote):
            pkg = self.remote[name]
            if satisfies(pkg, dep, self.compare):
                return pkg
        return None

    def find_satisfier_repo(self, dep: str) -> LocalPackage | None:
        """Return the repository package in the pool satisfying ``dep``, or None."""
        for name in sorted(self.repo):
            pkg = self.repo[name]
            if satisfies(pkg, dep, self.compare):
                return pkg
        return None

    def find_satisfier_remote_cache(self, dep: str) -> RemotePackage | None:
        """Pick the cached AUR package that should satisfy ``dep``.

        If the satisfier currently installed is itself an AUR package, it is kept. Otherwise
        the package named ``dep`` comes first and packages providing it follow; with more
        than one candidate ``choose_provider`` decides.
        """
        installed = self.database.find_installed_satisfier(dep)
        if installed is not None:
            cached = self.remote_cache.get(installed.name)
            if cached is not None and satisfies(cached, dep, self.compare):
                return cached

        by_name: list[RemotePackage] = []
        by_provide: list[RemotePackage] = []
        for name in sorted(self.remote_cache):
            pkg = self.remote_cache[name]
            if package_satisfies(pkg.name, pkg.version, dep, self.compare):
                by_name.append(pkg)
            elif any(provide_satisfies(provide, dep, self.compare) for provide in pkg.provides):
                by_provide.append(pkg)

        providers = by_name + by_provide
        if not providers:
            return None
        if len(providers) == 1:
            return providers[0]

        choice = self.choose_provider(dep, providers)
        if choice not in providers:
            msg = f"{choice} is not one of the providers of {dep}"
            raise ValueError(msg)
        logger.debug("Chose %s out of %d providers for %s", choice, len(providers), dep)
        return choice

    def has_satisfier(self, dep: str) -> bool:
        """Check whether anything in the pool satisfies ``dep``."""
        return self.find_satisfier_repo(dep) is not None or self.find_satisfier_remote(dep) is not None

    def has_package(self, name: str) -> bool:
        """Check whether a package or group called ``name`` is in the pool."""
        return self._is_resolved(name) or name in self.groups


def resolve(  # noqa: PLR0913
    targets: Iterable[str | Target],
    database: PackageDatabase,
    service: RemoteMetadataService,
    *,
    settings: Settings | None = None,
    provides: bool | None = None,
    max_workers: int | None = None,
    choose_provider: ProviderChooser | None = None,
    compare: VersionComparator = vercmp,
) -> DependencyPool:
    """Resolve ``targets`` into a new pool.

    ``provides`` and ``max_workers`` default to the values in ``settings`` when given.
    A negative ``max_workers`` means the number of CPUs.
    """
    if provides is None:
        provides = settings.provides if settings is not None else False
    if max_workers is None and settings is not None:
        max_workers = settings.max_workers
    if max_workers is not None and max_workers < 0:
        max_workers = os.cpu_count() or 1

    pool = DependencyPool(
        database,
        service,
        provides=provides,
        max_workers=max_workers,
        choose_provider=choose_provider,
        compare=compare,
    )
    pool.resolve_targets(targets)
    warnings = getattr(service, "warnings", None)
    if warnings:
        warnings.log()
    logger.debug("Resolved pool:\n%s", pool)
    return pool
