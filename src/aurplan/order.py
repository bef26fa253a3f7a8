"""Turn a resolved pool into a dependency-first build and install plan."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from .models import all_depends

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from .models import LocalPackage, Package, RemotePackage
    from .pool import DependencyPool

logger = logging.getLogger(__name__)

K = TypeVar("K")


@dataclass
class Plan:
    """What to install from the repositories and what to build, in dependency-first order.

    Attributes:
        repo: Repository packages, each after the repository packages it depends on.
        aur: Source bases to build, each after the bases it depends on.
        bases: Every source base and the AUR packages built from it.
        runtime: Names of the packages needed at runtime by the targets.

    """

    repo: list[LocalPackage] = field(default_factory=list)
    aur: list[str] = field(default_factory=list)
    bases: dict[str, list[RemotePackage]] = field(default_factory=dict)
    runtime: set[str] = field(default_factory=set)

    def aur_packages(self) -> list[RemotePackage]:
        """All AUR packages, in the build order of their bases."""
        return [pkg for base in self.aur for pkg in self.bases[base]]

    def resolved_names(self) -> list[str]:
        """Names of every package in the plan, repository packages first."""
        return [pkg.name for pkg in self.repo] + [pkg.name for pkg in self.aur_packages()]

    def has_make_only(self) -> bool:
        """Check whether some packages are only needed to build the targets."""
        return len(self.runtime) != len(self.resolved_names())

    def get_make_only(self) -> list[str]:
        """Names of the packages only needed at build time; candidates for removal after install."""
        return [name for name in self.resolved_names() if name not in self.runtime]

    def __str__(self) -> str:
        """Summarize the plan."""
        make_only = self.get_make_only()
        lines = [
            f"Repo ({len(self.repo)}): {' '.join(pkg.name for pkg in self.repo)}",
            f"Aur ({len(self.aur)}): {' '.join(self.aur)}",
            f"Runtime ({len(self.runtime)}): {' '.join(sorted(self.runtime))}",
            f"Make ({len(make_only)}): {' '.join(make_only)}",
        ]
        return "\n".join(lines)


def _post_order(roots: Iterable[K], edges: Callable[[K], Iterable[K]], pending: set[K]) -> list[K]:
    """Emit every node reachable from ``roots`` after all of its pending successors.

    A node leaves ``pending`` as soon as it is first reached, so it is emitted once even
    when reachable through several paths, and cycles terminate.
    """
    emitted: list[K] = []
    for root in roots:
        if root not in pending:
            continue
        pending.discard(root)
        stack: list[tuple[K, Iterator[K]]] = [(root, iter(edges(root)))]
        while stack:
            node, successors = stack[-1]
            for successor in successors:
                if successor in pending:
                    pending.discard(successor)
                    stack.append((successor, iter(edges(successor))))
                    break
            else:
                stack.pop()
                emitted.append(node)
    return emitted


def _target_satisfiers(pool: DependencyPool) -> Iterator[Package]:
    for target in pool.targets:
        dep = target.dep_string
        remote_pkg = pool.find_satisfier_remote(dep)
        if remote_pkg is not None:
            yield remote_pkg
        repo_pkg = pool.find_satisfier_repo(dep)
        if repo_pkg is not None:
            yield repo_pkg


def runtime_closure(pool: DependencyPool) -> set[str]:
    """Names reachable from the targets by following only runtime dependencies at every hop."""
    runtime: set[str] = set()
    stack: list[Package] = list(_target_satisfiers(pool))
    while stack:
        pkg = stack.pop()
        if pkg.name in runtime:
            continue
        runtime.add(pkg.name)
        for dep in pkg.depends:
            remote_pkg = pool.find_satisfier_remote(dep)
            if remote_pkg is not None:
                stack.append(remote_pkg)
            repo_pkg = pool.find_satisfier_repo(dep)
            if repo_pkg is not None:
                stack.append(repo_pkg)
    return runtime


def order(pool: DependencyPool) -> Plan:
    """Order a completely resolved pool. The pool is only read."""
    bases: dict[str, list[RemotePackage]] = defaultdict(list)
    for name in sorted(pool.remote):
        pkg = pool.remote[name]
        bases[pkg.base].append(pkg)

    def repo_edges(name: str) -> Iterator[str]:
        for dep in pool.repo[name].depends:
            pkg = pool.find_satisfier_repo(dep)
            if pkg is not None:
                yield pkg.name

    def base_edges(base: str) -> Iterator[str]:
        for pkg in bases[base]:
            for dep_list in all_depends(pkg):
                for dep in dep_list:
                    dep_pkg = pool.find_satisfier_remote(dep)
                    if dep_pkg is not None and dep_pkg.base != base:
                        yield dep_pkg.base

    repo_roots: list[str] = []
    base_roots: list[str] = []
    for pkg in _target_satisfiers(pool):
        if pkg.name in pool.remote:
            base_roots.append(pool.remote[pkg.name].base)
        else:
            repo_roots.append(pkg.name)

    repo_order = _post_order([*repo_roots, *sorted(pool.repo)], repo_edges, set(pool.repo))
    base_order = _post_order([*base_roots, *sorted(bases)], base_edges, set(bases))

    plan = Plan(
        repo=[pool.repo[name] for name in repo_order],
        aur=base_order,
        bases=dict(bases),
        runtime=runtime_closure(pool),
    )
    logger.debug("Plan:\n%s", plan)
    return plan
