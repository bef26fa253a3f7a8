"""Find the dependencies of a resolved pool that nothing can satisfy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import all_depends

if TYPE_CHECKING:
    from .pool import DependencyPool

logger = logging.getLogger(__name__)

MissingReport = dict[str, list[list[str]]]


class _MissingState:
    def __init__(self) -> None:
        self.good: set[str] = set()
        self.missing: MissingReport = {}


def check_missing(pool: DependencyPool) -> MissingReport:
    """Walk the dependencies of every target and report those that can not be satisfied.

    Returns:
        A mapping of each unsatisfiable dependency string to the chains of package names
        that lead to it. A dependency reached through several distinct chains lists each
        of them once. Targets that were resolved as package groups are not checked.

    """
    state = _MissingState()
    for target in pool.targets:
        if str(target) in pool.groups:
            continue
        _check_missing(pool, target.dep_string, [], state)
    if state.missing:
        logger.debug("%d missing dependencies", len(state.missing))
    return state.missing


def _check_missing(pool: DependencyPool, dep: str, chain: list[str], state: _MissingState) -> None:
    if pool.database.find_installed_satisfier(dep) is not None:
        state.good.add(dep)
        return

    if dep in state.good:
        return

    if dep in state.missing:
        if chain not in state.missing[dep]:
            state.missing[dep].append(chain)
        return

    remote_pkg = pool.find_satisfier_remote(dep)
    if remote_pkg is not None:
        state.good.add(dep)
        for dep_list in all_depends(remote_pkg):
            for remote_dep in dep_list:
                _check_missing(pool, remote_dep, [*chain, remote_pkg.name], state)
        return

    repo_pkg = pool.find_satisfier_repo(dep)
    if repo_pkg is not None:
        state.good.add(dep)
        for repo_dep in repo_pkg.depends:
            _check_missing(pool, repo_dep, [*chain, repo_pkg.name], state)
        return

    state.missing[dep] = [chain]


def format_missing(report: MissingReport) -> list[str]:
    """Render a missing report as one line per chain, e.g. ``libfoo>=2 (wanted by: bar -> baz)``."""
    lines = []
    for dep in sorted(report):
        for chain in report[dep]:
            if chain:
                lines.append(f"{dep} (wanted by: {' -> '.join(chain)})")
            else:
                lines.append(f"{dep} (target)")
    return lines
