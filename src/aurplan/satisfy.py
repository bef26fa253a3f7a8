"""Decide whether a package, or one of its provides, satisfies a dependency string."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import split_dep
from .version import vercmp

if TYPE_CHECKING:
    from .models import Package
    from .version import VersionComparator


def version_satisfies(version: str, op: str, wanted: str, compare: VersionComparator = vercmp) -> bool:
    """Check ``version <op> wanted``. An empty operator is unconstrained and always holds."""
    if op == "=":
        return compare(version, wanted) == 0
    if op == "<":
        return compare(version, wanted) < 0
    if op == "<=":
        return compare(version, wanted) <= 0
    if op == ">":
        return compare(version, wanted) > 0
    if op == ">=":
        return compare(version, wanted) >= 0
    return True


def package_satisfies(name: str, version: str, dep: str, compare: VersionComparator = vercmp) -> bool:
    """Check whether the package ``name`` at ``version`` satisfies ``dep``."""
    dep_name, dep_op, dep_version = split_dep(dep)
    if not dep_name or dep_name != name:
        return False
    return version_satisfies(version, dep_op, dep_version, compare)


def provide_satisfies(provide: str, dep: str, compare: VersionComparator = vercmp) -> bool:
    """Check whether a provides entry such as ``java-runtime=17`` satisfies ``dep``.

    An unversioned provide can not satisfy a versioned dependency: ``foo`` does not
    satisfy ``foo>=2.0`` while ``foo=2.0`` does.
    """
    dep_name, dep_op, dep_version = split_dep(dep)
    provide_name, provide_op, provide_version = split_dep(provide)
    if not dep_name or provide_name != dep_name:
        return False
    if not provide_op and dep_op:
        return False
    return version_satisfies(provide_version, dep_op, dep_version, compare)


def satisfies(package: Package, dep: str, compare: VersionComparator = vercmp) -> bool:
    """Check whether a package satisfies ``dep`` by its own name or through any of its provides."""
    if package_satisfies(package.name, package.version, dep, compare):
        return True
    return any(provide_satisfies(provide, dep, compare) for provide in package.provides)
