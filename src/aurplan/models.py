"""Core data models for dependency resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Iterator

OPERATORS = frozenset({"", "=", "<", "<=", ">", ">="})
_OPERATOR_CHARS = frozenset("<>=")

AUR_DB = "aur"
LOCAL_DB = "local"


def split_dep(dep: str) -> tuple[str, str, str]:
    """Split a dependency string into ``(name, op, version)``.

    Every comparison character is collected into the operator, the text around them
    becomes the name and the version. Without an operator the dependency matches any
    version and ``op`` and ``version`` are empty.

    Examples:
        >>> split_dep("foo>=1.0")
        ('foo', '>=', '1.0')
        >>> split_dep("foo")
        ('foo', '', '')

    """
    op = ""
    fields: list[str] = []
    current = ""
    for char in dep:
        if char in _OPERATOR_CHARS:
            op += char
            if current:
                fields.append(current)
                current = ""
        else:
            current += char
    if current:
        fields.append(current)

    if not fields:
        return "", "", ""
    if len(fields) == 1:
        if dep and dep[0] in _OPERATOR_CHARS:
            # no name at all, only a constraint
            return "", op, fields[0]
        # a dangling operator without a version constrains nothing
        return fields[0], "", ""
    return fields[0], op, fields[1]


def split_db(reference: str) -> tuple[str, str]:
    """Split a ``db/`` hint from a package reference, e.g. ``extra/foo`` into ``("extra", "foo")``."""
    db, sep, rest = reference.partition("/")
    if not sep:
        return "", reference
    return db, rest


@dataclass(frozen=True)
class Target:
    """A package requested by the user, optionally qualified by the database it must come from."""

    db: str
    name: str
    op: str = ""
    version: str = ""

    def __post_init__(self) -> None:
        """Validate the constraint operator."""
        if self.op not in OPERATORS:
            msg = f"Invalid version constraint operator {self.op!r} in target {self.name!r}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, reference: str) -> Target:
        """Parse a raw ``[db/]name[op version]`` reference."""
        db, dep = split_db(reference.strip())
        name, op, version = split_dep(dep)
        if not name:
            msg = f"Can not parse target <{reference}>"
            raise ValueError(msg)
        return cls(db=db, name=name, op=op, version=version)

    @property
    def dep_string(self) -> str:
        """The target without its database hint, as it would appear in a dependency list."""
        return self.name + self.op + self.version

    def __str__(self) -> str:
        """Return the target as ``db/name<op>version``."""
        if self.db:
            return f"{self.db}/{self.dep_string}"
        return self.dep_string


class Package(Protocol):
    """What the resolver needs from a package, wherever it comes from."""

    @property
    def name(self) -> str: ...

    @property
    def version(self) -> str: ...

    @property
    def provides(self) -> tuple[str, ...]: ...

    @property
    def depends(self) -> tuple[str, ...]: ...

    @property
    def make_depends(self) -> tuple[str, ...]: ...

    @property
    def check_depends(self) -> tuple[str, ...]: ...


@dataclass(frozen=True)
class LocalPackage:
    """A binary package from a local repository database, or an installed package."""

    name: str
    version: str
    db: str = LOCAL_DB
    provides: tuple[str, ...] = ()
    depends: tuple[str, ...] = ()
    groups: tuple[str, ...] = ()

    @property
    def make_depends(self) -> tuple[str, ...]:
        """Binary packages are already built, so they have no build dependencies."""
        return ()

    @property
    def check_depends(self) -> tuple[str, ...]:
        """Binary packages are already built, so they have no check dependencies."""
        return ()

    def __str__(self) -> str:
        """Return the package as ``db/name-version``."""
        return f"{self.db}/{self.name}-{self.version}"


class RemotePackage(BaseModel):
    """A package description from the AUR.

    Instances are built either from the JSON records of the RPC interface (``Name``,
    ``PackageBase``, ``MakeDepends`` ...) or by field name.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="Name")
    version: str = Field(alias="Version")
    package_base: str = Field(default="", alias="PackageBase")
    depends: tuple[str, ...] = Field(default=(), alias="Depends")
    make_depends: tuple[str, ...] = Field(default=(), alias="MakeDepends")
    check_depends: tuple[str, ...] = Field(default=(), alias="CheckDepends")
    provides: tuple[str, ...] = Field(default=(), alias="Provides")
    maintainer: str | None = Field(default=None, alias="Maintainer")
    out_of_date: int | None = Field(default=None, alias="OutOfDate")

    @field_validator("depends", "make_depends", "check_depends", "provides", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return () if value is None else value

    @property
    def base(self) -> str:
        """The source base this package is built from."""
        return self.package_base or self.name

    def __str__(self) -> str:
        """Return the package as ``aur/name-version``."""
        return f"{AUR_DB}/{self.name}-{self.version}"


def all_depends(package: Package) -> Iterator[tuple[str, ...]]:
    """Yield the runtime, build and check dependency lists of a package, in that order."""
    yield package.depends
    yield package.make_depends
    yield package.check_depends
