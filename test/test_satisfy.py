from unittest import TestCase

from aurplan.models import LocalPackage, RemotePackage
from aurplan.satisfy import package_satisfies, provide_satisfies, satisfies, version_satisfies


class TestVersionSatisfies(TestCase):
    def test_operators(self) -> None:
        cases = {
            "=": (False, True, False),
            "<": (True, False, False),
            "<=": (True, True, False),
            ">": (False, False, True),
            ">=": (False, True, True),
            "": (True, True, True),
        }
        for op, expected in cases.items():
            got = tuple(version_satisfies(version, op, "2.0") for version in ("1.0", "2.0", "3.0"))
            assert got == expected, op

    def test_custom_comparator(self) -> None:
        def reverse(a: str, b: str) -> int:
            return (a < b) - (a > b)

        assert version_satisfies("1", ">", "2", reverse)


class TestPackageSatisfies(TestCase):
    def test_name_and_version(self) -> None:
        assert package_satisfies("foo", "1.5-1", "foo>=1.0")
        assert not package_satisfies("foo", "0.9-1", "foo>=1.0")
        assert package_satisfies("foo", "0.9-1", "foo")

    def test_other_name(self) -> None:
        assert not package_satisfies("bar", "1.5-1", "foo>=1.0")

    def test_empty_name(self) -> None:
        assert not package_satisfies("", "1.0", ">=1.0")


class TestProvideSatisfies(TestCase):
    def test_unversioned_provide_does_not_satisfy_versioned_dep(self) -> None:
        assert not provide_satisfies("foo", "foo>=2.0")

    def test_versioned_provide(self) -> None:
        assert provide_satisfies("foo=2.0", "foo>=1.0")
        assert not provide_satisfies("foo=2.0", "foo>=3.0")

    def test_unversioned_dep(self) -> None:
        assert provide_satisfies("foo", "foo")
        assert provide_satisfies("foo=2.0", "foo")

    def test_other_name(self) -> None:
        assert not provide_satisfies("bar=2.0", "foo")


class TestSatisfies(TestCase):
    def test_by_name_or_provide(self) -> None:
        local = LocalPackage("jre-openjdk", "21.0.1-1", provides=("java-runtime=21",))
        assert satisfies(local, "jre-openjdk")
        assert satisfies(local, "java-runtime>=17")
        assert not satisfies(local, "java-runtime<17")

        remote = RemotePackage(name="yay-bin", version="12.3-1", provides=("yay",))
        assert satisfies(remote, "yay")
        assert not satisfies(remote, "yay>=12")
