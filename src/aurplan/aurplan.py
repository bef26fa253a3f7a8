"""Version and configuration utilities for aurplan."""

from importlib.metadata import version as meta_version

from platformdirs import PlatformDirs


def version() -> str:
    """Get the installed version of aurplan."""
    return meta_version("aurplan")


APP_DIRS = PlatformDirs("aurplan", "aurplan")
