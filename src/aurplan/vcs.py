"""Track the upstream commit of VCS packages built from git sources.

After a base has been built and installed, the latest commit of every git source of
its packages is recorded so that a later run can tell whether the package is outdated.
"""

from __future__ import annotations

import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from shutil import which
from threading import Lock
from typing import TYPE_CHECKING

from tqdm import tqdm

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

logger = logging.getLogger(__name__)

LS_REMOTE_TIMEOUT = 5.0


class VCSResolutionError(ValueError):
    """Raised when the commit of a git source can not be determined."""


@dataclass(frozen=True)
class GitSource:
    """A git source of a PKGBUILD that follows a branch."""

    url: str
    branch: str
    protocol: str

    @property
    def remote(self) -> str:
        """The URL as git understands it."""
        return f"{self.protocol}://{self.url}"


def parse_git_source(source: str) -> GitSource | None:
    """Parse a PKGBUILD source entry such as ``name::git+https://host/repo.git#branch=dev``.

    Returns:
        The source, or None if it is not a git source or is pinned to a commit or tag.

    Examples:
        >>> parse_git_source("git+https://github.com/o/r.git")
        GitSource(url='github.com/o/r.git', branch='HEAD', protocol='https')
        >>> parse_git_source("https://example.com/r.tar.gz") is None
        True

    """
    source = source.rsplit("::", 1)[-1]
    scheme, sep, rest = source.partition("://")
    if not sep:
        return None
    protocols = scheme.split("+")
    if protocols[0] != "git":
        return None
    protocol = protocols[-1]

    url, sep, fragment = rest.partition("#")
    branch = "HEAD"
    if sep:
        key, _, value = fragment.partition("=")
        if key != "branch":
            # a commit or tag references a fixed point, nothing to track
            return None
        branch = value
    url = url.split("?", 1)[0]
    branch = branch.split("?", 1)[0]
    if not url or not branch:
        return None
    return GitSource(url=url, branch=branch, protocol=protocol)


def ls_remote(source: GitSource, timeout: float = LS_REMOTE_TIMEOUT) -> str:
    """Return the commit ``source``'s branch currently points to, using ``git ls-remote``.

    Raises:
        VCSResolutionError: git is missing, failed or printed nothing.

    """
    git_path = which("git")
    if git_path is None:
        msg = "git executable not found in PATH"
        raise VCSResolutionError(msg)

    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    if os.environ.get("GIT_SSH", "") == "" and os.environ.get("GIT_SSH_COMMAND", "") == "":
        # disable any ssh connection pooling by git
        env["GIT_SSH_COMMAND"] = "ssh -o ControlMaster=no"
    try:
        output = subprocess.run(  # noqa: S603
            [git_path, "ls-remote", source.remote, source.branch],
            capture_output=True,
            check=True,
            env=env,
            stdin=subprocess.DEVNULL,
            text=True,
            timeout=timeout,
        ).stdout
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        msg = f"git ls-remote {source.remote} {source.branch} failed: {e!s}"
        raise VCSResolutionError(msg) from e

    fields = output.split()
    if not fields:
        msg = f"{source.remote} has no branch {source.branch}"
        raise VCSResolutionError(msg)
    return fields[0]


class VCSStore:
    """Upstream commits of VCS packages: ``{package: {url: {"branch": ..., "protocol": ..., "sha": ...}}}``."""

    def __init__(self, resolve_commit: Callable[[GitSource], str] = ls_remote) -> None:
        """Initialize an empty store.

        Args:
            resolve_commit: Returns the current commit of a git source

        """
        self.resolve_commit = resolve_commit
        self.info: dict[str, dict[str, dict[str, str]]] = {}
        self._lock = Lock()

    def update(self, package: str, sources: Iterable[str]) -> None:
        """Record the current commit of every git source of ``package``."""
        for source in sources:
            git_source = parse_git_source(source)
            if git_source is None:
                continue
            try:
                sha = self.resolve_commit(git_source)
            except VCSResolutionError as e:
                logger.warning("Could not update VCS info of %s: %s", package, e)
                continue
            with self._lock:
                self.info.setdefault(package, {})[git_source.url] = {
                    "branch": git_source.branch,
                    "protocol": git_source.protocol,
                    "sha": sha,
                }
            logger.debug("%s: %s#%s is at %s", package, git_source.url, git_source.branch, sha)

    def refresh(self, packages: Mapping[str, Iterable[str]], max_workers: int | None = None) -> None:
        """Update the given packages concurrently; returns once every package was processed.

        Args:
            packages: Package name to its PKGBUILD source entries
            max_workers: Number of worker threads, None for the executor's default

        """
        with (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aurplan-vcs") as executor,
            tqdm(desc="Updating VCS info", leave=False, unit=" packages") as t,
        ):
            futures = {executor.submit(self.update, name, list(sources)): name for name, sources in packages.items()}
            t.total = len(futures)

            for future in as_completed(futures):
                t.update(1)
                try:
                    future.result()
                except Exception:
                    logger.exception("Failed to update VCS info of %s", futures[future])
