"""The `aurplan` APIs."""

__version__ = "0.1.0"

from .aurplan import APP_DIRS, version
from .config import Settings
from .database import ConfigurationError, InMemoryPackageDatabase, PackageDatabase, UnknownRepositoryError
from .logger import setup_logger
from .missing import MissingReport, check_missing, format_missing
from .models import AUR_DB, LOCAL_DB, LocalPackage, RemotePackage, Target, split_db, split_dep
from .order import Plan, order
from .pool import DependencyPool, resolve
from .rpc import AURClient, RemoteMetadataService, RemoteServiceError, RemoteWarnings
from .satisfy import package_satisfies, provide_satisfies, satisfies
from .vcs import VCSStore, parse_git_source
from .version import vercmp

__all__ = [
    "APP_DIRS",
    "AUR_DB",
    "LOCAL_DB",
    "AURClient",
    "ConfigurationError",
    "DependencyPool",
    "InMemoryPackageDatabase",
    "LocalPackage",
    "MissingReport",
    "PackageDatabase",
    "Plan",
    "RemoteMetadataService",
    "RemotePackage",
    "RemoteServiceError",
    "RemoteWarnings",
    "Settings",
    "Target",
    "UnknownRepositoryError",
    "VCSStore",
    "check_missing",
    "format_missing",
    "order",
    "package_satisfies",
    "parse_git_source",
    "provide_satisfies",
    "resolve",
    "satisfies",
    "setup_logger",
    "split_db",
    "split_dep",
    "vercmp",
    "version",
]
