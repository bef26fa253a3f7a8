"""Configuration settings for aurplan."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .aurplan import APP_DIRS

DEFAULT_RPC_URL = "https://aur.archlinux.org/rpc"
DEFAULT_CONFIG_FILE = Path(APP_DIRS.user_config_dir) / "aurplan.env"


class Settings(BaseSettings):
    """Settings for aurplan.

    Every field can be overridden through an ``AURPLAN_``-prefixed environment variable,
    e.g. ``AURPLAN_PROVIDES=1``, or through the same variables in :data:`DEFAULT_CONFIG_FILE`.
    """

    rpc_url: str = Field(
        default=DEFAULT_RPC_URL,
        description="""Base URL of the AUR RPC interface.""",
    )
    rpc_timeout: float = Field(
        default=30.0,
        description="""Timeout in seconds for a single RPC request.""",
    )
    rpc_chunk_size: int = Field(
        default=150,
        gt=0,
        description="""Maximum number of package names sent in one info request.
        Larger queries are split into several requests.""",
    )
    provides: bool = Field(
        default=False,
        description="""Search the AUR for packages that may provide a requested
        name before resolving it. This finds more providers at the cost of one
        search request per unresolved name.""",
    )
    max_workers: int = Field(
        default=-1,
        description="""Maximum number of concurrent searches. If not provided,
        the maximum number of logical CPUs will be used.""",
    )
    log_level: str = Field(default="info", description="Log level")

    model_config = SettingsConfigDict(env_prefix="AURPLAN_", env_file=DEFAULT_CONFIG_FILE)
