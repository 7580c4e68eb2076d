"""
graphcast Settings.

Pydantic model for assembly and execution options, readable from
GRAPHCAST_* environment variables.
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Options controlling schema assembly and request execution.

    Example:
        engine = Graphcast(settings=Settings(require_enum_privacy=False))
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    require_enum_privacy: bool = Field(
        True,
        description="Every enum must carry @enumPrivacy with backend or frontend enabled",
    )
    default_root_types: bool = Field(
        True,
        description="Use objects named Query/Mutation when no schema definition exists",
    )
    include_datetime_scalar: bool = Field(
        True,
        description="Pre-register the ISO-8601 DateTime scalar",
    )
    log_resolution_errors: bool = Field(
        True,
        description="Log directive chain failures at warning level",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings from environment.

    Uses lru_cache for singleton pattern. Call get_settings.cache_clear()
    after changing the environment.
    """
    return Settings(
        require_enum_privacy=_env_flag("GRAPHCAST_REQUIRE_ENUM_PRIVACY", True),
        default_root_types=_env_flag("GRAPHCAST_DEFAULT_ROOT_TYPES", True),
        include_datetime_scalar=_env_flag("GRAPHCAST_INCLUDE_DATETIME_SCALAR", True),
        log_resolution_errors=_env_flag("GRAPHCAST_LOG_RESOLUTION_ERRORS", True),
    )
