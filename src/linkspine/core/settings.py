"""Settings for linkspine services.

Every entry point (CLI, API, embedding application) reads its configuration
from one :class:`LinkSpineSettings` instance: where the link store lives, how
logs are rendered, which link kind is resolved by default and which filter
toggles the default :class:`~linkspine.domain.catalog.models.FilterPolicy`
carries.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads ``LINKSPINE_*`` env vars and ``.env``
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> import os
    >>> os.environ["LINKSPINE_SHOW_DISABLED_PRODUCTS"] = "true"
    >>> LinkSpineSettings().show_disabled_products
    True

Tags:
    settings, configuration, pydantic, environment, linkspine
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LinkSpineSettings(BaseSettings):
    """Common settings shared by every linkspine entry point.

    Fields
    ──────
    data_dir                : Directory holding the default SQLite store
    database_path           : Explicit store path (overrides data_dir)
    log_level               : Structlog log level
    log_format              : ``console`` or ``json``
    default_link_kind       : Link kind code resolved when none is given
    show_disabled_products  : Default for FilterPolicy.include_disabled
    show_all_products       : Default for FilterPolicy.include_all_products
    show_invisible_products : Default for FilterPolicy.include_invisible
    tax_display_mode        : 1 = excluding tax, 2 = including, 3 = both
    host / port / api_prefix: HTTP transport
    """

    model_config = SettingsConfigDict(
        env_prefix="LINKSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".linkspine",
        description="Persistent data directory",
    )
    database_path: str | None = Field(
        default=None,
        description="SQLite file for the link store (defaults to <data_dir>/linkspine.db)",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # ── Resolution defaults ──────────────────────────────────────
    default_link_kind: str = "partlists"
    show_disabled_products: bool = False
    show_all_products: bool = False
    show_invisible_products: bool = False
    tax_display_mode: int = Field(default=1, ge=1, le=3)

    # ── Network ──────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 12060
    api_prefix: str = "/api/v1"
    api_title: str = "linkspine API"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def resolved_database_path(self) -> str:
        """Store path with ``~`` expanded."""
        if self.database_path:
            return str(Path(self.database_path).expanduser())
        return str(self.data_dir.expanduser() / "linkspine.db")


@lru_cache(maxsize=1)
def get_settings() -> LinkSpineSettings:
    """Cached settings — loaded once per process."""
    return LinkSpineSettings()


__all__ = [
    "LinkSpineSettings",
    "get_settings",
]
