"""Application settings and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from featherbone.persistence.config import DatabaseConfig


@dataclass
class Settings:
    """Runtime configuration, read from the environment at startup.

    Attributes:
        database: Database URL and pool sizing
        catalog_path: Directory of feather YAML definitions
        function_modules: Modules exposing register(registry)
        default_user: Identity used when the API caller supplies none
        log_level: Root log level name
    """

    database: DatabaseConfig
    catalog_path: Path
    function_modules: list[str] = field(default_factory=list)
    default_user: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> Settings:
        base_path = base_path or Path.cwd()
        modules = os.environ.get("FEATHERBONE_FUNCTION_MODULES", "")
        return cls(
            database=DatabaseConfig.from_env(base_path),
            catalog_path=Path(
                os.environ.get("FEATHERBONE_CATALOG_PATH", str(base_path / "catalog"))
            ),
            function_modules=[m.strip() for m in modules.split(",") if m.strip()],
            default_user=os.environ.get("FEATHERBONE_DEFAULT_USER") or None,
            log_level=os.environ.get("FEATHERBONE_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
