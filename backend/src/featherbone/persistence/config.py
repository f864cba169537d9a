"""Database configuration and engine factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


@dataclass
class DatabaseConfig:
    """Database connection and pool configuration.

    Supports sqlite:/// and postgresql:// URL schemes.
    """

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: float = 30.0
    echo: bool = False

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. DATABASE_URL env var (standard)
        2. FEATHERBONE_DB_PATH env var (converted to sqlite:/// URL)
        3. Default: sqlite:///{base_path}/data/featherbone.db
        """
        pool_size = int(os.environ.get("FEATHERBONE_POOL_SIZE", "5"))
        pool_timeout = float(os.environ.get("FEATHERBONE_POOL_TIMEOUT", "30"))
        echo = os.environ.get("FEATHERBONE_SQL_ECHO", "").lower() in ("1", "true", "yes")

        url = os.environ.get("DATABASE_URL")
        if not url:
            db_path = os.environ.get("FEATHERBONE_DB_PATH")
            if db_path:
                url = f"sqlite:///{db_path}"
            elif base_path:
                url = f"sqlite:///{base_path / 'data' / 'featherbone.db'}"
            else:
                url = "sqlite:///featherbone.db"

        return cls(url=url, pool_size=pool_size, pool_timeout=pool_timeout, echo=echo)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def async_url(self) -> str:
        """URL suitable for SQLAlchemy async engine creation.

        sqlite:// uses aiosqlite; postgresql:// uses the psycopg (v3)
        driver, which supports asyncio natively.
        """
        if self.url.startswith("sqlite://"):
            return self.url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create a pooled async engine for the configured database.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    from sqlalchemy.ext.asyncio import create_async_engine

    if config.is_postgresql:
        return create_async_engine(
            config.async_url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            echo=config.echo,
        )

    if config.is_sqlite:
        # SQLite pools per-file; sizing options do not apply
        return create_async_engine(config.async_url, echo=config.echo)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
