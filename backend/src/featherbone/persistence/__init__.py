"""Persistence layer - connections, configuration and the CRUD executor."""

from featherbone.persistence.config import DatabaseConfig, create_engine
from featherbone.persistence.connection import (
    ConnectionContext,
    ConnectionHandle,
    ConnectionManager,
)
from featherbone.persistence.executor import CrudExecutor, SqlCrudExecutor

__all__ = [
    "ConnectionContext",
    "ConnectionHandle",
    "ConnectionManager",
    "CrudExecutor",
    "DatabaseConfig",
    "SqlCrudExecutor",
    "create_engine",
]
