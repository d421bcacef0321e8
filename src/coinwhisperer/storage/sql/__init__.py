"""Relational storage backend."""

from coinwhisperer.storage.sql.database import Database
from coinwhisperer.storage.sql.models import Base
from coinwhisperer.storage.sql.store import SqlStore

__all__ = ["Base", "Database", "SqlStore"]
