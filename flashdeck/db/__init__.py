"""Database package for flashdeck.

Exposes the persistence client contract and its DuckDB implementation.
"""

from .client import DuckDBPersistenceClient, PersistenceClient

__all__ = ["DuckDBPersistenceClient", "PersistenceClient"]
