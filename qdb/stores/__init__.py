"""
Store backends implementing the adapter interfaces.
"""

from qdb.stores.sqlalchemy import SQLAlchemyModel, SQLAlchemyRecord, SQLAlchemyStore

__all__ = [
    "SQLAlchemyModel",
    "SQLAlchemyRecord",
    "SQLAlchemyStore",
]
