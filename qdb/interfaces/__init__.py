"""
Abstract collaborator interfaces for the CRUD adapter.
"""

from qdb.interfaces.store import IModel, IRecord, IStore

__all__ = [
    "IModel",
    "IRecord",
    "IStore",
]
