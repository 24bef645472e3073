"""
Wiring helpers for SQLAlchemy-backed repositories.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from qdb.repositories.crud import CrudRepository
from qdb.stores.sqlalchemy import SQLAlchemyModel, SQLAlchemyStore


def repository_for(
    session: AsyncSession,
    mapped_class: type,
    atomic_delete: Optional[bool] = None
) -> CrudRepository:
    """
    Build a CrudRepository over one mapped class, bound to one session.

    Args:
        session: SQLAlchemy async session shared by store and model
        mapped_class: Declarative class to filter against
        atomic_delete: Override for QDB_ATOMIC_DELETE

    Returns:
        CrudRepository instance

    Example:
        >>> repo = repository_for(session, Item)
        >>> await repo.read({"name": "widget"})
    """
    return CrudRepository(
        SQLAlchemyStore(session),
        SQLAlchemyModel(session, mapped_class),
        atomic_delete=atomic_delete,
    )
