"""
Repository layer for data access.
"""

from qdb.repositories.crud import CrudRepository
from qdb.repositories.factory import repository_for

__all__ = ["CrudRepository", "repository_for"]
