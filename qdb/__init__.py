"""
qdb: attribute-filtered async CRUD over SQLAlchemy models.
"""

from qdb.repositories import CrudRepository, repository_for

__version__ = "0.1.0"

__all__ = ["CrudRepository", "repository_for"]
