"""
SQLAlchemy declarative base shared by application models.
"""

from qdb.models.base import Base, ModelMixin, loaded_column_values

__all__ = [
    "Base",
    "ModelMixin",
    "loaded_column_values",
]
