"""
Base model and mixin for SQLAlchemy ORM.

Applications declare their mapped classes on ``Base`` so the adapter can
discover their column attributes.
"""

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import declarative_base


# SQLAlchemy declarative base for all ORM models
Base = declarative_base()


def loaded_column_values(instance: Any) -> dict[str, Any]:
    """
    Column values already loaded on a mapped instance.

    Reads the instance state dict, so expired or deferred columns are left
    out instead of being lazy loaded (which an async session cannot do).
    """
    state = inspect(instance)
    loaded = state.dict
    return {
        attr.key: loaded[attr.key]
        for attr in state.mapper.column_attrs
        if attr.key in loaded
    }


class ModelMixin:
    """
    Mixin providing common model utilities.

    Adds a column-only dictionary projection and a compact repr.
    """

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Returns:
            Dictionary with the loaded column values

        Note:
            Only includes columns, not relationships. Columns not loaded
            yet (unset on a new instance, or expired) are omitted.
        """
        return loaded_column_values(self)

    def __repr__(self) -> str:
        attrs = ", ".join(
            f"{key}={repr(value)}"
            for key, value in self.to_dict().items()
            if key in ["id", "name", "title", "key"]
        )
        return f"{self.__class__.__name__}({attrs})"
