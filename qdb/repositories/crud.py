"""
Attribute-filtered CRUD repository.

Wraps a store and a model, reducing every caller-supplied object to the
model's declared attributes before delegating to the model's operations.
Store errors are logged and re-raised unchanged.
"""

import functools
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel

from qdb.core.config import settings
from qdb.core.logging_config import get_logger, log_with_context
from qdb.interfaces.store import IModel, IRecord, IStore

logger = get_logger(__name__)


def _log_failures(operation: str) -> Callable:
    """
    Decorator logging store failures of an adapter operation.

    The exception propagates untouched after it is logged.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self: "CrudRepository", *args, **kwargs) -> Any:
            try:
                return await func(self, *args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{operation} on {self.model.name} failed with "
                    f"{type(e).__name__}: {e}",
                    exc_info=True,
                    extra={"model": self.model.name, "operation": operation}
                )
                raise

        return wrapper
    return decorator


class CrudRepository:
    """
    Repository exposing read, query, delete, create and update over one model.

    Every criteria or value object is filtered down to the model's declared
    attributes, so unknown keys never reach the store.

    Attributes:
        store: Connection used for raw queries
        model: Schema description the operations run against
        atomic_delete: Use the model's destroy_returning for delete

    Example:
        >>> repo = CrudRepository(SQLAlchemyStore(session), SQLAlchemyModel(session, Item))
        >>> await repo.create({"name": "widget", "colour": "blue"})
        {"id": 1, "name": "widget"}
    """

    def __init__(
        self,
        store: IStore,
        model: IModel,
        atomic_delete: Optional[bool] = None
    ):
        """
        Initialize repository with its collaborators.

        Args:
            store: Store connection (raw query facility)
            model: Schema description
            atomic_delete: Override for QDB_ATOMIC_DELETE
        """
        self.store = store
        self.model = model
        self.atomic_delete = (
            settings.atomic_delete if atomic_delete is None else atomic_delete
        )

    def filter_properties(self, obj: Any) -> Dict[str, Any]:
        """
        Keep only the entries of ``obj`` whose keys are model attributes.

        Args:
            obj: Mapping, pydantic model (its explicitly set fields), plain
                object, or None

        Returns:
            New dict in the model's attribute order; values are the input
            values, unmodified

        Example:
            >>> repo.filter_properties({"name": "x", "extra": 1})
            {"name": "x"}
            >>> repo.filter_properties(None)
            {}
        """
        if obj is None:
            return {}

        if isinstance(obj, BaseModel):
            source = {name: getattr(obj, name) for name in obj.model_fields_set}
        elif isinstance(obj, Mapping):
            source = obj
        else:
            source = getattr(obj, "__dict__", {})

        filtered = {}
        for name in self.model.attributes:
            if name in source:
                filtered[name] = source[name]
        return filtered

    @staticmethod
    def _data_values(records: List[IRecord]) -> List[Dict[str, Any]]:
        return [record.data_values for record in records]

    def _log_done(self, operation: str, row_count: Optional[int] = None) -> None:
        log_with_context(
            logger,
            "debug",
            f"{operation} on {self.model.name} completed",
            model=self.model.name,
            operation=operation,
            row_count=row_count
        )

    @_log_failures("read")
    async def read(self, where: Any = None) -> List[Dict[str, Any]]:
        """
        Find all records matching the filtered criteria.

        Args:
            where: Criteria object; None matches every record

        Returns:
            Plain-data projections of the matching records
        """
        criteria = self.filter_properties(where)
        records = await self.model.find_all(criteria)
        result = self._data_values(records)

        self._log_done("read", len(result))
        return result

    @_log_failures("query")
    async def query(
        self,
        query: str,
        where: Optional[Mapping[str, Any]] = None
    ) -> Optional[List[Any]]:
        """
        Run a raw query expression against the model.

        Args:
            query: Query text with named bind parameters
            where: Bind parameter values (passed through unfiltered)

        Returns:
            The store's rows when it returns a list, otherwise None

        Example:
            >>> await repo.query(
            ...     "SELECT * FROM items WHERE name = :name",
            ...     {"name": "widget"}
            ... )
            [{"id": 1, "name": "widget"}]
        """
        result = await self.store.query(query, self.model, {"raw": True}, where)

        if isinstance(result, list):
            self._log_done("query", len(result))
            return result

        self._log_done("query")
        return None

    @_log_failures("delete")
    async def delete(self, where: Any = None) -> List[Dict[str, Any]]:
        """
        Delete records matching the filtered criteria.

        By default the matching records are read first and then destroyed
        in a second statement. Rows inserted or changed between the two can
        be deleted without being reported, or reported without being
        deleted. With ``atomic_delete`` on, the model deletes and reports in
        one statement instead.

        Args:
            where: Criteria object; None matches every record

        Returns:
            Plain-data projections of the records deleted
        """
        criteria = self.filter_properties(where)

        if self.atomic_delete:
            try:
                records = await self.model.destroy_returning(criteria)
            except NotImplementedError:
                logger.warning(
                    f"{self.model.name} cannot delete atomically, "
                    f"falling back to read then destroy",
                    extra={"model": self.model.name, "operation": "delete"}
                )
            else:
                result = self._data_values(records)
                self._log_done("delete", len(result))
                return result

        records = await self.model.find_all(criteria)
        result = self._data_values(records)
        # Not atomic: see docstring
        await self.model.destroy(criteria)

        self._log_done("delete", len(result))
        return result

    @_log_failures("create")
    async def create(self, obj: Any) -> Dict[str, Any]:
        """
        Build and save a record from the filtered attributes.

        Args:
            obj: Attribute object; unknown keys are dropped

        Returns:
            Plain-data projection of the saved record

        Raises:
            Whatever the store raises on validation or persistence failure
        """
        properties = self.filter_properties(obj)
        record = await self.model.build(properties).save()
        result = record.data_values

        self._log_done("create", 1)
        return result

    @_log_failures("update")
    async def update(self, obj: Any, where: Any = None) -> Dict[str, Any]:
        """
        Bulk-update records matching ``where`` with the attributes of ``obj``.

        Both arguments are filtered independently.

        Returns:
            An empty dict; affected rows are not reported
        """
        criteria = self.filter_properties(where)
        properties = self.filter_properties(obj)
        row_count = await self.model.update(properties, criteria)

        self._log_done("update", row_count)
        return {}
