"""
Store Interfaces (IStore, IModel, IRecord)

Abstract base classes describing the collaborators the CRUD adapter talks to.
Any backend that implements them can sit behind ``CrudRepository``.

Implementation guide:
- All I/O methods must be async
- Criteria mappings only ever contain declared attribute names
- Errors are raised as-is; the adapter never translates them
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional


class IRecord(ABC):
    """
    One persisted (or about to be persisted) row.

    Bundles the row's column values with whatever bookkeeping the mapper
    keeps; ``data_values`` exposes only the former.
    """

    @property
    @abstractmethod
    def data_values(self) -> Dict[str, Any]:
        """
        Plain-data projection of the record.

        Returns:
            Dictionary of column name to value, without mapper state
        """
        pass

    @abstractmethod
    async def save(self) -> "IRecord":
        """
        Persist the record.

        Returns:
            The saved record, with generated values (keys, defaults) loaded

        Raises:
            Whatever the backend raises on validation or persistence failure
        """
        pass


class IModel(ABC):
    """
    Schema description for one record type.

    Declares which attribute names are valid and offers the criteria-based
    operations the adapter delegates to.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Model name, used in log records."""
        pass

    @property
    @abstractmethod
    def attributes(self) -> Mapping[str, Any]:
        """
        Declared attributes.

        Returns:
            Ordered mapping of attribute name to backend metadata
        """
        pass

    @abstractmethod
    async def find_all(self, where: Mapping[str, Any]) -> List[IRecord]:
        """
        Find every record matching the criteria.

        Args:
            where: Attribute name to value; empty matches everything

        Returns:
            Matching records
        """
        pass

    @abstractmethod
    async def destroy(self, where: Mapping[str, Any]) -> int:
        """
        Delete every record matching the criteria.

        Returns:
            Number of rows deleted
        """
        pass

    async def destroy_returning(self, where: Mapping[str, Any]) -> List[IRecord]:
        """
        Delete matching records and report exactly the rows deleted.

        Optional capability. Backends that cannot do this in one statement
        leave the default in place.

        Raises:
            NotImplementedError: If the backend does not support it
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not support destroy_returning"
        )

    @abstractmethod
    def build(self, values: Mapping[str, Any]) -> IRecord:
        """
        Build an unsaved record from attribute values.
        """
        pass

    @abstractmethod
    async def update(
        self,
        values: Mapping[str, Any],
        where: Mapping[str, Any]
    ) -> int:
        """
        Bulk-update every record matching the criteria.

        Args:
            values: Attribute name to new value
            where: Attribute name to value; empty matches everything

        Returns:
            Number of rows affected
        """
        pass


class IStore(ABC):
    """
    Database connection able to run raw query expressions.
    """

    @abstractmethod
    async def query(
        self,
        query: str,
        model: IModel,
        options: Optional[Mapping[str, Any]] = None,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """
        Execute a raw query expression against a model.

        Args:
            query: Query text with named bind parameters
            model: Model the rows belong to
            options: Execution options; ``raw`` returns plain rows
            parameters: Bind parameter values

        Returns:
            List of rows for row-returning statements, otherwise a scalar
            or None
        """
        pass
