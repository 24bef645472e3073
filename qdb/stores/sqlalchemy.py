"""
SQLAlchemy-backed store, model and record implementations.

Binds the adapter interfaces to an ``AsyncSession`` and a declarative mapped
class. Mutations flush but never commit; the session owner decides when the
transaction ends.
"""

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import ColumnElement, delete, inspect, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from qdb.interfaces.store import IModel, IRecord, IStore
from qdb.models.base import loaded_column_values


# Criteria values of these types match with IN (...)
_MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


class SQLAlchemyRecord(IRecord):
    """
    Record handle wrapping one mapped instance.

    Attributes:
        session: Session the instance belongs to (or will be added to)
        instance: The mapped ORM object
    """

    def __init__(self, session: AsyncSession, instance: Any):
        self.session = session
        self.instance = instance

    @property
    def data_values(self) -> Dict[str, Any]:
        """
        Column values currently loaded on the instance.

        Reads the instance dict directly so expired or unloaded attributes
        never trigger a lazy load outside the event loop.
        """
        return loaded_column_values(self.instance)

    async def save(self) -> "SQLAlchemyRecord":
        """
        Add the instance to the session, flush, and reload generated values.

        Raises:
            IntegrityError: If a database constraint is violated
        """
        self.session.add(self.instance)
        await self.session.flush()
        await self.session.refresh(self.instance)
        return self

    def __repr__(self) -> str:
        return f"SQLAlchemyRecord({self.instance!r})"


class SQLAlchemyModel(IModel):
    """
    Schema description backed by a declarative mapped class.

    Attributes:
        session: SQLAlchemy async session for database operations
        mapped_class: Declarative class the criteria apply to
    """

    def __init__(self, session: AsyncSession, mapped_class: type):
        self.session = session
        self.mapped_class = mapped_class
        self._attributes = {
            attr.key: attr.columns[0]
            for attr in inspect(mapped_class).column_attrs
        }

    @property
    def name(self) -> str:
        return self.mapped_class.__name__

    @property
    def attributes(self) -> Mapping[str, Any]:
        """Column attribute keys mapped to their ``Column`` objects."""
        return self._attributes

    def _conditions(self, where: Mapping[str, Any]) -> List[ColumnElement]:
        """
        Turn a criteria mapping into WHERE conditions.

        None compares with IS NULL and collections compare with IN.
        """
        conditions = []
        for key, value in where.items():
            if key not in self._attributes:
                raise KeyError(f"{self.name} has no attribute '{key}'")

            column = getattr(self.mapped_class, key)
            if value is None:
                conditions.append(column.is_(None))
            elif isinstance(value, _MULTI_VALUE_TYPES):
                conditions.append(column.in_(list(value)))
            else:
                conditions.append(column == value)
        return conditions

    def _wrap(self, instances) -> List[SQLAlchemyRecord]:
        return [SQLAlchemyRecord(self.session, instance) for instance in instances]

    async def find_all(self, where: Mapping[str, Any]) -> List[SQLAlchemyRecord]:
        stmt = select(self.mapped_class)
        conditions = self._conditions(where)
        if conditions:
            stmt = stmt.where(*conditions)

        result = await self.session.execute(stmt)
        return self._wrap(result.scalars().all())

    async def destroy(self, where: Mapping[str, Any]) -> int:
        stmt = delete(self.mapped_class)
        conditions = self._conditions(where)
        if conditions:
            stmt = stmt.where(*conditions)

        result = await self.session.execute(
            stmt,
            execution_options={"synchronize_session": "fetch"}
        )
        await self.session.flush()
        return result.rowcount

    async def destroy_returning(self, where: Mapping[str, Any]) -> List[SQLAlchemyRecord]:
        """
        Delete with DELETE ... RETURNING and wrap the returned rows.

        The returned records hold transient instances; they are detached
        copies of what was deleted, not session members.

        Raises:
            NotImplementedError: If the dialect cannot DELETE ... RETURNING
        """
        dialect = self.session.get_bind().dialect
        if not dialect.delete_returning:
            raise NotImplementedError(
                f"{dialect.name} does not support DELETE ... RETURNING"
            )

        columns = {
            key: getattr(self.mapped_class, key) for key in self._attributes
        }
        stmt = delete(self.mapped_class).returning(*columns.values())
        conditions = self._conditions(where)
        if conditions:
            stmt = stmt.where(*conditions)

        result = await self.session.execute(
            stmt,
            execution_options={"synchronize_session": "fetch"}
        )
        rows = result.all()
        await self.session.flush()
        return self._wrap(
            self.mapped_class(**{
                key: row._mapping[column] for key, column in columns.items()
            })
            for row in rows
        )

    def build(self, values: Mapping[str, Any]) -> SQLAlchemyRecord:
        return SQLAlchemyRecord(self.session, self.mapped_class(**values))

    async def update(
        self,
        values: Mapping[str, Any],
        where: Mapping[str, Any]
    ) -> int:
        """
        Bulk UPDATE of matching rows.

        Returns:
            Rows affected; 0 without executing anything when there is
            nothing to set
        """
        if not values:
            return 0

        stmt = update(self.mapped_class).values(**values)
        conditions = self._conditions(where)
        if conditions:
            stmt = stmt.where(*conditions)

        result = await self.session.execute(
            stmt,
            execution_options={"synchronize_session": "fetch"}
        )
        await self.session.flush()
        return result.rowcount

    def __repr__(self) -> str:
        return f"SQLAlchemyModel({self.name})"


class SQLAlchemyStore(IStore):
    """
    Raw query execution on an async session.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def query(
        self,
        query: str,
        model: IModel,
        options: Optional[Mapping[str, Any]] = None,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """
        Execute a textual statement with named bind parameters.

        Non-raw execution maps rows onto a mapped class, so it needs a
        SQLAlchemyModel; raw execution accepts any IModel.

        Args:
            query: SQL text, e.g. "SELECT * FROM items WHERE name = :name"
            model: Model whose mapped class receives non-raw rows
            options: ``{"raw": True}`` returns row dicts instead of records
            parameters: Values for the bind parameters

        Returns:
            List of row dicts (raw) or records for row-returning statements,
            otherwise the affected row count

        Raises:
            TypeError: If non-raw execution is requested for a model that
                is not a SQLAlchemyModel

        Example:
            >>> rows = await store.query(
            ...     "SELECT id, name FROM items WHERE name = :name",
            ...     model,
            ...     {"raw": True},
            ...     {"name": "widget"}
            ... )
            >>> print(rows)
            [{"id": 1, "name": "widget"}]
        """
        options = options or {}
        params = dict(parameters) if parameters else None
        stmt = text(query)

        if not options.get("raw", False):
            if not isinstance(model, SQLAlchemyModel):
                raise TypeError(
                    f"Non-raw queries need a SQLAlchemyModel, got {type(model).__name__}"
                )
            orm_stmt = select(model.mapped_class).from_statement(stmt)
            result = await self.session.execute(orm_stmt, params)
            return [
                SQLAlchemyRecord(self.session, instance)
                for instance in result.scalars().all()
            ]

        result = await self.session.execute(stmt, params)
        if not result.returns_rows:
            return result.rowcount

        return [dict(row._mapping) for row in result]
