""" Loading strategies for full records

* `RecordsLoaderBase`: base class
* `DictRecordsLoader`: Core connection, records are dicts
* `InstanceRecordsLoader`: ORM session, records are model instances
"""

from __future__ import annotations

from collections import abc
from typing import Any

import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage import sainfo
from eagerpage.typing import SAModelOrAlias, SAConnectable, SARecord, PrimaryKey


class RecordsLoaderBase:
    """ Loader base

    Base for classes that implement:
    * Prepare an SQL statement that loads full records by their primary keys
    * Execute this statement
    * Tell the primary key of a loaded record
    * Attach computed values (annotations) to a record

    Operations, such as filter, sort, skip/limit, are out of scope here:
    the set of records is already known.
    """
    __slots__ = 'Model',

    def __init__(self, Model: SAModelOrAlias):
        self.Model = Model

    def statement(self, ids: abc.Sequence[PrimaryKey]) -> sa.sql.Select:
        """ Build a statement that loads full records: no filter, no order, no annotations """
        stmt = self.prepare_statement()
        return stmt.where(sainfo.primary_key.primary_key_in(self.Model, ids))

    def prepare_statement(self) -> sa.sql.Select:
        """ Hook: prepare the SELECT statement that loads full records """
        raise NotImplementedError

    def load_results(self, stmt: sa.sql.Select, connection: SAConnectable) -> list[SARecord]:
        """ Actually execute the query and fetch records

        The order of records is undefined.
        """
        raise NotImplementedError

    def primary_key_of(self, record: SARecord) -> PrimaryKey:
        """ Get the primary key of a loaded record """
        raise NotImplementedError

    def attach_values(self, record: SARecord, values: dict[str, Any]) -> SARecord:
        """ Attach computed values to a record """
        return record


class DictRecordsLoader(RecordsLoaderBase):
    """ Dict loader: loads every column attribute of the model into a dict

    Computed values (annotations) are added to the dict as keys.
    """
    __slots__ = ()

    def prepare_statement(self) -> sa.sql.Select:
        return sa.select(*(
            getattr(self.Model, name)
            for name in sainfo.models.column_attribute_names(self.Model)
        ))

    def load_results(self, stmt: sa.sql.Select, connection: SAConnectable) -> list[SARecord]:
        # We use `.mappings()` to convert a list of rows `list[RowMapping]` into a list of dicts `list[dict]`
        res: sa.engine.CursorResult = connection.execute(stmt)
        return [dict(row) for row in res.mappings()]

    def primary_key_of(self, record: SARecord) -> PrimaryKey:
        return sainfo.primary_key.primary_key_of_dict(self.Model, record)

    def attach_values(self, record: SARecord, values: dict[str, Any]) -> SARecord:
        record.update(values)  # type: ignore[attr-defined]
        return record


class InstanceRecordsLoader(RecordsLoaderBase):
    """ Instance loader: loads model instances through an ORM Session

    Loader options (e.g. `selectinload()`) are applied here, and only here:
    related objects are loaded for the records of the current page.
    """
    __slots__ = 'options',

    def __init__(self, Model: SAModelOrAlias, options: abc.Sequence[Any] = ()):
        super().__init__(Model)
        self.options = tuple(options)

    def prepare_statement(self) -> sa.sql.Select:
        return sa.select(self.Model).options(*self.options)

    def load_results(self, stmt: sa.sql.Select, connection: SAConnectable) -> list[SARecord]:
        # unique(): joined eager loading of collections produces duplicate rows
        res = connection.execute(stmt)
        return list(res.unique().scalars())

    def primary_key_of(self, record: SARecord) -> PrimaryKey:
        return sainfo.primary_key.primary_key_of_instance(record)
