""" Extra: raw SQL clauses attached to a collection

Some conditions cannot be expressed with a Query Object or SqlAlchemy criteria conveniently:
engine-specific syntax, full-text search, hand-tuned expressions. These go into an Extra:

    collection.extra(
        select={'rank': "ts_rank(search_vector, plainto_tsquery(:q))"},
        where=["search_vector @@ plainto_tsquery(:q)"],
        params={'q': 'pagination'},
    )
"""

from __future__ import annotations

import dataclasses
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.sql.elements import Grouping

from .base import Operation


@dataclasses.dataclass(frozen=True)
class Extra:
    """ Raw SQL clauses: opaque to eagerpage, passed to the database as is """
    # Raw columns: { name => SQL expression }. Selected by the narrow query; attached to records
    select: dict[str, str] = dataclasses.field(default_factory=dict)

    # Raw predicates. ANDed together with the filter
    where: tuple[str, ...] = ()

    # Bound parameters for both of the above
    params: dict[str, Any] = dataclasses.field(default_factory=dict)

    def __bool__(self):
        return bool(self.select or self.where)

    def merge(self, select: Optional[dict[str, str]] = None, where: Optional[list[str]] = None, params: Optional[dict[str, Any]] = None) -> Extra:
        """ Get a new Extra with more clauses added """
        return Extra(
            select={**self.select, **(select or {})},
            where=self.where + tuple(where or ()),
            params={**self.params, **(params or {})},
        )

    def without_select(self) -> Extra:
        """ Get a copy with predicates only: no raw columns """
        return dataclasses.replace(self, select={})


class ExtraOperation(Operation):
    """ Extra: applies raw SQL clauses

    Handles: Collection.extra_state
    When applied to a statement:
    * Adds raw columns to the SELECT clause
    * Adds raw predicates to the WHERE clause
    """
    __slots__ = 'extra',

    # Current clauses
    extra: Extra

    def for_query(self, collection):
        self.extra = Extra()
        return self

    def apply_to_statement(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Modify the Select statement: add raw columns and raw predicates """
        stmt = self.apply_select(stmt)
        stmt = self.apply_where(stmt)
        return stmt

    def apply_select(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Add raw columns, labeled. The dialect quotes labels that need it: `AS "order"` """
        if self.extra.select:
            stmt = stmt.add_columns(*(
                Grouping(sa.text(sql)).label(name)
                for name, sql in self.extra.select.items()
            ))
        return self._bind_params(stmt)

    def apply_where(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Add raw predicates """
        if self.extra.where:
            stmt = stmt.where(*(
                sa.text(f'({sql})')
                for sql in self.extra.where
            ))
        return self._bind_params(stmt)

    def _bind_params(self, stmt: sa.sql.Select) -> sa.sql.Select:
        if self.extra.params:
            stmt = stmt.params(**self.extra.params)
        return stmt
