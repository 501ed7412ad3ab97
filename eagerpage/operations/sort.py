from collections import abc

import sqlalchemy as sa

from .base import Operation
from eagerpage.query_object.sort import SortingDirection, SortingField
from eagerpage.sainfo.primary_key import primary_key_attributes


class SortOperation(Operation):
    """ Sort operation: the order of the narrow query

    Handles: QueryObject.sort
    When applied to a statement:
    * Adds ORDER BY for every sorting field, NULLs go last
    * Appends primary key columns that are not sorted by: the order has to be total,
      otherwise rows with equal values may jump between pages

    Supports:
    * Column names
    * Annotation names
    """
    __slots__ = ()

    def apply_to_statement(self, stmt: sa.sql.Select) -> sa.sql.Select:
        return stmt.order_by(*self.compile_columns(), *self.tiebreaker_columns())

    def compile_columns(self) -> abc.Iterator[sa.sql.ColumnElement]:
        """ ORDER BY expressions requested by the user """
        for field in self.query.sort.fields:
            yield self._order_expression(field)

    def tiebreaker_columns(self) -> abc.Iterator[sa.sql.ColumnElement]:
        """ Primary key columns, unless already sorted by """
        sorted_names = self.query.sort.names
        yield from (
            attribute
            for attribute in primary_key_attributes(self.target_Model)
            if attribute.key not in sorted_names
        )

    def _order_expression(self, field: SortingField) -> sa.sql.ColumnElement:
        expression = field.handler.sort_by(self.target_Model)
        if field.direction == SortingDirection.DESC:
            return expression.desc().nullslast()
        return expression.asc().nullslast()
