from collections import abc

import sqlalchemy as sa

from .base import Operation
from eagerpage.operations import fields


class AnnotateOperation(Operation):
    """ Annotate operation: attach computed values to every row

    Handles: QueryObject.annotate, and annotations referenced by QueryObject.filter and QueryObject.sort
    When applied to a statement:
    * Adds labeled annotation expressions to the SELECT clause

    Annotations that "filter" and "sort" refer to are selected as well, even if not requested:
    these values are part of what defines the page.
    """
    __slots__ = ()

    @property
    def names(self) -> list[str]:
        """ Names of annotations in effect """
        return self.query.annotation_names(self.settings.annotations or {})

    def apply_to_statement(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Modify the Select statement: add annotation columns """
        return stmt.add_columns(*self.compile_columns())

    def compile_columns(self) -> abc.Iterator[sa.sql.ColumnElement]:
        """ Generate labeled annotation columns """
        annotations = self.settings.annotations or {}

        for name in self.names:
            # Requested explicitly? It's already resolved
            if name in self.query.annotate.fields:
                handler = self.query.annotate.fields[name].handler
            # Referenced by filter or sort
            else:
                handler = fields.choose_annotatable_handler_or_fail(name, self.target_Model, annotations)

            yield from handler.select_columns(self.target_Model)
