from collections import abc
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa

from eagerpage.typing import SAModelOrAlias
from .base import NameContext, Annotatable, Filterable, Sortable


@dataclass
class AnnotationHandler(Annotatable, Filterable, Sortable):
    """ Handler for annotations: named SQL expressions registered in QuerySettings.annotations

    An annotation is a value computed at query time, e.g. an aggregate over related rows:

        annotations = {
            'total_amount': lambda Order: (
                sa.select(sa.func.sum(Item.amount))
                .where(Item.order_id == Order.id)
                .scalar_subquery()
            ),
        }

    An annotation can be attached to records ("annotate"), and used in "filter" and "sort".
    """
    @classmethod
    def is_applicable(cls, name: str, Model: SAModelOrAlias, annotations: abc.Mapping, context: NameContext) -> bool:
        return name in annotations

    # Context: where the field is being used
    context: NameContext

    # Annotation name
    name: str

    # The registered value: an expression, or a callable that builds one for a model
    definition: Any

    def __init__(self, name: str, Model: SAModelOrAlias, annotations: abc.Mapping, context: NameContext):
        self.context = context
        self.name = name
        self.definition = annotations[name]

    __slots__ = 'context', 'name', 'definition'

    def select_columns(self, Model: SAModelOrAlias) -> abc.Iterator[sa.sql.ColumnElement]:
        yield self.expression(Model).label(self.name)

    def filter_by(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        return self.expression(Model)

    def sort_by(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        return self.expression(Model)

    def expression(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        """ Build the SQL expression for this annotation """
        return annotation_expression(self.definition, Model)


def annotation_expression(definition: Any, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
    """ Get an SQL expression from an annotation definition: expression, or a callable(Model) """
    # Expressions are used as is
    if isinstance(definition, sa.sql.ClauseElement):
        return definition  # type: ignore[return-value]
    # Callables build an expression for the model (maybe, an aliased one)
    elif callable(definition):
        return definition(Model)
    else:
        raise NotImplementedError(repr(definition))
