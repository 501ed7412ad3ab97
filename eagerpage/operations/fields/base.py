""" Field handlers: what a name in a Query Object refers to, and how to use it in SQL """

from collections import abc
from enum import Enum

import sqlalchemy as sa

from eagerpage.typing import SAModelOrAlias


class NameContext(Enum):
    """ Where a name is mentioned. Used in error messages """
    ANNOTATE = 'annotate'
    FILTER = 'filter'
    SORT = 'sort'


class FieldHandlerBase:
    """ A handler for one name: a column, an annotation

    Handlers are tried in turn: the first one that is_applicable() gets the name.
    """
    __slots__ = ()

    @classmethod
    def is_applicable(cls, name: str, Model: SAModelOrAlias, annotations: abc.Mapping, context: NameContext) -> bool:
        raise NotImplementedError

    def __init__(self, name: str, Model: SAModelOrAlias, annotations: abc.Mapping, context: NameContext):
        """ Args:
            name: the name from the Query Object
            Model: model or aliased class to resolve it against
            annotations: registered annotations { name => expression }
            context: where the name is mentioned
        """


class Annotatable(FieldHandlerBase):
    """ Can be computed and attached to every record """
    __slots__ = ()
    name: str

    def select_columns(self, Model: SAModelOrAlias) -> abc.Iterator[sa.sql.ColumnElement]:
        """ Labeled columns for the narrow statement """
        raise NotImplementedError


class Filterable(FieldHandlerBase):
    """ Can be used in WHERE """
    __slots__ = ()

    def filter_by(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        raise NotImplementedError


class Sortable(FieldHandlerBase):
    """ Can be used in ORDER BY """
    __slots__ = ()

    def sort_by(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        raise NotImplementedError
