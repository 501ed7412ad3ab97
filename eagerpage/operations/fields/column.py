from collections import abc
from dataclasses import dataclass
import sqlalchemy as sa

from eagerpage import sainfo
from eagerpage.typing import SAModelOrAlias
from .base import NameContext, Filterable, Sortable


@dataclass
class ColumnHandler(Filterable, Sortable):
    """ Handler for columns and column expressions """
    @classmethod
    def is_applicable(cls, name: str, Model: SAModelOrAlias, annotations: abc.Mapping, context: NameContext) -> bool:
        attr = sainfo.columns.get_column_by_name(name, Model)

        # Type ok?
        return attr is not None and sainfo.columns.is_column(attr)

    # Context: where the field is being used
    context: NameContext

    # Field name
    name: str

    # The SqlAlchemy property
    property: sa.orm.ColumnProperty

    def __init__(self, name: str, Model: SAModelOrAlias, annotations: abc.Mapping, context: NameContext):
        attribute = sainfo.columns.resolve_column_by_name(name, Model, where=context.value)

        self.context = context
        self.name = name
        self.property = attribute.property

    __slots__ = 'context', 'name', 'property'

    def filter_by(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        return self._refer_to(Model)

    def sort_by(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        return self._refer_to(Model)

    def _refer_to(self, Model: SAModelOrAlias) -> sa.sql.ColumnElement:
        return sainfo.columns.resolve_column_by_name(self.name, Model, where=self.context.value)
