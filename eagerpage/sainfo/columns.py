""" Model columns: look up attributes by name """

from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import ColumnProperty, InstrumentedAttribute, MapperProperty, QueryableAttribute
from sqlalchemy.sql.elements import Label

from eagerpage import exc
from eagerpage.sainfo.names import model_name
from eagerpage.typing import SAModelOrAlias, SAAttribute


def get_column_by_name(field_name: str, Model: SAModelOrAlias) -> Optional[InstrumentedAttribute]:
    """ Get a model attribute by name, or None

    With an aliased class, the attribute comes adapted to the alias
    """
    # Never expose `__class__`, `_sa_instance_state` and the like
    if field_name.startswith('_'):
        return None
    return getattr(Model, field_name, None)


def resolve_column_by_name(field_name: str, Model: SAModelOrAlias, *, where: str) -> InstrumentedAttribute:
    """ Get a column attribute by name

    Raises:
        exc.InvalidColumnError: no such column, or it's a relationship, a property, etc
    """
    attribute = get_column_by_name(field_name, Model)
    if attribute is None or not is_column(attribute):
        raise exc.InvalidColumnError(model_name(Model), field_name, where=where)
    return attribute


def is_column(attribute: SAAttribute) -> bool:
    """ Is it a column: a real one, or a column_property() expression """
    return _column_property_expression(attribute) is not None


def _column_property_expression(attribute: SAAttribute):
    if not isinstance(attribute, (QueryableAttribute, MapperProperty)):
        return None
    if not isinstance(attribute.property, ColumnProperty):
        return None

    expression = attribute.expression
    if isinstance(expression, (sa.Column, Label)):
        return expression
    return None
