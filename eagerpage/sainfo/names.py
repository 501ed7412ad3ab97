from typing import Union

import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage.typing import SAModelOrAlias, SAAttribute
from .models import unaliased_class


def model_name(Model: SAModelOrAlias) -> str:
    """ Class name of a model, aliased or not. Used in error messages """
    return unaliased_class(Model).__name__


def field_name(field: Union[str, SAAttribute]) -> str:
    """ Name of an attribute: `Order.state` -> 'state'. Strings are returned as is """
    if isinstance(field, str):
        return field
    if isinstance(field, sa.orm.QueryableAttribute):
        return field.key
    raise NotImplementedError(repr(field))
