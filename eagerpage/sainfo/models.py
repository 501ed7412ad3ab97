import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage.typing import SAModelOrAlias


def unaliased_class(Model: SAModelOrAlias) -> type:
    """ Get the actual model class; unaliased, if was

    Args:
         Model: model class or AliasedClass
    """
    return sa.inspect(Model).mapper.class_


def column_attribute_names(Model: SAModelOrAlias) -> tuple[str, ...]:
    """ Get the names of all column attributes of a model: the "full record" """
    return tuple(prop.key for prop in sa.inspect(Model).mapper.column_attrs)
