from collections import abc
from functools import cache

import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage.typing import PrimaryKey, SAInstance, SARowDict


@cache
def primary_key_names(Model: type) -> tuple[str, ...]:
    """ Get the list of primary key attribute names """
    mapper = sa.orm.class_mapper(Model)
    return tuple(mapper.get_property_by_column(c).key for c in mapper.primary_key)


def primary_key_attributes(Model: type) -> tuple[sa.orm.InstrumentedAttribute, ...]:
    """ Get the list of primary key attributes, adapted to `Model` (which may be an alias) """
    return tuple(getattr(Model, name) for name in primary_key_names(sa.inspect(Model).mapper.class_))


def primary_key_of_dict(Model: type, row: SARowDict) -> PrimaryKey:
    """ Get the primary key tuple of a dict record """
    return tuple(row[name] for name in primary_key_names(sa.inspect(Model).mapper.class_))


def primary_key_of_instance(instance: SAInstance) -> PrimaryKey:
    """ Get the primary key tuple of a loaded model instance """
    return tuple(sa.inspect(instance).identity)


def primary_key_in(Model: type, ids: abc.Sequence[PrimaryKey]) -> sa.sql.ColumnElement:
    """ Get a condition: primary key IN (ids)

    Composite primary keys use a tuple comparison: (a, b) IN ((1, 2), (3, 4))
    """
    pk_attrs = primary_key_attributes(Model)

    if len(pk_attrs) == 1:
        pk, = pk_attrs
        return pk.in_([id[0] for id in ids])
    else:
        return sa.tuple_(*pk_attrs).in_([tuple(id) for id in ids])
