from typing import Any, Union

import sqlalchemy as sa
import sqlalchemy.orm


# Annotation for SqlAlchemy models
SAModel = type

# Annotation for SqlAlchemy models or aliased classes
SAModelOrAlias = Union[SAModel, sa.orm.util.AliasedClass]

# Annotation for SqlAlchemy instances (objects)
SAInstance = object

# Annotation for dict rows (result rows returned as dicts)
SARowDict = dict

# An SqlAlchemy attribute
# That is, the instrumented attribute you get when accessing <model>.<attribute>
SAAttribute = Union[sa.orm.attributes.InstrumentedAttribute, sa.orm.interfaces.MapperProperty]  # type: ignore[name-defined]

# Something that can execute statements: a Core connection or an ORM session
SAConnectable = Union[sa.engine.Connection, sa.orm.Session]

# A loaded record: a dict (Connection) or a model instance (Session)
SARecord = Union[SARowDict, SAInstance]

# Primary key value. Always a tuple, even for single-column keys
PrimaryKey = tuple[Any, ...]
