""" Tools for parsing the Query Object

These classes only represent the internal structure of the Query Object.
They do not interact with SqlAlchemy until resolved.
"""

from .query_object import QueryObject, QueryObjectDict

from .base import OperationInputBase
from .sort import SortQuery, SortingField, SortingDirection
from .filter import FilterQuery, FilterExpressionBase, FieldFilterExpression, BooleanFilterExpression
from .annotate import AnnotateQuery, AnnotatedField
