""" Query Object: the "filter" operation """

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from functools import cached_property
from typing import Any, TYPE_CHECKING

from eagerpage import exc
from eagerpage.util.funcy import collecting

from .base import OperationInputBase


if TYPE_CHECKING:
    from eagerpage.operations.fields import Filterable


@dataclass
class FilterQuery(OperationInputBase):
    """ Query Object operation: the "filter" operation

    MongoDB-like syntax:

        { state: 'paid', total_amount: { $gt: 100 }, $or: [ {a: 1}, {b: 2} ] }

    A plain value is a shortcut for "$eq". Conditions are ANDed together.

    Supports:
    * Column names
    * Annotation names
    """
    # Conditions: on fields, and boolean ones
    conditions: list[FilterExpressionBase]

    @classmethod
    def from_query_object(cls, filter: dict):  # type: ignore[override]
        if not isinstance(filter, dict):
            raise exc.QueryObjectError('"filter" must be an object')

        return cls(conditions=parse_conditions(filter))

    def export(self) -> dict:
        return merge_exported(condition.export() for condition in self.conditions)

    @cached_property
    def names(self) -> tuple[str, ...]:
        """ Names of fields used in filtering, no duplicates. Boolean expressions are looked into """
        return tuple(dict.fromkeys(
            expression.field
            for expression in iter_field_expressions(self.conditions)
        ))


class FilterExpressionBase:
    """ Base class for filter expressions """

    def export(self) -> dict:
        raise NotImplementedError


@dataclass
class FieldFilterExpression(FilterExpressionBase):
    """ A condition on a field

    Example:
        { total_amount: {$gt: 100} }
    """
    field: str
    operator: str
    value: Any
    handler: Filterable  # Is set after resolve() is called

    __slots__ = 'field', 'operator', 'value', 'handler'

    def export(self) -> dict:
        return {self.field: {self.operator: self.value}}


@dataclass
class BooleanFilterExpression(FilterExpressionBase):
    """ A boolean combination of conditions

    Example:
        { $or: [ {state: 'paid'}, {state: 'shipped'} ] }
    """
    operator: str
    clauses: list[FilterExpressionBase]

    __slots__ = 'operator', 'clauses'

    def export(self) -> dict:
        # $not takes an object, others take an array
        if self.operator == '$not':
            return {self.operator: merge_exported(clause.export() for clause in self.clauses)}
        else:
            return {self.operator: [clause.export() for clause in self.clauses]}


@collecting
def parse_conditions(conditions: dict) -> abc.Iterator[FilterExpressionBase]:
    """ Parse a filter object into expressions """
    for key, value in conditions.items():
        if key.startswith('$'):
            yield parse_boolean_expression(key, value)
        else:
            yield from parse_field_expressions(key, value)


def parse_field_expressions(field: str, value: Any) -> abc.Iterator[FieldFilterExpression]:
    """ Parse conditions on a field: `{field: value}` or `{field: {$op: value, ...}}` """
    # Shortcut
    if not isinstance(value, dict):
        yield FieldFilterExpression(field=field, operator='$eq', value=value, handler=None)  # type: ignore[arg-type]
        return

    for operator, operand in value.items():
        if not operator.startswith('$'):
            raise exc.QueryObjectError(f'Filter: "{field}" operators must start with "$", got "{operator}"')
        yield FieldFilterExpression(field=field, operator=operator, value=operand, handler=None)  # type: ignore[arg-type]


def parse_boolean_expression(operator: str, operand: Any) -> BooleanFilterExpression:
    """ Parse `{$not: {...}}` or `{$and|$or|$nor: [{...}, ...]}` """
    if operator == '$not':
        if not isinstance(operand, dict):
            raise exc.QueryObjectError(f"{operator}'s operand must be an object")
        objects = [operand]
    else:
        if not isinstance(operand, list) or not all(isinstance(c, dict) for c in operand):
            raise exc.QueryObjectError(f"{operator}'s operand must be an array of objects")
        objects = operand

    return BooleanFilterExpression(
        operator=operator,
        clauses=[
            expression
            for obj in objects
            for expression in parse_conditions(obj)
        ],
    )


def merge_exported(objects: abc.Iterable[dict]) -> dict:
    """ Merge exported conditions into one filter object. Operators on the same field are put together """
    res: dict = {}
    for obj in objects:
        for key, value in obj.items():
            if isinstance(value, dict) and isinstance(res.get(key), dict):
                res[key] = {**res[key], **value}
            else:
                res[key] = value
    return res


def iter_field_expressions(conditions: abc.Iterable[FilterExpressionBase]) -> abc.Iterator[FieldFilterExpression]:
    """ Iterate over field expressions, recursively: descend into boolean expressions """
    for condition in conditions:
        if isinstance(condition, FieldFilterExpression):
            yield condition
        elif isinstance(condition, BooleanFilterExpression):
            yield from iter_field_expressions(condition.clauses)
        else:
            raise NotImplementedError(repr(condition))
