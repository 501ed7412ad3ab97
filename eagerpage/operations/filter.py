from collections import abc
from typing import Any

import sqlalchemy as sa

from .base import Operation

from eagerpage.query_object.filter import FilterExpressionBase, FieldFilterExpression, BooleanFilterExpression
from eagerpage import exc


# An operator implementation: (column expression, operand) -> condition
OperatorCallable = abc.Callable[[sa.sql.ColumnElement, Any], sa.sql.ColumnElement]


class FilterOperation(Operation):
    """ Filter: narrows down the set of rows

    Handles: QueryObject.filter
    When applied to a statement:
    * Adds conditions to the WHERE clause. They are ANDed together.

    Used by the narrow statement and by the count statement: both must see the same set of rows.

    Supports:
    * Column names
    * Annotation names: the annotation's expression is compared, e.g. "(SELECT sum(...)) > 100"
    """
    __slots__ = ()

    def apply_to_statement(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Modify the Select statement: add WHERE conditions """
        conditions = self.compile_conditions()
        if not conditions:
            return stmt
        return stmt.where(*conditions)

    def compile_conditions(self) -> list[sa.sql.ColumnElement]:
        """ Compile every top-level condition of the filter """
        return [self._compile(condition) for condition in self.query.filter.conditions]

    def _compile(self, condition: FilterExpressionBase) -> sa.sql.ColumnElement:
        if isinstance(condition, FieldFilterExpression):
            return self._compile_field(condition)
        elif isinstance(condition, BooleanFilterExpression):
            return self._compile_boolean(condition)
        else:
            raise NotImplementedError(repr(condition))

    def _compile_field(self, condition: FieldFilterExpression) -> sa.sql.ColumnElement:
        """ Compile "field <operator> value" """
        column = condition.handler.filter_by(self.target_Model)
        return self.use_operator(condition, column, condition.value)

    def _compile_boolean(self, condition: BooleanFilterExpression) -> sa.sql.ColumnElement:
        """ Compile "<operator> (clause, clause, ...)" """
        clauses = [self._compile(clause) for clause in condition.clauses]

        # $not: negation of all its clauses ANDed
        if condition.operator == '$not':
            return sa.not_(sa.and_(*clauses))
        elif condition.operator == '$and':
            expression = sa.and_(*clauses)
        elif condition.operator in ('$or', '$nor'):
            expression = sa.or_(*clauses)
        else:
            raise exc.QueryObjectError(f'Unsupported boolean operator: {condition.operator}')

        # Parenthesize so that it can be combined with other conditions
        if len(clauses) > 1:
            expression = expression.self_group()  # type: ignore[assignment]

        # $nor: negation of $or
        if condition.operator == '$nor':
            return ~expression
        return expression

    def use_operator(self, condition: FieldFilterExpression, column_expression: sa.sql.ColumnElement, value: Any) -> sa.sql.ColumnElement:
        """ Apply the condition's operator to a column and a value

        Raises:
            exc.QueryObjectError: unknown operator, or a wrong operand
        """
        operator = condition.operator

        try:
            implementation = self.SCALAR_OPERATORS[operator]
        except KeyError as e:
            raise exc.QueryObjectError(f'Unsupported operator: {operator}') from e

        if operator in self.OPERATORS_WITH_ARRAY_ARGUMENT and not isinstance(value, (list, tuple, set, frozenset)):
            raise exc.QueryObjectError(f'Filter: {operator} argument must be an array')

        return implementation(column_expression, value)

    # Operators: { name => lambda column, value }
    SCALAR_OPERATORS: dict[str, OperatorCallable] = {
        '$eq': lambda col, val: col == val,
        # NULL-aware comparison
        '$ne': lambda col, val: col.is_distinct_from(val),
        '$lt': lambda col, val: col < val,
        '$lte': lambda col, val: col <= val,
        '$gt': lambda col, val: col > val,
        '$gte': lambda col, val: col >= val,
        '$prefix': lambda col, val: col.startswith(val),
        '$in': lambda col, val: col.in_(val),
        '$nin': lambda col, val: col.not_in(val),
        '$exists': lambda col, val: col.is_not(None) if val else col.is_(None),
    }

    # Operators that only accept an array operand
    OPERATORS_WITH_ARRAY_ARGUMENT = frozenset(('$in', '$nin'))

    @classmethod
    def add_scalar_operator(cls, name: str, callable: OperatorCallable):
        """ Register an operator

        NOTE: it's registered application-wide. For a local change, subclass FilterOperation,
        and use it as `Collection.FilterOperation` in a Collection subclass.
        """
        cls.SCALAR_OPERATORS[name] = callable
