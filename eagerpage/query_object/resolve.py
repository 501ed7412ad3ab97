""" Resolve a parsed Query Object against a model

Parsing leaves names as strings. Resolving looks every name up: in the registered annotations
first, then in model columns, and sets a `handler` that knows how to use it in SQL.
Unknown names fail here, before any statement is built.
"""

from __future__ import annotations

from functools import singledispatch
from collections import abc

from eagerpage.typing import SAModelOrAlias
from eagerpage.operations import fields

from .query_object import QueryObject
from .sort import SortQuery, SortingField
from .filter import FilterQuery, FieldFilterExpression, BooleanFilterExpression
from .annotate import AnnotateQuery, AnnotatedField


@singledispatch
def resolve(_, Model: SAModelOrAlias, annotations: abc.Mapping):
    """ Resolve a Query Object, one of its parts, or a filter expression, in place """
    raise NotImplementedError(_)


@resolve.register
def resolve_query_object(query: QueryObject, Model: SAModelOrAlias, annotations: abc.Mapping):
    resolve_annotate(query.annotate, Model, annotations)
    resolve_sort(query.sort, Model, annotations)
    resolve_filter(query.filter, Model, annotations)


@resolve.register
def resolve_annotate(annotate: AnnotateQuery, Model: SAModelOrAlias, annotations: abc.Mapping):
    for field in annotate.fields.values():
        resolve_annotated_field(field, Model, annotations)


@resolve.register
def resolve_annotated_field(field: AnnotatedField, Model: SAModelOrAlias, annotations: abc.Mapping):
    field.handler = fields.choose_annotatable_handler_or_fail(field.name, Model, annotations)


@resolve.register
def resolve_sort(sort: SortQuery, Model: SAModelOrAlias, annotations: abc.Mapping):
    for field in sort.fields:
        resolve_sorting_field(field, Model, annotations)


@resolve.register
def resolve_sorting_field(field: SortingField, Model: SAModelOrAlias, annotations: abc.Mapping):
    field.handler = fields.choose_sortable_handler_or_fail(field.name, Model, annotations)


@resolve.register
def resolve_filter(filter: FilterQuery, Model: SAModelOrAlias, annotations: abc.Mapping):
    for condition in filter.conditions:
        resolve(condition, Model, annotations)


@resolve.register
def resolve_filtering_boolean_expression(expression: BooleanFilterExpression, Model: SAModelOrAlias, annotations: abc.Mapping):
    # Clauses are either kind of expression: dispatch
    for clause in expression.clauses:
        resolve(clause, Model, annotations)


@resolve.register
def resolve_filtering_field_expression(expression: FieldFilterExpression, Model: SAModelOrAlias, annotations: abc.Mapping):
    expression.handler = fields.choose_filterable_handler_or_fail(expression.field, Model, annotations)
