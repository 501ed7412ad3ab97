""" Implementation for field types & SQL handlers: how to filter, sort, and annotate them """

from collections import abc
from typing import TypeVar

from eagerpage import exc, sainfo
from eagerpage.typing import SAModelOrAlias

from .base import FieldHandlerBase, NameContext
from .base import Annotatable, Sortable, Filterable

from .column import ColumnHandler
from .annotation import AnnotationHandler, annotation_expression


# If you implement a custom handler, just add it here. All eagerpage instances will pick it up.
ALL_HANDLERS = (
    # Sequence matters.

    # Annotations go first: a registered annotation hides a model attribute with the same name.
    # Collection refuses to work with such conflicts anyway.
    AnnotationHandler,

    # ColumnHandler supports every column and column expression
    ColumnHandler,
)


def choose_annotatable_handler_or_fail(name: str, Model: SAModelOrAlias, annotations: abc.Mapping) -> Annotatable:
    """ Choose a handler for a field that will be attached as a computed value """
    handler = _choose_handler(name, Model, annotations, context=NameContext.ANNOTATE, HandlerType=Annotatable)

    # Annotation not registered? Report it specifically.
    if handler is None:
        raise exc.InvalidAnnotationError(sainfo.names.model_name(Model), name, where=NameContext.ANNOTATE.value)

    return handler


def choose_sortable_handler_or_fail(name: str, Model: SAModelOrAlias, annotations: abc.Mapping) -> Sortable:
    """ Choose a handler for a field that will be sorted by """
    return _choose_handler_or_fail(name, Model, annotations, context=NameContext.SORT, HandlerType=Sortable)


def choose_filterable_handler_or_fail(name: str, Model: SAModelOrAlias, annotations: abc.Mapping) -> Filterable:
    """ Choose a handler for a field that will be filtered by """
    return _choose_handler_or_fail(name, Model, annotations, context=NameContext.FILTER, HandlerType=Filterable)


T = TypeVar('T')


def _choose_handler_or_fail(name: str, Model: SAModelOrAlias, annotations: abc.Mapping,
                            context: NameContext, HandlerType: type[T]) -> T:
    """ Given a field, find a handler that implements it. Otherwise, fail. """
    handler = _choose_handler(name, Model, annotations, context=context, HandlerType=HandlerType)

    if handler is None:
        raise exc.InvalidColumnError(sainfo.names.model_name(Model), name, where=context.value)

    return handler


def _choose_handler(name: str, Model: SAModelOrAlias, annotations: abc.Mapping,
                    context: NameContext, HandlerType: type[T]):
    for handler in ALL_HANDLERS:
        if issubclass(handler, HandlerType) and handler.is_applicable(name, Model, annotations, context=context):
            return handler(name, Model, annotations, context=context)  # type: ignore[return-value]
    else:
        return None
