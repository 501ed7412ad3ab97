""" Query Object: the "annotate" operation """

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from eagerpage import exc

from .base import OperationInputBase


if TYPE_CHECKING:
    from eagerpage.operations.fields import Annotatable


@dataclass
class AnnotateQuery(OperationInputBase):
    """ Query Object operation: the "annotate" operation

    Lists computed values to attach to every record.
    Every name must be registered in QuerySettings.annotations.

    Example:
        { annotate: ['total_amount', 'n_comments'] }
    """
    # Annotations requested explicitly
    fields: dict[str, AnnotatedField]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.fields)

    @classmethod
    def from_query_object(cls, annotate: list[str]):  # type: ignore[override]
        # Check types
        if not isinstance(annotate, list) or not all(isinstance(name, str) for name in annotate):
            raise exc.QueryObjectError(f'"annotate" must be an array of strings')

        # Construct
        return cls(fields={
            name: AnnotatedField(name=name, handler=None)  # type: ignore[arg-type]
            for name in annotate
        })

    def export(self) -> list[str]:
        return list(self.fields)


@dataclass
class AnnotatedField:
    name: str
    handler: Annotatable  # Is set after resolve() is called

    __slots__ = 'name', 'handler'
