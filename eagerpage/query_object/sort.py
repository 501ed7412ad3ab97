""" Query Object: the "sort" operation """

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from functools import cached_property
from typing import Union, TYPE_CHECKING

from eagerpage import exc
from eagerpage.sainfo.names import field_name
from eagerpage.typing import SAAttribute

from .base import OperationInputBase


if TYPE_CHECKING:
    from eagerpage.operations.fields import Sortable


@dataclass
class SortQuery(OperationInputBase):
    """ Query Object operation: the "sort" operation

    Syntax: a list of names, each with an optional direction suffix:

        { sort: ['total_amount-', 'ctime+', 'id'] }

    Supports:
    * Columns
    * Annotations
    """
    # Sorting fields, most significant first
    fields: list[SortingField]

    @cached_property
    def names(self) -> tuple[str, ...]:
        """ Names of fields used in sorting, no duplicates """
        return tuple(dict.fromkeys(field.name for field in self.fields))

    def __contains__(self, field: Union[str, SAAttribute]):
        return field_name(field) in self.names

    @classmethod
    def from_query_object(cls, sort: list[str]):  # type: ignore[override]
        if not isinstance(sort, list) or not all(isinstance(field, str) and field for field in sort):
            raise exc.QueryObjectError('"sort" must be an array of non-empty strings')

        return cls(fields=[SortingField.parse(field) for field in sort])

    def export(self) -> list[str]:
        return [field.export() for field in self.fields]


@dataclass
class SortingField:
    name: str
    direction: SortingDirection
    handler: Sortable  # Is set after resolve() is called

    __slots__ = 'name', 'direction', 'handler'

    @classmethod
    def parse(cls, field: str) -> SortingField:
        """ Parse "name", "name+", "name-" """
        suffix = field[-1]
        if suffix in (SortingDirection.ASC.value, SortingDirection.DESC.value):
            return cls(name=field[:-1], direction=SortingDirection(suffix), handler=None)  # type: ignore[arg-type]
        else:
            return cls(name=field, direction=SortingDirection.ASC, handler=None)  # type: ignore[arg-type]

    def export(self) -> str:
        return f'{self.name}{self.direction.value}'


class SortingDirection(Enum):
    ASC = '+'
    DESC = '-'
