""" Query Object: describes which records to paginate, in what order, with which computed values """

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from typing import Optional, Union, TypedDict, TYPE_CHECKING

from eagerpage import exc
from eagerpage.typing import SAModelOrAlias
from eagerpage.util.funcy import first_mention

if TYPE_CHECKING:
    from eagerpage.engine.settings import AnnotationsMapping


class QueryObjectDict(TypedDict, total=False):
    """ Query Object as it comes from the client: JSON-like """
    filter: Optional[dict]
    sort: Optional[list[str]]
    annotate: Optional[list[str]]


@dataclass
class QueryObject:
    """ A parsed Query Object: filter, sort, annotate

    Parsing only checks the shape of the input. Names are looked up later, by resolve():
    each one becomes a model attribute or a registered annotation, or fails.

    Page number and page size are not here: they belong to the paginator.
    """
    filter: FilterQuery
    sort: SortQuery
    annotate: AnnotateQuery

    __slots__ = 'filter', 'sort', 'annotate'

    @classmethod
    def from_query_object(cls, query_object: QueryObjectDict):
        """ Parse a Query Object dict

        Raises:
            exc.QueryObjectError: unknown keys, or malformed values
        """
        unknown_keys = set(query_object) - set(QueryObjectDict.__annotations__)
        if unknown_keys:
            raise exc.QueryObjectError(f'Unsupported Query Object keys: {", ".join(sorted(unknown_keys))}')

        return QueryObject(
            filter=FilterQuery.from_query_object(
                filter=query_object.get('filter') or {},
            ),
            sort=SortQuery.from_query_object(
                sort=query_object.get('sort') or [],
            ),
            annotate=AnnotateQuery.from_query_object(
                annotate=query_object.get('annotate') or [],
            ),
        )

    @classmethod
    def ensure_query_object(cls, input: Optional[Union[QueryObject, QueryObjectDict]]) -> QueryObject:
        """ Get a Query Object from: None, a dict, or a QueryObject (returned as is) """
        if input is None:
            return cls.from_query_object({})  # type:ignore[typeddict-item]
        elif isinstance(input, QueryObject):
            return input
        elif isinstance(input, dict):
            return QueryObject.from_query_object(input)
        else:
            raise exc.QueryObjectError(f'QueryObject must be an object, "{type(input).__name__}" given')

    def resolve(self, Model: SAModelOrAlias, annotations: AnnotationsMapping = None):
        """ Resolve this query object: resolve references to actual columns and annotations of the given model
        """
        resolve.resolve_query_object(self, Model, annotations or {})
        return self

    def annotation_names(self, annotations: abc.Container[str]) -> list[str]:
        """ Get the names of annotations in effect

        These are annotations requested explicitly, plus annotations referenced by filter and sort:
        they have to be available to WHERE and ORDER BY.

        Args:
            annotations: The registry of known annotations
        """
        return first_mention(
            self.annotate.names,
            (name for name in self.filter.names if name in annotations),
            (name for name in self.sort.names if name in annotations),
        )

    def dict(self) -> QueryObjectDict:
        """ Export: the Query Object dict, normalized """
        return QueryObjectDict(
            filter=self.filter.export(),
            sort=self.sort.export(),
            annotate=self.annotate.export(),
        )


# Circular imports: these modules refer to QueryObject
from .filter import FilterQuery
from .sort import SortQuery
from .annotate import AnnotateQuery
from . import resolve
