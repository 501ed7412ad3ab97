from __future__ import annotations

import dataclasses
from collections import abc
from enum import Enum
from typing import Any, Optional, Union, TYPE_CHECKING

import sqlalchemy as sa

from eagerpage.typing import SAModelOrAlias, SARecord


if TYPE_CHECKING:
    from .collection import Collection


class InvalidPagePolicy(Enum):
    """ What to do when the requested page number is invalid """
    # Raise exc.InvalidPage
    REJECT = 'reject'

    # Use the nearest valid page: the first page for non-integers, the last page for numbers beyond the range
    CLAMP = 'clamp'


# Annotation definitions: { name => expression or callable(Model) -> expression }
AnnotationsMapping = abc.Mapping[str, Union[sa.sql.ColumnElement, abc.Callable[[SAModelOrAlias], sa.sql.ColumnElement]]]


@dataclasses.dataclass
class QuerySettings:
    """ Settings for Collection and EagerPaginator

    This object defines additional behavior: page sizes, orphans, annotations, statement customization, etc
    """
    # The `per_page` you get by default, if not specified
    default_per_page: Optional[int] = None

    # The max number of items per page, regardless of what's requested
    max_per_page: Optional[int] = None

    # The number of trailing items that may be merged into the previous page rather than left alone on the last one
    orphans: int = 0

    # Is the first page allowed to be empty? If not, an empty collection has no pages at all
    allow_empty_first_page: bool = True

    # What to do with invalid page numbers: reject, or clamp
    invalid_page: InvalidPagePolicy = InvalidPagePolicy.REJECT

    # When the aggregate COUNT(*) fails, count by loading all matching primary keys.
    # This is a degraded mode: it loads as many rows as there are matches. Off by default.
    count_fallback: bool = False

    # Annotations: computed values that can be attached to records, filtered and sorted by.
    # A mapping { name => expression }, where the value can optionally be a lambda(Model)
    annotations: Optional[AnnotationsMapping] = None

    # ORM loader options for the bulk fetch of full records. Only used with an ORM Session.
    # Example: [sa.orm.selectinload(Order.items)]
    load_options: abc.Sequence[Any] = ()

    # ### Callbacks for Collection and EagerPaginator
    # Collection and Operations will use these methods to apply the settings

    def get_final_per_page(self, per_page: Optional[int]) -> Optional[int]:
        """ Callback that fine-tunes the `per_page` of a paginator by applying default and max values

        Used by: the paginator to decide how many items to put on a page.
        """
        # Apply default
        if not per_page:
            per_page = self.default_per_page

        # Apply max
        if per_page and self.max_per_page:
            per_page = min(per_page, self.max_per_page)

        # Done
        return per_page

    def customize_statement(self, collection: Collection, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Callback that customizes query statements

        Used by: Collection to customize the narrow statement and the count statement.
        Not used for the bulk fetch of full records: it only loads rows by primary key.

        Default behavior: none
        You can override this method for custom behavior
        """
        return stmt

    def customize_result(self, collection: Collection, records: list[SARecord]) -> list[SARecord]:
        """ Callback that customizes page records

        Used by: EagerPaginator to customize records right before they are put into a Page.
        Records must keep their number and their order.

        Default behavior: none
        You can override this method for custom behavior
        """
        return records
