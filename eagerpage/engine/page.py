""" Page: records of one page, with pagination metadata """

from __future__ import annotations

from collections import abc
from typing import Any, Optional, TYPE_CHECKING

from eagerpage.typing import SARecord

if TYPE_CHECKING:
    from .paginator import EagerPaginator


class Page(abc.Sequence):
    """ A page of records

    Behaves like a list of records. Also knows its place among other pages.

    Example:
        page = paginator.page(2)
        for order in page:
            ...
        page.has_next()
    """
    # Records of this page, in the order defined by the sort
    object_list: list[SARecord]

    # Computed values for every record: annotations & raw columns.
    # Aligned with `object_list`: annotations[i] belongs to object_list[i]
    annotations: list[dict[str, Any]]

    # Page number, 1-based
    number: int

    # The paginator this page comes from
    paginator: EagerPaginator

    def __init__(self, object_list: list[SARecord], number: int, paginator: EagerPaginator, annotations: Optional[list[dict[str, Any]]] = None):
        self.object_list = object_list
        self.number = number
        self.paginator = paginator
        self.annotations = annotations if annotations is not None else [{} for _ in object_list]
        assert len(self.annotations) == len(self.object_list), (
            f'Page {number}: {len(self.object_list)} records, but {len(self.annotations)} sets of computed values. '
            f'A customize_results handler must keep the number and the order of records'
        )

    __slots__ = 'object_list', 'annotations', 'number', 'paginator'

    def __repr__(self):
        return f'<Page {self.number} of {self.paginator.num_pages}>'

    def __len__(self):
        return len(self.object_list)

    def __getitem__(self, index):
        if not isinstance(index, (int, slice)):
            raise TypeError(f'Page indices must be integers or slices, not {type(index).__name__}.')
        return self.object_list[index]

    @property
    def total_count(self) -> int:
        """ The total number of matching records, on all pages """
        return self.paginator.count

    @property
    def num_pages(self) -> int:
        """ The total number of pages """
        return self.paginator.num_pages

    def has_next(self) -> bool:
        return self.number < self.paginator.num_pages

    def has_previous(self) -> bool:
        return self.number > 1

    def has_other_pages(self) -> bool:
        return self.has_previous() or self.has_next()

    def next_page_number(self) -> int:
        """ Get the number of the next page

        Raises:
            exc.EmptyPage: this is the last page
        """
        return self.paginator.validate_number(self.number + 1)

    def previous_page_number(self) -> int:
        """ Get the number of the previous page

        Raises:
            exc.EmptyPage: this is the first page
        """
        return self.paginator.validate_number(self.number - 1)

    def start_index(self) -> int:
        """ 1-based index of the first record on this page. 0 if there are no records at all """
        if self.paginator.count == 0:
            return 0
        return (self.paginator.per_page * (self.number - 1)) + 1

    def end_index(self) -> int:
        """ 1-based index of the last record on this page

        The last page may have merged orphans: it ends with the last record.
        """
        if self.number == self.paginator.num_pages:
            return self.paginator.count
        return self.number * self.paginator.per_page

    def meta(self) -> dict:
        """ Pagination metadata, JSON-friendly

        Example:
            {'page': 2, 'per_page': 10, 'count': 25, 'num_pages': 3, 'has_next': True, 'has_previous': True}
        """
        return {
            'page': self.number,
            'per_page': self.paginator.per_page,
            'count': self.paginator.count,
            'num_pages': self.paginator.num_pages,
            'has_next': self.has_next(),
            'has_previous': self.has_previous(),
        }
