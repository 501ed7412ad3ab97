""" EagerPaginator: paginate a Collection in three queries

Paginating a query with LIMIT/OFFSET is expensive when rows are wide and have joined relations:
the database has to filter, sort, and skip full rows. EagerPaginator splits the work:

1. COUNT(*) the matching rows. Computed once per paginator.
2. The narrow query: SELECT primary keys (and annotations) with the filter, the sort, and the window.
   This query pays the cost of filtering and sorting, but it only projects a few columns.
3. The bulk fetch: SELECT full records WHERE primary key IN (...). No filter, no sort.
   Records are then put into the order captured by the narrow query.
"""

from __future__ import annotations

import logging
import math
from collections import abc
from contextlib import contextmanager, nullcontext
from typing import Any, Optional, Union

import sqlalchemy as sa

from eagerpage import exc
from eagerpage.query_object import QueryObject, QueryObjectDict
from eagerpage.sainfo.names import model_name
from eagerpage.typing import SAConnectable, SARecord, PrimaryKey

from .collection import Collection
from .page import Page
from .settings import InvalidPagePolicy, QuerySettings


logger = logging.getLogger(__name__)


class EagerPaginator:
    """ Eager Paginator: fetches pages of fully-loaded records without sorting full rows

    Example:
        collection = Collection({'sort': ['total_amount-']}, Order, settings)
        paginator = EagerPaginator(collection, connection, per_page=10, orphans=2)
        page = paginator.page(3)

    The paginator lives as long as a single request does: the total count is cached,
    and it's not supposed to be reused for another request.
    """
    # The collection to paginate
    collection: Collection

    # The connection (or Session) to run queries with
    connection: SAConnectable

    # The number of records per page
    per_page: int

    # The number of trailing records that would be merged into the previous page rather than left alone
    orphans: int

    # Whether the first page may be empty
    allow_empty_first_page: bool

    # Invalid page number policy for page()
    invalid_page: InvalidPagePolicy

    def __init__(self,
                 collection: Collection,
                 connection: SAConnectable,
                 per_page: Optional[int] = None,
                 orphans: Optional[int] = None,
                 allow_empty_first_page: Optional[bool] = None,
                 invalid_page: Optional[InvalidPagePolicy] = None):
        """ Prepare to paginate a collection

        Args:
            collection: The collection to paginate
            connection: Core Connection (records will be dicts) or ORM Session (records will be instances)
            per_page: The number of records per page. Default: QuerySettings.default_per_page
            orphans: Orphan tolerance. Default: QuerySettings.orphans
            allow_empty_first_page: Default: QuerySettings.allow_empty_first_page
            invalid_page: Invalid page number policy. Default: QuerySettings.invalid_page

        Raises:
            exc.InvalidPage: `per_page` or `orphans` are invalid
        """
        settings = collection.settings

        self.collection = collection
        self.connection = connection
        self.per_page = settings.get_final_per_page(per_page)  # type: ignore[assignment]
        self.orphans = settings.orphans if orphans is None else orphans
        self.allow_empty_first_page = settings.allow_empty_first_page if allow_empty_first_page is None else allow_empty_first_page
        self.invalid_page = InvalidPagePolicy(settings.invalid_page if invalid_page is None else invalid_page)

        # Validate
        if not isinstance(self.per_page, int) or self.per_page < 1:
            raise exc.InvalidPage(f'"per_page" must be a positive integer, {self.per_page!r} given')
        if not isinstance(self.orphans, int) or self.orphans < 0:
            raise exc.InvalidPage(f'"orphans" must be a non-negative integer, {self.orphans!r} given')

        # Count cache: (collection revision, count)
        self._count: Optional[tuple[int, int]] = None

    __slots__ = 'collection', 'connection', 'per_page', 'orphans', 'allow_empty_first_page', 'invalid_page', '_count'

    # region Counting

    @property
    def count(self) -> int:
        """ The total number of matching records

        Computed once and cached. If the collection is modified (e.g. filter() is called), it is counted again.
        """
        revision = self.collection.revision

        if self._count is None or self._count[0] != revision:
            self._count = (revision, self._count_rows())

        return self._count[1]

    def _count_rows(self) -> int:
        """ Count the matching rows: with an aggregate, or with the fallback when the aggregate fails """
        count_fallback = self.collection.settings.count_fallback

        try:
            # With the fallback enabled, a failed statement must not spoil the transaction:
            # some databases (Postgres) refuse further queries in a failed transaction
            with (savepoint(self.connection) if count_fallback else nullcontext()):
                return self.collection.count(self.connection)
        except sa.exc.SQLAlchemyError as e:
            if not count_fallback:
                raise exc.CannotAggregateError(f'Failed to count {model_name(self.collection.Model)} records: {e}') from e

            logger.warning(
                'Aggregate count failed for %s; counting by loading every matching primary key. Error: %s',
                model_name(self.collection.Model), e,
            )
            return self.collection.count_by_materializing(self.connection)

    @property
    def num_pages(self) -> int:
        """ The total number of pages """
        if self.count == 0 and not self.allow_empty_first_page:
            return 0

        hits = max(1, self.count - self.orphans)
        return math.ceil(hits / self.per_page)

    @property
    def page_range(self) -> range:
        """ 1-based range of page numbers, for iterating """
        return range(1, self.num_pages + 1)

    # endregion

    # region Pages

    def validate_number(self, number: Any) -> int:
        """ Validate the given 1-based page number

        Raises:
            exc.PageNotAnInteger: the number is not an integer
            exc.EmptyPage: the number is out of range
        """
        try:
            if isinstance(number, float) and not number.is_integer():
                raise ValueError
            if isinstance(number, bool):
                raise TypeError
            number = int(number)
        except (TypeError, ValueError) as e:
            raise exc.PageNotAnInteger(f'Page number is not an integer: {number!r}') from e

        if number < 1:
            raise exc.EmptyPage('Page number is less than 1')
        if number > self.num_pages:
            if number == 1 and self.allow_empty_first_page:
                pass
            else:
                raise exc.EmptyPage('That page contains no results')

        return number

    def clamp_number(self, number: Any) -> int:
        """ Get a valid page number, nearest to the given one

        Non-integers give the first page; numbers out of range give the first or the last page
        """
        try:
            return self.validate_number(number)
        except exc.PageNotAnInteger:
            return 1
        except exc.EmptyPage:
            # Below the range
            if _is_below_one(number):
                return 1
            # Beyond the range
            return max(self.num_pages, 1)

    def page(self, number: Any) -> Page:
        """ Get a page of records

        Invalid page numbers are handled according to the `invalid_page` policy

        Raises:
            exc.PageNotAnInteger: (policy: reject) the number is not an integer
            exc.EmptyPage: (policy: reject) the number is out of range
            exc.InconsistentResultError: records went missing between the queries
            exc.CannotAggregateError: the count failed
        """
        if self.invalid_page == InvalidPagePolicy.CLAMP:
            number = self.clamp_number(number)
        else:
            number = self.validate_number(number)

        return self._page(number)

    def get_page(self, number: Any) -> Page:
        """ Get a page of records. Never fails on invalid page numbers: uses the nearest valid page """
        return self._page(self.clamp_number(number))

    def _page(self, number: int) -> Page:
        # Window: [bottom, top)
        bottom, top = self.window(number)

        # Load
        records, values = self._fetch_records(bottom, top)
        records = self.collection.apply_customizations_to_results(records)

        # Done
        return self._get_page(records, number, values)

    def window(self, number: int) -> tuple[int, int]:
        """ Get the window of rows for a valid page number: [bottom, top)

        If what would remain after this page is within the orphan tolerance, it's merged into this page.
        """
        bottom = (number - 1) * self.per_page
        top = bottom + self.per_page
        if top + self.orphans >= self.count:
            top = self.count
        return bottom, max(bottom, top)

    def _fetch_records(self, bottom: int, top: int) -> tuple[list[SARecord], list[dict[str, Any]]]:
        """ Fetch records for the window [bottom, top): the narrow query, then the bulk fetch

        Returns:
            records: full records, in the order of the narrow query
            values: computed values for every record
        """
        # Empty window: nothing to load
        if top <= bottom:
            return [], []

        # Narrow query: primary keys & computed values, in the right order
        rows = self.collection.fetch_window(self.connection, bottom, top)
        ids, values = self._split_narrow_rows(rows)
        logger.debug('Page window [%d, %d) of %s: %d ids', bottom, top, model_name(self.collection.Model), len(ids))

        # Nothing matched? Someone must have deleted the rows since we counted them
        if not ids:
            return [], []

        # Bulk fetch: full records, in no particular order
        loader = self.collection.loader_for(self.connection)
        records = self.collection.fetch_by_ids(self.connection, ids)

        # Restore the order
        records = reorder_records(ids, records, loader.primary_key_of)

        # Attach computed values
        records = [
            loader.attach_values(record, record_values)
            for record, record_values in zip(records, values)
        ]
        return records, values

    def _split_narrow_rows(self, rows: list[sa.engine.Row]) -> tuple[list[PrimaryKey], list[dict[str, Any]]]:
        """ Split narrow rows into primary keys and computed values

        Every narrow row is: primary key columns, then computed values in the order of `value_names`
        """
        n_pk = len(self.collection.primary_key_names)
        value_names = self.collection.value_names

        ids = [tuple(row[:n_pk]) for row in rows]
        values = [dict(zip(value_names, row[n_pk:])) for row in rows]
        return ids, values

    def _get_page(self, records: list[SARecord], number: int, values: list[dict[str, Any]]) -> Page:
        """ Make a Page object

        Override to use a custom Page class
        """
        return Page(records, number, self, values)

    # endregion


def reorder_records(ids: abc.Sequence[PrimaryKey], records: abc.Iterable[SARecord], primary_key_of: abc.Callable[[SARecord], PrimaryKey]) -> list[SARecord]:
    """ Put records into the order of `ids`

    The order of rows returned by "WHERE id IN (...)" is undefined: it has to be restored explicitly.

    Raises:
        exc.InconsistentResultError: some ids have no record
    """
    by_id = {primary_key_of(record): record for record in records}

    missing = [id for id in ids if id not in by_id]
    if missing:
        raise exc.InconsistentResultError(missing)

    return [by_id[id] for id in ids]


@contextmanager
def savepoint(connection: SAConnectable):
    """ Run a block within a SAVEPOINT: roll back to it if the block fails """
    with connection.begin_nested():
        yield


def paginate(connection: SAConnectable,
             Model: type,
             query: Union[QueryObject, QueryObjectDict, None],
             page: Any = 1,
             per_page: Optional[int] = None,
             settings: QuerySettings = None,
             **paginator_kwargs) -> Page:
    """ Shortcut: get a page of records in one call

    Example:
        page = paginate(ssn, Order, {'sort': ['total_amount-']}, page=2, per_page=10, settings=order_settings)
    """
    collection = Collection(query, Model, settings)
    paginator = EagerPaginator(collection, connection, per_page=per_page, **paginator_kwargs)
    return paginator.page(page)


def _is_below_one(number: Any) -> bool:
    """ Is it a number below 1: int, float, Decimal, numeric string """
    try:
        return float(number) < 1
    except (TypeError, ValueError):
        return False
