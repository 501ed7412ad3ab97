""" Collection: a queryable collection of model rows, described by a Query Object

This is what the paginator works with. A Collection knows how to build every statement that eager pagination needs:

* the narrow statement: primary keys and annotations, filtered and sorted
* the window statement: the narrow statement restricted to a range of rows
* the fetch statement: full records by primary key, nothing else
* the count statement: the number of matching rows
"""

from __future__ import annotations

from collections import abc
from contextlib import contextmanager
from functools import partial
from typing import Any, Optional, Union

import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage import exc, operations, sainfo
from eagerpage.query_object import QueryObject, QueryObjectDict
from eagerpage.query_object.resolve import resolve_query_object
from eagerpage.operations.extra import Extra
from eagerpage.sainfo.models import unaliased_class
from eagerpage.typing import SAModelOrAlias, SAConnectable, SARecord, PrimaryKey

from .loader import RecordsLoaderBase, DictRecordsLoader, InstanceRecordsLoader
from .settings import QuerySettings


class Collection:
    """ Collection: a Query Object bound to a model

    It initiates SqlAlchemy Core Statements (`sa.Select`) and lets every operation modify them (annotate, filter, sort, extra).
    Loader objects fetch full records.

    Example:
        collection = Collection({'filter': {'state': 'paid'}, 'sort': ['total_amount-']}, models.Order, settings)
    """
    # Parsed and resolved Query Object
    query: QueryObject

    # Model or aliased class whose rows are paginated
    Model: SAModelOrAlias

    # Settings: annotations, page sizes, hooks
    settings: QuerySettings

    # Mutation counter.
    # Every change that may affect the set of matching rows increments it.
    # Used by the paginator to tell whether its cached count is still valid.
    revision: int

    # Hooks that get every narrow and count statement last: handler(collection, stmt) -> stmt
    # Append to it. A hook runs for the count statement too: it must not rely on selected columns.
    # Example: row-level security
    #   @collection.customize_statements.append
    #   def security_filter(collection: Collection, stmt: sa.sql.Select) -> sa.sql.Select:
    #       return stmt.where(collection.Model.owner_id == current_user.id)
    customize_statements: list[CustomizeStatementCallable]

    # Hooks that get the records of every page: handler(collection, records) -> records
    # Append to it. A hook must keep the number and the order of records.
    customize_results: list[CustomizeResultsCallable]

    def __init__(self, query: Union[QueryObject, QueryObjectDict, None], Model: SAModelOrAlias, settings: QuerySettings = None):
        """ Prepare a collection of Model rows described by the Query Object

        Args:
            query: QueryObject, its dict, or None
            Model: model or aliased class
            settings: defaults to DEFAULT_SETTINGS

        Raises:
            exc.InvalidColumnError: a name is neither a column nor an annotation
            exc.InvalidAnnotationError: "annotate" names an unregistered annotation
            exc.QueryObjectError: malformed Query Object
        """
        self.query = QueryObject.ensure_query_object(query)
        self.Model = Model
        self.settings = settings or self.DEFAULT_SETTINGS
        self.revision = 0

        # Additional criteria, added with filter()
        self._criteria: list[sa.sql.ColumnElement] = []

        # Customization handlers
        self.customize_statements = [self.settings.customize_statement]
        self.customize_results = [self.settings.customize_result]

        # Annotations must not hide model attributes: records would get confusing keys
        self._check_annotation_names()

        # Init operations
        self.annotate_op = self.AnnotateOperation(self.query, Model, self.settings)
        self.filter_op = self.FilterOperation(self.query, Model, self.settings)
        self.sort_op = self.SortOperation(self.query, Model, self.settings)
        self.extra_op = self.ExtraOperation(self.query, Model, self.settings)
        self.skiplimit_op = self.SkipLimitOperation(self.query, Model, self.settings)

        # Resolve every input
        resolve_query_object(self.query, self.Model, self.annotations)

        # Operations see resolved handlers only
        self.annotate_op.for_query(self)
        self.filter_op.for_query(self)
        self.sort_op.for_query(self)
        self.extra_op.for_query(self)
        self.skiplimit_op.for_query(self)

    __slots__ = (
        'query', 'Model', 'settings', 'revision', '_criteria',
        'customize_statements', 'customize_results',
        'annotate_op', 'filter_op', 'sort_op', 'extra_op', 'skiplimit_op',
    )

    @classmethod
    def prepare(cls, Model: type, settings: QuerySettings = None):
        """ Prepare to make Collections of the provided model

        Example:
            order_settings = eagerpage.QuerySettings(...)
            orders = Collection.prepare(models.Order, order_settings)
            collection = orders(query_object)
        """
        return partial(cls, Model=Model, settings=settings)

    # region Mutation

    def filter(self, *criteria: sa.sql.ColumnElement) -> Collection:
        """ Add SqlAlchemy criteria. They are ANDed with the Query Object filter

        Example:
            collection.filter(Order.owner_id == current_user.id)
        """
        self._criteria.extend(criteria)
        self.revision += 1
        return self

    def extra(self, select: Optional[dict[str, str]] = None, where: Optional[list[str]] = None, params: Optional[dict[str, Any]] = None) -> Collection:
        """ Add raw SQL clauses

        Args:
            select: Raw columns { name => SQL }, attached to records like annotations
            where: Raw predicates
            params: Bound parameters used by the raw SQL

        Example:
            collection.extra(where=["title ILIKE :q"], params={'q': '%sql%'})
        """
        self.extra_state = self.extra_state.merge(select=select, where=where, params=params)
        return self

    @property
    def extra_state(self) -> Extra:
        """ Raw SQL clauses currently attached to the collection """
        return self.extra_op.extra

    @extra_state.setter
    def extra_state(self, extra: Extra):
        self.extra_op.extra = extra
        self.revision += 1

    @contextmanager
    def suspended_extra_select(self) -> abc.Iterator[Extra]:
        """ Temporarily remove raw columns from the collection; restore them on exit

        Raw columns cannot go into an aggregate query: `SELECT count(*), <raw>` is not valid SQL.
        Raw predicates remain in place: they define which rows match.

        The very same Extra object is put back, whatever happens inside the block.
        This is not a mutation: `revision` does not change.

        Yields:
            The saved Extra
        """
        saved = self.extra_op.extra
        self.extra_op.extra = saved.without_select()
        try:
            yield saved
        finally:
            self.extra_op.extra = saved

    # endregion

    # region Introspection

    @property
    def annotations(self) -> dict:
        """ The registry of annotations this collection knows about """
        return dict(self.settings.annotations or {})

    @property
    def annotation_names(self) -> list[str]:
        """ Names of annotations in effect: requested, or referenced by filter and sort """
        return self.annotate_op.names

    @property
    def value_names(self) -> list[str]:
        """ Names of computed values the narrow statement selects after primary key columns: annotations, then raw columns """
        return self.annotation_names + list(self.extra_state.select)

    @property
    def primary_key_names(self) -> tuple[str, ...]:
        return sainfo.primary_key.primary_key_names(unaliased_class(self.Model))

    # endregion

    # region Statements

    def narrow_statement(self) -> sa.sql.Select:
        """ Build the narrow statement: primary key columns & computed values, filtered and sorted

        Full rows are not selected here. This is the query that pays the cost of filtering and sorting,
        and it's cheap because it projects as few columns as possible.
        """
        # Primary key columns go first: they identify the rows
        stmt = sa.select(*sainfo.primary_key.primary_key_attributes(self.Model)).select_from(self.Model)

        # Computed values: annotations, then raw columns. See: value_names
        stmt = self.annotate_op.apply_to_statement(stmt)
        stmt = self.extra_op.apply_select(stmt)

        # Narrow the set of rows, define their order
        stmt = self._apply_filters(stmt)
        stmt = self.sort_op.apply_to_statement(stmt)

        # Hooks
        return self._apply_customizations(stmt)

    def window_statement(self, bottom: int, top: int) -> sa.sql.Select:
        """ Build the narrow statement for a window of rows: [bottom, top) """
        # Apply `skiplimit` last: nothing should be applied after LIMIT
        self.skiplimit_op.window(bottom, top)
        return self.skiplimit_op.apply_to_statement(self.narrow_statement())

    def fetch_statement(self, ids: abc.Sequence[PrimaryKey], connection: SAConnectable = None) -> sa.sql.Select:
        """ Build the statement that fetches full records by primary keys

        No filtering, no sorting, no annotations: the set of rows is already known.

        Args:
            ids: Primary key tuples
            connection: The connection this statement will be executed with. Chooses the loader.
        """
        return self.loader_for(connection).statement(ids)

    def count_statement(self) -> sa.sql.Select:
        """ Build the statement that counts matching rows

        Only the things that may change the number of matching rows are applied: no sorting, no annotation columns.
        Annotations referenced by the filter end up in WHERE, as they should.

        NOTE: raw columns (Extra.select) would make the statement invalid. Use `suspended_extra_select()`.
        """
        # Prepare the statement
        stmt = sa.select(sa.func.count()).select_from(self.Model)

        # Raw columns: the caller is responsible for suspending them
        stmt = self.extra_op.apply_select(stmt)

        # Whatever affects which rows match, nothing else
        stmt = self._apply_filters(stmt)

        # Hooks
        return self._apply_customizations(stmt)

    def _apply_filters(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Apply everything that narrows the set of rows: Query Object filter, criteria, raw predicates """
        stmt = self.filter_op.apply_to_statement(stmt)
        if self._criteria:
            stmt = stmt.where(*self._criteria)
        stmt = self.extra_op.apply_where(stmt)
        return stmt

    def _apply_customizations(self, stmt: sa.sql.Select) -> sa.sql.Select:
        for handler in self.customize_statements:
            stmt = handler(self, stmt)
        return stmt

    # endregion

    # region Execution

    def count(self, connection: SAConnectable) -> int:
        """ Execute the count statement and return the number of matching rows

        Raw columns are suspended while counting, and restored afterwards, even if counting fails.
        """
        with self.suspended_extra_select():
            res = connection.execute(self.count_statement())
            return res.scalar()  # type: ignore[return-value]

    def count_by_materializing(self, connection: SAConnectable) -> int:
        """ Count matching rows by loading every matching primary key

        Degraded mode: the cost is proportional to the number of matching rows.
        Only used when the aggregate count fails and QuerySettings.count_fallback is enabled.
        """
        res = connection.execute(self.narrow_statement())
        return len(res.all())

    def fetch_window(self, connection: SAConnectable, bottom: int, top: int) -> list[sa.engine.Row]:
        """ Execute the narrow statement for rows [bottom, top)

        Returns:
            Rows: primary key columns, then computed values. See: value_names
        """
        res = connection.execute(self.window_statement(bottom, top))
        return list(res)

    def fetch_by_ids(self, connection: SAConnectable, ids: abc.Sequence[PrimaryKey]) -> list[SARecord]:
        """ Fetch full records by primary key. The order is undefined. """
        loader = self.loader_for(connection)
        return loader.load_results(loader.statement(ids), connection)

    def loader_for(self, connection: Optional[SAConnectable]) -> RecordsLoaderBase:
        """ Choose a loader for the connection: ORM Session gets instances; anything else gets dicts """
        if isinstance(connection, sa.orm.Session):
            return self.InstanceRecordsLoader(self.Model, self.settings.load_options)
        else:
            return self.DictRecordsLoader(self.Model)

    def apply_customizations_to_results(self, records: list[SARecord]) -> list[SARecord]:
        """ Apply customization handlers to records of a page """
        for handler in self.customize_results:
            records = handler(self, records)
        return records

    # endregion

    def _check_annotation_names(self):
        """ Fail if an annotation has the same name as a model attribute """
        for name in self.annotations:
            if sainfo.columns.get_column_by_name(name, self.Model) is not None:
                raise exc.InvalidAnnotationError(sainfo.names.model_name(self.Model), name, where='annotations')

    # Default settings object
    DEFAULT_SETTINGS = QuerySettings()

    # Loaders. Subclass and replace to load records differently
    DictRecordsLoader = DictRecordsLoader
    InstanceRecordsLoader = InstanceRecordsLoader

    # Operations. Subclass and replace to change how a part of the Query Object is applied
    AnnotateOperation = operations.AnnotateOperation
    FilterOperation = operations.FilterOperation
    SortOperation = operations.SortOperation
    ExtraOperation = operations.ExtraOperation
    SkipLimitOperation = operations.SkipLimitOperation


# handler(collection, stmt) -> stmt
CustomizeStatementCallable = abc.Callable[[Collection, sa.sql.Select], sa.sql.Select]

# handler(collection, records) -> records
CustomizeResultsCallable = abc.Callable[[Collection, list[SARecord]], list[SARecord]]
