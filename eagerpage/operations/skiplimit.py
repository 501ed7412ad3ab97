from typing import Optional

import sqlalchemy as sa

from .base import Operation


class SkipLimitOperation(Operation):
    """ Skip/Limit: restrict the result set to a window of rows

    Unlike other operations, this one does not take its input from the Query Object:
    the window [bottom, top) is set by the paginator, page by page, with window().
    """
    __slots__ = 'skip', 'limit'

    # The number of rows to skip
    skip: Optional[int]

    # The number of rows to return
    limit: Optional[int]

    def for_query(self, collection):
        self.skip = None
        self.limit = None
        return self

    def window(self, bottom: int, top: int):
        """ Set the window of rows: [bottom, top) """
        assert 0 <= bottom <= top, f'Invalid window: [{bottom}, {top})'
        self.skip = bottom
        self.limit = top - bottom
        return self

    def apply_to_statement(self, stmt: sa.sql.Select) -> sa.sql.Select:
        skip, limit = self.skip, self.limit

        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        # Done
        return stmt
