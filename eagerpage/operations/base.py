from __future__ import annotations

import sqlalchemy as sa
from typing import TYPE_CHECKING

from eagerpage.query_object.query_object import QueryObject
from eagerpage.typing import SAModelOrAlias


if TYPE_CHECKING:
    from eagerpage.engine.collection import Collection
    from eagerpage.engine.settings import QuerySettings


class Operation:
    """ An operation: one part of the Query Object applied to a statement """
    query: QueryObject
    target_Model: SAModelOrAlias
    settings: QuerySettings

    def __init__(self, query: QueryObject, target_Model: SAModelOrAlias, settings: QuerySettings):
        self.query = query
        self.target_Model = target_Model
        self.settings = settings

    def for_query(self, collection: Collection):
        """ Prepare for the collection. Called once, right after __init__()

        Operations must not keep a reference to the collection: it owns them.
        """
        return self

    __slots__ = 'query', 'target_Model', 'settings'

    def apply_to_statement(self, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Get the statement with this operation applied """
        raise NotImplementedError
