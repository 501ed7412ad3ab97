from importlib.metadata import version as _version

__version__ = _version('eagerpage')

from . import exc
from . import query_object

from .query_object import QueryObject, QueryObjectDict
from .operations import Extra

from .engine import Collection, EagerPaginator, Page, paginate
from .engine.settings import QuerySettings, InvalidPagePolicy
