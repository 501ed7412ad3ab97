""" Paginate a collection: everything needed to do it

Overview:

* Collection binds a Query Object to a model and builds statements: narrow, window, fetch, count
* EagerPaginator runs these statements to make pages
* Page is what you get
"""

from .settings import QuerySettings, InvalidPagePolicy

from .collection import Collection
from .collection import CustomizeResultsCallable, CustomizeStatementCallable
from .loader import RecordsLoaderBase, DictRecordsLoader, InstanceRecordsLoader
from .page import Page
from .paginator import EagerPaginator, paginate, reorder_records
