""" Operations that implement Query Object operations

* annotate: attach computed values
* filter: filter conditions
* sort: define the order
* extra: raw SQL clauses
* skiplimit: restrict to a window of rows
"""

from .annotate import AnnotateOperation
from .filter import FilterOperation
from .sort import SortOperation
from .extra import ExtraOperation, Extra
from .skiplimit import SkipLimitOperation
