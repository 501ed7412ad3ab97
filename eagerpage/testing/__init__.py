""" Tools for testing """

from .profile import timeit

from .recreate_tables import created_tables
from .recreate_tables import create_tables, drop_tables
from .table_data import insert

from .query_logger import QueryCounter, QueryLogger, ExpectedQueryCounter

from .stmt_text import collection2sql
from .stmt_text import stmt2sql, selected_columns
