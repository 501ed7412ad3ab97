import pytest
import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage import Collection
from eagerpage.testing.table_data import insert
from eagerpage.testing.recreate_tables import created_tables

from .util.models import IdManyFieldsMixin, id_manyfields
from .util.test_queries import assert_statement_lines


@pytest.mark.parametrize(('window', 'expected_query_lines', 'unexpected'), [
    # First page: no offset
    ((0, 10), ['ORDER BY a.id', 'LIMIT 10'], 'OFFSET'),
    # Other pages
    ((10, 20), ['LIMIT 10 OFFSET 10'], None),
    # Merged orphans: larger window
    ((10, 22), ['LIMIT 12 OFFSET 10'], None),
])
def test_skiplimit_sql(window: tuple[int, int], expected_query_lines: list[str], unexpected: str):
    """ Typical test: what SQL is generated """
    # Models
    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

    # Test
    collection = Collection(None, Model)
    sql = assert_statement_lines(collection.window_statement(*window), *expected_query_lines)
    if unexpected:
        assert unexpected not in sql

    # The narrow statement itself is not restricted
    assert 'LIMIT' not in assert_statement_lines(collection.narrow_statement())


@pytest.mark.parametrize(('window', 'expected_ids'), [
    ((0, 2), [1, 2]),
    ((2, 4), [3, 4]),
    ((4, 10), [5]),
    ((5, 5), []),
])
def test_skiplimit_results(connection: sa.engine.Connection, window: tuple[int, int], expected_ids: list[int]):
    """ Typical test: real data, real query, real results """
    # Models
    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

    # Data
    with created_tables(connection, Base):
        insert(connection, Model, *(id_manyfields('m', n) for n in range(1, 6)))

        # Test
        collection = Collection({'sort': ['id']}, Model)
        rows = collection.fetch_window(connection, *window)
        assert [row.id for row in rows] == expected_ids


def test_skiplimit_invalid_window():
    """ Test: windows must be valid """
    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

    collection = Collection(None, Model)
    with pytest.raises(AssertionError):
        collection.window_statement(10, 5)
