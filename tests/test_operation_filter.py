import pytest
import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage import QueryObjectDict, QuerySettings, Collection
from eagerpage import exc
from eagerpage.operations import FilterOperation
from eagerpage.testing.table_data import insert
from eagerpage.testing.recreate_tables import created_tables

from .util.models import IdManyFieldsMixin, id_manyfields, define_orders_models, orders_annotations
from .util.test_queries import typical_test_sql_query_text, typical_test_query_results, typical_test_query_text_and_results


@pytest.mark.parametrize(('query_object', 'expected_query_lines',), [
    # Empty
    (dict(filter=None), []),
    (dict(filter={}), []),
    # Shortcut equality
    (dict(filter={'a': 1}), ["WHERE a.a = 1"]),
    (dict(filter={'a': None}), ["WHERE a.a IS NULL"]),
    # Scalar Operators
    (dict(filter={'a': {'$eq': 1}}), ["WHERE a.a = 1"]),
    (dict(filter={'a': {'$ne': 1}}), ["WHERE a.a IS DISTINCT FROM 1"]),
    (dict(filter={'a': {'$lt': 1}}), ["WHERE a.a < 1"]),
    (dict(filter={'a': {'$lte': 1}}), ["WHERE a.a <= 1"]),
    (dict(filter={'a': {'$gte': 1}}), ["WHERE a.a >= 1"]),
    (dict(filter={'a': {'$gt': 1}}), ["WHERE a.a > 1"]),
    (dict(filter={'a': {'$prefix': 'ex-'}}), ["WHERE (a.a LIKE ex- || '%')"]),
    (dict(filter={'a': {'$in': (1, 2, 3)}}), ["WHERE a.a IN (__[POSTCOMPILE_a_1])"]),
    (dict(filter={'a': {'$nin': (1, 2, 3)}}), ["WHERE (a.a NOT IN (__[POSTCOMPILE_a_1]))"]),
    (dict(filter={'a': {'$exists': 0}}), ["WHERE a.a IS NULL"]),
    (dict(filter={'a': {'$exists': 1}}), ["WHERE a.a IS NOT NULL"]),
    # Multiple scalar comparisons
    (dict(filter={'a': 1, 'b': 2}), ["WHERE a.a = 1 AND a.b = 2"]),
    (dict(filter={'a': {'$gt': 1, '$ne': 10}}), ["WHERE a.a > 1 AND a.a IS DISTINCT FROM 10"]),
    # Boolean operators
    (dict(filter={'$or': [{'a': 1}, {'b': 2}]}), ["WHERE (a.a = 1 OR a.b = 2)"]),
    (dict(filter={'$and': [{'a': 1}, {'b': 2}]}), ["WHERE (a.a = 1 AND a.b = 2)"]),
    (dict(filter={'$nor': [{'a': 1}, {'b': 2}]}), ["WHERE NOT (a.a = 1 OR a.b = 2)"]),
    (dict(filter={'$not': {'a': 1}}), ["WHERE a.a != 1"]),
    (dict(filter={'$not': {'a': 1, 'b': 2}}), ["WHERE NOT (a.a = 1 AND a.b = 2)"]),
])
def test_filter_sql(connection: sa.engine.Connection, query_object: QueryObjectDict, expected_query_lines: list[str]):
    """ Typical test: what SQL is generated """
    # Models
    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

    # Test
    typical_test_sql_query_text(query_object, Model, expected_query_lines)


@pytest.mark.parametrize(('query_object', 'expected_ids'), [
    # Empty input
    (dict(), [1, 2, 3]),
    # Filter by column
    (dict(filter={'id': 1}), [1]),
    (dict(filter={'id': {'$ne': 1}}), [2, 3]),
    (dict(filter={'id': {'$in': [1, 3]}}), [1, 3]),
    (dict(filter={'id': {'$nin': [1, 3]}}), [2]),
    (dict(filter={'a': {'$prefix': 'm-2'}}), [2]),
    (dict(filter={'state': {'$exists': 1}}), [1, 2]),
    (dict(filter={'state': {'$exists': 0}}), [3]),
    # Boolean
    (dict(filter={'$or': [{'id': 1}, {'id': 3}]}), [1, 3]),
    (dict(filter={'$nor': [{'id': 1}, {'id': 3}]}), [2]),
    (dict(filter={'$not': {'state': 'paid'}}), [2]),
])
def test_filter_results(connection: sa.engine.Connection, query_object: QueryObjectDict, expected_ids: list[int]):
    """ Typical test: real data, real query, real results """
    # Models
    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

        state = sa.Column(sa.String)

    # Data
    with created_tables(connection, Base):
        # Insert some rows
        insert(connection, Model,
            id_manyfields('m', 1, state='paid'),
            id_manyfields('m', 2, state='draft'),
            id_manyfields('m', 3, state=None),
        )

        # Test
        typical_test_query_results(connection, {'sort': ['id'], **query_object}, Model, expected_ids)


def test_filter_by_annotation(connection: sa.engine.Connection):
    """ Test: filter by an annotation that was not requested """
    # Models
    Base = sa.orm.declarative_base()
    Order, Item = define_orders_models(Base)
    settings = QuerySettings(annotations=orders_annotations(Order, Item))

    # Data
    with created_tables(connection, Base):
        insert(connection, Order, *(id_manyfields('o', n) for n in (1, 2, 3)))
        insert(connection, Item,
            id_manyfields('i', 1, order_id=1, amount=10),
            id_manyfields('i', 2, order_id=2, amount=100),
            id_manyfields('i', 3, order_id=3, amount=50),
            id_manyfields('i', 4, order_id=3, amount=50),
        )

        # Test: the annotation goes into WHERE of the count statement, and into the projection of the narrow statement
        typical_test_query_text_and_results(
            connection,
            dict(filter={'total_amount': {'$gte': 100}}, sort=['id']),
            Order,
            [
                'SELECT count(*) AS count_1',
                'WHERE (SELECT coalesce(sum(i.amount), 0)',
                'AS total_amount',
            ],
            [2, 3],
            settings,
        )


def test_filter_errors():
    """ Test: invalid filters """
    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

    # Invalid structure
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': 'a'}, Model)
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': {'a': {'eq': 1}}}, Model)
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': {'$or': {'a': 1}}}, Model)
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': {'$or': [1, 2]}}, Model)
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': {'$not': [{'a': 1}]}}, Model)

    # Invalid operators are reported when the statement is built
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': {'a': {'$regex': '.*'}}}, Model).narrow_statement()
    with pytest.raises(exc.QueryObjectError):
        Collection({'filter': {'a': {'$in': 1}}}, Model).narrow_statement()

    # Unknown field, nested
    with pytest.raises(exc.InvalidColumnError):
        Collection({'filter': {'$or': [{'nonexistent': 1}]}}, Model)


def test_filter_custom_operator(connection: sa.engine.Connection, monkeypatch: pytest.MonkeyPatch):
    """ Test: add a custom operator """
    monkeypatch.setattr(FilterOperation, 'SCALAR_OPERATORS', dict(FilterOperation.SCALAR_OPERATORS))
    FilterOperation.add_scalar_operator('$suffix', lambda col, val: col.endswith(val))

    Base = sa.orm.declarative_base()

    class Model(IdManyFieldsMixin, Base):
        __tablename__ = 'a'

    with created_tables(connection, Base):
        insert(connection, Model, *(id_manyfields('m', n) for n in (1, 2, 3)))
        typical_test_query_results(connection, {'filter': {'id': {'$gt': 1}, 'a': {'$suffix': 'a'}}, 'sort': ['id']}, Model, [2, 3])
