import pytest
import sqlalchemy as sa
import sqlalchemy.orm

from eagerpage import QueryObject, exc

from .util.models import define_orders_models, orders_annotations


def test_query_object_parse_export():
    """ Test: parse a Query Object, export it back """
    query = QueryObject.from_query_object({
        'filter': {
            '$or': [
                {'state': 'paid'},
                {'state': {'$in': ['draft', 'new']}},
            ],
            'total_amount': {'$gt': 100, '$lt': 1000},
        },
        'sort': ['total_amount-', 'id'],
        'annotate': ['n_items'],
    })
    assert query.dict() == query_object(
        filter={
            '$or': [
                {'state': {'$eq': 'paid'}},
                {'state': {'$in': ['draft', 'new']}},
            ],
            'total_amount': {'$gt': 100, '$lt': 1000},
        },
        sort=['total_amount-', 'id+'],
        annotate=['n_items'],
    )

    # Names
    assert query.filter.names == ('state', 'total_amount')
    assert query.sort.names == ('total_amount', 'id')
    assert query.annotate.names == ('n_items',)
    assert 'id' in query.sort
    assert 'state' not in query.sort

    # $not
    query = QueryObject.from_query_object({'filter': {'$not': {'a': 1}}})
    assert query.dict() == query_object(filter={'$not': {'a': {'$eq': 1}}})


def test_ensure_query_object():
    """ Test: construct Query Objects from any input """
    # None
    assert QueryObject.ensure_query_object(None).dict() == query_object()

    # Dict
    assert QueryObject.ensure_query_object({'sort': ['a-']}).dict() == query_object(sort=['a-'])

    # QueryObject
    query = QueryObject.from_query_object({})
    assert QueryObject.ensure_query_object(query) is query

    # Anything else
    with pytest.raises(exc.QueryObjectError):
        QueryObject.ensure_query_object([])

    # Unknown keys are not silently ignored
    with pytest.raises(exc.QueryObjectError):
        QueryObject.from_query_object({'select': ['a']})  # type: ignore[typeddict-item]

    # Invalid annotate
    with pytest.raises(exc.QueryObjectError):
        QueryObject.from_query_object({'annotate': 'n_items'})  # type: ignore[typeddict-item]


def test_annotation_names():
    """ Test: annotations in effect are the requested ones plus those used by filter and sort """
    Base = sa.orm.declarative_base()
    Order, Item = define_orders_models(Base)
    annotations = orders_annotations(Order, Item)

    # Nothing requested
    query = QueryObject.from_query_object({'filter': {'state': 'paid'}, 'sort': ['id']})
    assert query.annotation_names(annotations) == []

    # Requested; referenced by filter; referenced by sort. First mention order, no duplicates
    query = QueryObject.from_query_object({
        'annotate': ['n_items'],
        'filter': {'$or': [{'total_amount': {'$gt': 0}}, {'n_items': 0}]},
        'sort': ['total_amount-'],
    })
    assert query.annotation_names(annotations) == ['n_items', 'total_amount']

    # Sort only
    query = QueryObject.from_query_object({'sort': ['state', 'total_amount-']})
    assert query.annotation_names(annotations) == ['total_amount']


def test_resolve():
    """ Test: resolve names against a model """
    Base = sa.orm.declarative_base()
    Order, Item = define_orders_models(Base)
    annotations = orders_annotations(Order, Item)

    # Columns and annotations
    query = QueryObject.from_query_object({
        'annotate': ['n_items'],
        'filter': {'state': 'paid', 'total_amount': {'$gt': 0}},
        'sort': ['total_amount-', 'id'],
    }).resolve(Order, annotations)
    assert [type(f.handler).__name__ for f in query.sort.fields] == ['AnnotationHandler', 'ColumnHandler']
    assert type(query.annotate.fields['n_items'].handler).__name__ == 'AnnotationHandler'

    # Unknown annotation
    with pytest.raises(exc.InvalidAnnotationError):
        QueryObject.from_query_object({'annotate': ['state']}).resolve(Order, annotations)
    with pytest.raises(exc.InvalidAnnotationError):
        QueryObject.from_query_object({'annotate': ['unknown']}).resolve(Order, annotations)

    # Relationships are not columns
    with pytest.raises(exc.InvalidColumnError):
        QueryObject.from_query_object({'sort': ['items']}).resolve(Order, annotations)


def query_object(filter={}, sort=[], annotate=[]) -> dict:
    return {'filter': filter, 'sort': sort, 'annotate': annotate}
