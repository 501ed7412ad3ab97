import sqlalchemy as sa

# Manyfields: a helper/mixin to have many fields at once


class ManyFieldsMixin:
    """ A mixin with many columns """
    a = sa.Column(sa.String)
    b = sa.Column(sa.String)
    c = sa.Column(sa.String)
    d = sa.Column(sa.String)


def manyfields(prefix: str, n: int):
    """ Make a dict for a ManyFields object

    Example:
        Order(
            id=1,
            **manyfields('order', 1),
        )
        => Order(id=1, a='order-1-a', b='order-1-b', c='order-1-c', d='order-1-d')
    """
    return {
        k: f'{prefix}-{n}-{k}'
        for k in 'abcd'
    }


class IdManyFieldsMixin(ManyFieldsMixin):
    """ A mixin with many columns and an id primary key """
    id = sa.Column(sa.Integer, primary_key=True)


def id_manyfields(prefix: str, id: int, **extra):
    """ Make a dict for a ManyFields object that also has an id

    Example:
        Order(**id_manyfields('order', 1, state='paid'))
        => Order(id=1, a='order-1-a', b='order-1-b', c='order-1-c', d='order-1-d', state='paid')
    """
    return {
        'id': id,
        **manyfields(prefix, id),
        **extra
    }


def define_orders_models(Base):
    """ Define the Order and Item models on a declarative base

    An Order has many Items. Orders have a `total_amount` annotation: see `orders_annotations()`.

    Returns:
        (Order, Item)
    """
    class Order(IdManyFieldsMixin, Base):
        __tablename__ = 'o'

        state = sa.Column(sa.String)
        items = sa.orm.relationship(lambda: Item, back_populates='order')

    class Item(IdManyFieldsMixin, Base):
        __tablename__ = 'i'

        order_id = sa.Column(sa.ForeignKey(Order.id))
        amount = sa.Column(sa.Integer)
        order = sa.orm.relationship(Order, back_populates='items')

    return Order, Item


def orders_annotations(Order, Item) -> dict:
    """ Annotations for the Order model """
    return {
        # Sum of all items' amounts
        'total_amount': lambda Model: (
            sa.select(sa.func.coalesce(sa.func.sum(Item.amount), 0))
            .where(Item.order_id == Model.id)
            .scalar_subquery()
        ),
        # The number of items
        'n_items': lambda Model: (
            sa.select(sa.func.count(Item.id))
            .where(Item.order_id == Model.id)
            .scalar_subquery()
        ),
    }
