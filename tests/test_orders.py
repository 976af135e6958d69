import threading
from decimal import Decimal

import pytest

from carts import CartService
from catalog import CatalogStore
from errors import InsufficientStock, InvalidRequest, NotFound
from orders import OrderService
from schemas import OrderItemBody


@pytest.fixture
def orders():
    catalog = CatalogStore()
    return OrderService(catalog, CartService(catalog))


def lines(*pairs):
    return [OrderItemBody(product_id=p, quantity=q) for p, q in pairs]


def test_running_shoes_example(orders):
    orders.carts.add_item(7, 3, 2)
    assert orders.carts.get_cart(7).total == Decimal("179.98")

    order = orders.place_order(7, lines((3, 2)), "123 Main St")

    assert order.total == Decimal("179.98")
    assert order.model_dump(mode="json", by_alias=True)["total"] == "179.98"
    assert order.status == "pending"
    assert order.shipping_address == "123 Main St"
    assert orders.catalog.get(3).stock == 98
    assert orders.carts.get_cart(7).items == []


def test_total_matches_lines_and_stock_drops(orders):
    before = {p.id: p.stock for p in orders.catalog.list()}
    order = orders.place_order(1, lines((1, 3), (5, 2), (6, 1)))

    assert order.total == sum(line.price * line.quantity for line in order.items)
    for line in order.items:
        assert orders.catalog.get(line.product_id).stock == before[line.product_id] - line.quantity


def test_insufficient_stock_changes_nothing(orders):
    orders.carts.add_item(1, 2, 1)
    with pytest.raises(InsufficientStock, match="Insufficient stock for Coffee Maker"):
        orders.place_order(1, lines((1, 3), (4, 25)))
    assert orders.catalog.get(1).stock == 50
    assert orders.catalog.get(4).stock == 20
    assert orders.carts.get_cart(1).items != []
    assert orders.orders_for_user(1) == []


def test_unknown_product_changes_nothing(orders):
    with pytest.raises(NotFound, match="Product 99 not found"):
        orders.place_order(1, lines((1, 3), (99, 1)))
    assert orders.catalog.get(1).stock == 50


@pytest.mark.parametrize("user_id, items", [(None, [(1, 1)]), (1, []), (1, None)])
def test_requires_user_and_items(orders, user_id, items):
    with pytest.raises(InvalidRequest):
        orders.place_order(user_id, lines(*items) if items else items)


def test_rejects_bad_quantity(orders):
    with pytest.raises(InvalidRequest):
        orders.place_order(1, lines((1, 0)))


def test_price_snapshot_survives_price_change(orders):
    order = orders.place_order(1, lines((3, 1)))
    orders.catalog.get(3).price = Decimal("1.00")
    assert order.items[0].price == Decimal("89.99")
    assert orders.orders_for_user(1)[0].total == Decimal("89.99")


def test_cart_cleared_even_if_contents_differ(orders):
    orders.carts.add_item(2, 5, 1)
    orders.place_order(2, lines((6, 1)))
    assert orders.carts.get_cart(2).items == []


def test_ids_increase_and_orders_are_per_user(orders):
    first = orders.place_order(1, lines((1, 1)))
    second = orders.place_order(2, lines((1, 1)))
    third = orders.place_order(1, lines((2, 1)))
    assert first.id < second.id < third.id
    assert [o.id for o in orders.orders_for_user(1)] == [first.id, third.id]
    assert orders.orders_for_user(3) == []


def test_concurrent_orders_do_not_oversell(orders):
    # Coffee Maker has 20 in stock; 40 buyers each want one.
    results = []

    def buy(user_id):
        try:
            orders.place_order(user_id, lines((4, 1)))
            results.append(True)
        except InsufficientStock:
            results.append(False)

    threads = [threading.Thread(target=buy, args=(n,)) for n in range(1, 41)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 20
    assert orders.catalog.get(4).stock == 0
