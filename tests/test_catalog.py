from decimal import Decimal

import pytest

from catalog import CatalogStore
from errors import InsufficientStock, NotFound


@pytest.fixture
def catalog():
    return CatalogStore()


def test_category_filter_includes_only_that_category(catalog):
    for product in catalog.list():
        matched = catalog.list(category=product.category)
        assert product in matched
        assert all(p.category == product.category for p in matched)


def test_category_filter_ignores_case(catalog):
    assert [p.id for p in catalog.list(category="sports")] == [3, 6]


def test_price_bounds_are_inclusive(catalog):
    ids = [p.id for p in catalog.list(min_price=Decimal("49.99"), max_price=Decimal("89.99"))]
    assert ids == [1, 3, 5]


def test_search_matches_name_or_description(catalog):
    assert [p.id for p in catalog.list(search="WATCH")] == [2]
    assert [p.id for p in catalog.list(search="laptop")] == [5]


def test_filters_combine(catalog):
    assert [p.id for p in catalog.list(category="Sports", search="mat")] == [6]
    assert catalog.list(category="Sports", max_price=Decimal("10")) == []


def test_get_unknown_product(catalog):
    with pytest.raises(NotFound):
        catalog.get(99)


def test_categories_in_first_seen_order(catalog):
    assert catalog.categories() == ["Electronics", "Sports", "Home & Kitchen", "Accessories"]


def test_reserve_decrements_every_line(catalog):
    catalog.reserve([(1, 5), (3, 2)])
    assert catalog.get(1).stock == 45
    assert catalog.get(3).stock == 98


def test_reserve_is_all_or_nothing(catalog):
    with pytest.raises(InsufficientStock, match="Coffee Maker"):
        catalog.reserve([(1, 5), (4, 21)])
    assert catalog.get(1).stock == 50
    assert catalog.get(4).stock == 20


def test_reserve_sums_repeated_lines(catalog):
    with pytest.raises(InsufficientStock):
        catalog.reserve([(4, 15), (4, 10)])
    assert catalog.get(4).stock == 20


def test_reserve_unknown_product_leaves_stock(catalog):
    with pytest.raises(NotFound, match="Product 42 not found"):
        catalog.reserve([(1, 1), (42, 1)])
    assert catalog.get(1).stock == 50


def test_custom_seed():
    catalog = CatalogStore([{"id": 9, "name": "Mug", "price": "5", "category": "Home", "stock": 1}])
    assert [p.name for p in catalog.list()] == ["Mug"]
