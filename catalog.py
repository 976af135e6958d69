"""
Catalog store: the in-memory product list.

Products are seeded once per store and only ever change through `reserve`,
which is the single place stock goes down.
"""
import logging
import threading
from contextlib import ExitStack
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from errors import InsufficientStock, NotFound
from schemas import Product

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    {
        "id": 1,
        "name": "Wireless Headphones",
        "description": "High-quality Bluetooth headphones with noise cancellation",
        "price": "79.99",
        "category": "Electronics",
        "stock": 50,
        "image_path": "/public/images/wireless_headset.jpg",
    },
    {
        "id": 2,
        "name": "Smart Watch",
        "description": "Fitness tracker with heart rate monitor",
        "price": "199.99",
        "category": "Electronics",
        "stock": 30,
        "image_path": "/public/images/smart_watch.jpg",
    },
    {
        "id": 3,
        "name": "Running Shoes",
        "description": "Comfortable sports shoes for running",
        "price": "89.99",
        "category": "Sports",
        "stock": 100,
        "image_path": "/public/images/running_shoes.jpg",
    },
    {
        "id": 4,
        "name": "Coffee Maker",
        "description": "Automatic coffee machine with timer",
        "price": "129.99",
        "category": "Home & Kitchen",
        "stock": 20,
        "image_path": "/public/images/Coffee_Maker.jpg",
    },
    {
        "id": 5,
        "name": "Backpack",
        "description": "Water-resistant laptop backpack",
        "price": "49.99",
        "category": "Accessories",
        "stock": 75,
        "image_path": "/public/images/Backpack.jpg",
    },
    {
        "id": 6,
        "name": "Yoga Mat",
        "description": "Non-slip exercise mat",
        "price": "29.99",
        "category": "Sports",
        "stock": 150,
        "image_path": "/public/images/Yoga_Mat.jpg",
    },
]


class CatalogStore:
    def __init__(self, products: Optional[Iterable[dict]] = None):
        seed = DEMO_PRODUCTS if products is None else products
        self._products: Dict[int, Product] = {}
        self._locks: Dict[int, threading.Lock] = {}
        for data in seed:
            product = Product(**data)
            self._products[product.id] = product
            self._locks[product.id] = threading.Lock()

    def list(self, category: Optional[str] = None, min_price: Optional[Decimal] = None,
             max_price: Optional[Decimal] = None, search: Optional[str] = None) -> List[Product]:
        results = list(self._products.values())
        if category:
            results = [p for p in results if p.category.lower() == category.lower()]
        if min_price is not None:
            results = [p for p in results if p.price >= min_price]
        if max_price is not None:
            results = [p for p in results if p.price <= max_price]
        if search:
            needle = search.lower()
            results = [p for p in results
                       if needle in p.name.lower() or needle in p.description.lower()]
        return results

    def get(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def categories(self) -> List[str]:
        return list(dict.fromkeys(p.category for p in self._products.values()))

    def reserve(self, lines: List[Tuple[int, int]]) -> List[Product]:
        """
        Take `quantity` units of each `(product_id, quantity)` line, all or none.

        Every line is checked before any stock moves. The involved products
        stay locked (ascending id) for the whole check-and-decrement so two
        orders cannot both pass the check on the last units. Returns the
        products in line order.
        """
        products = []
        for product_id, _ in lines:
            product = self._products.get(product_id)
            if product is None:
                raise NotFound(f"Product {product_id} not found")
            products.append(product)

        wanted: Dict[int, int] = {}
        for product_id, quantity in lines:
            wanted[product_id] = wanted.get(product_id, 0) + quantity

        with ExitStack() as stack:
            for product_id in sorted(wanted):
                stack.enter_context(self._locks[product_id])
            for product in products:
                if product.stock < wanted[product.id]:
                    raise InsufficientStock(f"Insufficient stock for {product.name}")
            for product_id, quantity in wanted.items():
                self._products[product_id].stock -= quantity
        logger.debug("Reserved %s", wanted)
        return products
