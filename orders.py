"""
Order placement.

An order is accepted only if every line can be satisfied. Stock for all lines
is taken together through the catalog, the lines are priced at that moment,
and the buyer's cart is dropped once the order is in the log.
"""
import itertools
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

from carts import CartService
from catalog import CatalogStore
from errors import InvalidRequest
from schemas import CENTS, Order, OrderItemBody, OrderLine

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, catalog: CatalogStore, carts: CartService):
        self.catalog = catalog
        self.carts = carts
        self._orders: List[Order] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def place_order(self, user_id: Optional[int], items: Optional[Sequence[OrderItemBody]],
                    shipping_address: Optional[str] = None) -> Order:
        if not user_id or not items:
            raise InvalidRequest("userId and items are required")

        requested = []
        for item in items:
            if item.product_id is None or item.quantity is None or item.quantity <= 0:
                raise InvalidRequest("Each item needs a productId and a positive quantity")
            requested.append((item.product_id, item.quantity))

        products = self.catalog.reserve(requested)

        lines = []
        total = Decimal("0")
        for product, (_, quantity) in zip(products, requested):
            lines.append(OrderLine(product_id=product.id, name=product.name,
                                   price=product.price, quantity=quantity))
            total += product.price * quantity

        with self._lock:
            order = Order(
                id=next(self._ids),
                user_id=user_id,
                items=lines,
                total=total.quantize(CENTS),
                shipping_address=shipping_address,
                created_at=datetime.now(timezone.utc),
            )
            self._orders.append(order)

        self.carts.clear(user_id)
        logger.info("Order %s placed for user %s, total %s", order.id, user_id, order.total)
        return order

    def orders_for_user(self, user_id: int) -> List[Order]:
        with self._lock:
            return [o for o in self._orders if o.user_id == user_id]
