import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Optional

from catalog import CatalogStore
from errors import InsufficientStock, NotFound, ValidationError
from schemas import CENTS, Cart, CartItem, CartLine, CartView

logger = logging.getLogger(__name__)


class CartService:
    """
    Per-user carts. Every operation on one user's cart holds that user's lock.

    A user has a lock exactly while they have a cart, so reads for users
    without a cart allocate nothing.
    """

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog
        self._carts: Dict[int, Cart] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, user_id: int, create: bool = False):
        """Hold the user's lock and yield True, or yield False if they have none."""
        while True:
            with self._locks_guard:
                lock = self._locks.get(user_id)
                if lock is None and create:
                    lock = self._locks[user_id] = threading.Lock()
            if lock is None:
                yield False
                return
            with lock:
                # clear() may have retired this lock while we waited on it
                with self._locks_guard:
                    current = self._locks.get(user_id)
                if current is lock:
                    yield True
                    return

    def add_item(self, user_id: Optional[int], product_id: Optional[int],
                 quantity: Optional[int]) -> CartView:
        if not user_id or not product_id or quantity is None:
            raise ValidationError("userId, productId, and quantity are required")
        if quantity <= 0:
            raise ValidationError("quantity must be a positive integer")

        product = self.catalog.get(product_id)
        if product.stock < quantity:
            raise InsufficientStock("Insufficient stock")

        with self._locked(user_id, create=True):
            cart = self._carts.get(user_id)
            if cart is None:
                cart = Cart(user_id=user_id)
                self._carts[user_id] = cart
            for item in cart.items:
                if item.product_id == product_id:
                    item.quantity += quantity
                    break
            else:
                cart.items.append(CartItem(product_id=product_id, quantity=quantity))
            return self._view(cart)

    def get_cart(self, user_id: int) -> CartView:
        with self._locked(user_id) as held:
            cart = self._carts.get(user_id) if held else None
            if cart is None:
                return CartView(user_id=user_id)
            return self._view(cart)

    def remove_item(self, user_id: int, product_id: int) -> CartView:
        with self._locked(user_id) as held:
            cart = self._carts.get(user_id) if held else None
            if cart is None:
                raise NotFound("Cart not found")
            cart.items = [i for i in cart.items if i.product_id != product_id]
            return self._view(cart)

    def clear(self, user_id: int) -> None:
        with self._locked(user_id) as held:
            if not held:
                return
            self._carts.pop(user_id, None)
            with self._locks_guard:
                del self._locks[user_id]
            logger.debug("Cleared cart for user %s", user_id)

    def _view(self, cart: Cart) -> CartView:
        lines = []
        total = Decimal("0")
        for item in cart.items:
            product = self.catalog.get(item.product_id)
            lines.append(CartLine(product_id=item.product_id, quantity=item.quantity,
                                  product=product.model_copy()))
            total += product.price * item.quantity
        return CartView(user_id=cart.user_id, items=lines, total=total.quantize(CENTS))
