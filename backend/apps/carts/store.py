from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from django.db import IntegrityError

from apps.common import get_logger

from .binder import IdentityBinder
from .exceptions import SessionRequired
from .identity import Identity
from .locks import IdentityLock
from .models import Cart, CartState
from .protocols import CartItemRepositoryProtocol, CartRepositoryProtocol

logger = get_logger(__name__).bind(component="carts", layer="store")


class CartStore:
    """Loads the identity's cart and creates it only when something is written."""

    def __init__(
        self,
        carts: CartRepositoryProtocol,
        items: CartItemRepositoryProtocol,
        binder: IdentityBinder,
        locks: IdentityLock,
    ):
        self.carts = carts
        self.items = items
        self.binder = binder
        self.locks = locks
        self.logger = logger.bind(service="CartStore")

    @contextmanager
    def guard(self, identity: Identity, include_user: bool = False) -> Iterator[None]:
        with self.locks.hold(*identity.lock_keys(include_user=include_user)):
            yield

    def current(self, identity: Identity) -> Optional[Cart]:
        return self.binder.resolve(identity)

    def materialize(self, identity: Identity) -> Tuple[Cart, bool]:
        """Return ``(cart, created)``. Callers hold :meth:`guard` for ``identity``."""
        cart = self.binder.resolve(identity)
        if cart is not None:
            return self.binder.repair_user_binding(identity, cart), False
        if not identity.session_key:
            raise SessionRequired("A session is required to create a cart")
        fields = self.binder.binding_fields(identity)
        try:
            cart = self.carts.create(state=CartState.ACTIVE, **fields)
        except IntegrityError:
            # Another process won the insert for this session key.
            cart = self.binder.resolve(identity)
            if cart is None:
                raise
            self.logger.info(
                "Cart materialized by concurrent request",
                cart_id=cart.id,
                session_key=identity.session_key,
            )
            return cart, False
        self.logger.info(
            "Cart materialized",
            cart_id=cart.id,
            session_key=identity.session_key,
            user_id=fields.get("user_id"),
        )
        return cart, True

    def delete(self, cart: Cart) -> None:
        self.items.delete_for_cart(cart.id)
        self.carts.delete(cart)
        self.logger.info("Cart deleted", cart_id=cart.id)
