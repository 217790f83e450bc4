from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Mapping, Optional

from django.db import transaction

from apps.common import get_logger
from .binder import IdentityBinder
from .config import CartSettings
from .dtos import CartDTO, CartItemDTO, ProductRef
from .exceptions import InvalidQuantity, ItemNotInCart
from .identity import Identity
from .mappers import CartMapper
from .models import Cart
from .protocols import BuyableResolverProtocol, CartItemRepositoryProtocol
from .resolver import ItemResolver
from .store import CartStore
from .totals import ZERO, cart_total, item_count

logger = get_logger(__name__).bind(component="carts", layer="service")


class CartManager:
    """Public cart API; every call is scoped to an explicit ``Identity``.

    Queries never create anything and report a missing cart as empty.
    Mutations run under the identity's lock and inside a transaction;
    ``add_item`` is the only one that materializes a cart.
    """

    def __init__(
        self,
        *,
        store: CartStore,
        binder: IdentityBinder,
        resolver: ItemResolver,
        items: CartItemRepositoryProtocol,
        buyables: BuyableResolverProtocol,
        cart_mapper: CartMapper,
        settings: CartSettings,
    ):
        self.store = store
        self.binder = binder
        self.resolver = resolver
        self.items = items
        self.buyables = buyables
        self.cart_mapper = cart_mapper
        self.settings = settings
        self.logger = logger.bind(service="CartManager")

    # -- queries ---------------------------------------------------------

    def _lines(self, cart: Optional[Cart]):
        if cart is None:
            return []
        return list(self.items.list_for_cart(cart.id))

    def get_cart(self, identity: Identity) -> Optional[CartDTO]:
        cart = self.store.current(identity)
        if cart is None:
            return None
        return self.cart_mapper.to_dto(cart, self._lines(cart))

    def get_items(self, identity: Identity) -> List[CartItemDTO]:
        cart = self.store.current(identity)
        return self.cart_mapper.item_mapper.many_to_dto(self._lines(cart))

    def exists(self, identity: Identity) -> bool:
        return self.store.current(identity) is not None

    def does_not_exist(self, identity: Identity) -> bool:
        return not self.exists(identity)

    def item_count(self, identity: Identity) -> int:
        return item_count(self._lines(self.store.current(identity)))

    def is_empty(self, identity: Identity) -> bool:
        return self.item_count(identity) == 0

    def is_not_empty(self, identity: Identity) -> bool:
        return not self.is_empty(identity)

    def total(self, identity: Identity) -> Decimal:
        cart = self.store.current(identity)
        if cart is None:
            return ZERO
        return cart_total(self._lines(cart))

    def get_user(self, identity: Identity) -> Optional[int]:
        cart = self.store.current(identity)
        return cart.user_id if cart is not None else None

    # -- mutations -------------------------------------------------------

    def add_item(
        self,
        identity: Identity,
        ref: ProductRef,
        quantity: int = 1,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> CartItemDTO:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            self.logger.info("Rejected add with invalid quantity", quantity=quantity)
            raise InvalidQuantity(
                "Quantity must be a positive integer", quantity=quantity
            )
        ref = self.buyables.canonical(ref)
        buyable = self.buyables.resolve(ref)
        with self.store.guard(identity):
            with transaction.atomic():
                cart, created = self.store.materialize(identity)
                item, is_new = self.resolver.add(cart, ref, buyable, quantity, parameters)
        self.logger.info(
            "Item added",
            cart_id=cart.id,
            item_id=item.id,
            product=str(ref),
            quantity=quantity,
            new_line=is_new,
            new_cart=created,
        )
        return self.cart_mapper.item_mapper.to_dto(item)

    def remove_product(self, identity: Identity, ref: ProductRef) -> bool:
        ref = self.buyables.canonical(ref)
        with self.store.guard(identity):
            with transaction.atomic():
                cart = self.store.current(identity)
                if cart is None:
                    return False
                lines = self.items.list_for_product(cart.id, ref.type_name, ref.product_id)
                first = next(iter(lines), None)
                if first is None:
                    self.logger.debug("No line for product", cart_id=cart.id, product=str(ref))
                    return False
                self.items.delete(first)
        self.logger.info("Product removed", cart_id=cart.id, item_id=first.id, product=str(ref))
        return True

    def remove_item(self, identity: Identity, item_id: int) -> None:
        with self.store.guard(identity):
            with transaction.atomic():
                cart = self.store.current(identity)
                item = None
                if cart is not None:
                    item = self.items.get(id=item_id, cart_id=cart.id)
                if item is None:
                    self.logger.warning(
                        "Item removal rejected: not in cart",
                        item_id=item_id,
                        cart_id=cart.id if cart else None,
                    )
                    raise ItemNotInCart(
                        "Item does not belong to the current cart", item_id=item_id
                    )
                self.items.delete(item)
        self.logger.info("Item removed", cart_id=cart.id, item_id=item_id)

    def clear(self, identity: Identity) -> None:
        with self.store.guard(identity):
            with transaction.atomic():
                cart = self.store.current(identity)
                if cart is None:
                    return
                self.items.delete_for_cart(cart.id)
                if self.settings.auto_destroy:
                    self.store.delete(cart)
        self.logger.info(
            "Cart cleared", cart_id=cart.id, destroyed=self.settings.auto_destroy
        )

    def destroy(self, identity: Identity) -> None:
        with self.store.guard(identity):
            with transaction.atomic():
                cart = self.store.current(identity)
                if cart is None:
                    return
                self.store.delete(cart)
        self.logger.info("Cart destroyed", cart_id=cart.id)

    def forget(self, identity: Identity) -> Optional[int]:
        """Unbind the cart from the session and return its id; the record stays."""
        with self.store.guard(identity):
            with transaction.atomic():
                cart = self.store.current(identity)
                if cart is None:
                    return None
                self.binder.forget(cart)
        self.logger.info("Cart forgotten", cart_id=cart.id, user_id=cart.user_id)
        return cart.id

    def set_user(self, identity: Identity, user_id: Optional[int]) -> None:
        with self.store.guard(identity):
            with transaction.atomic():
                cart = self.store.current(identity)
                if cart is None:
                    self.logger.debug("No cart to bind user to", user_id=user_id)
                    return
                self.binder.assign_user(cart, user_id)

    def remove_user(self, identity: Identity) -> None:
        self.set_user(identity, None)

    # -- identity reconciliation -----------------------------------------

    def restore_last_active_cart(self, identity: Identity) -> Optional[CartDTO]:
        if identity.user_id is None:
            return self.get_cart(identity)
        with self.store.guard(identity, include_user=True):
            with transaction.atomic():
                current = self.binder.session_cart(identity)
                saved = self.binder.saved_cart(identity.user_id, current)
                if saved is not None:
                    current = self.binder.restore(identity, saved, replacing=current)
        return self._to_dto(current)

    def merge_last_active_cart(self, identity: Identity) -> Optional[CartDTO]:
        if identity.user_id is None:
            return self.get_cart(identity)
        with self.store.guard(identity, include_user=True):
            with transaction.atomic():
                current = self.binder.session_cart(identity)
                saved = self.binder.saved_cart(identity.user_id, current)
                if saved is None:
                    return self._to_dto(current)
                if current is None:
                    current, _created = self.store.materialize(identity)
                current = self.binder.merge(identity, current, saved)
        return self._to_dto(current)

    def handle_login(self, identity: Identity) -> Optional[CartDTO]:
        self.logger.debug(
            "Reconciling cart at login",
            user_id=identity.user_id,
            has_session=identity.has_session,
        )
        with self.store.guard(identity, include_user=True):
            with transaction.atomic():
                cart = self.binder.on_login(identity)
        return self._to_dto(cart)

    def handle_logout(self, identity: Identity) -> None:
        with self.store.guard(identity, include_user=True):
            with transaction.atomic():
                self.binder.on_logout(identity)

    def _to_dto(self, cart: Optional[Cart]) -> Optional[CartDTO]:
        if cart is None:
            return None
        return self.cart_mapper.to_dto(cart, self._lines(cart))
