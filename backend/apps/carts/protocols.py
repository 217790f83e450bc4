from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, TYPE_CHECKING

from .models import Cart, CartItem

if TYPE_CHECKING:
    from apps.carts.dtos import ProductRef
    from apps.catalog.dtos import BuyableDTO


class CartRepositoryProtocol(Protocol):
    def list(self, **filters) -> Iterable[Cart]:
        ...

    def get(self, **filters) -> Optional[Cart]:
        ...

    def create(self, **data) -> Cart:
        ...

    def update(self, cart: Cart, **fields) -> Cart:
        ...

    def delete(self, cart: Cart) -> None:
        ...

    def latest_for_user(self, user_id: int) -> Optional[Cart]:
        ...


class CartItemRepositoryProtocol(Protocol):
    def get(self, **filters) -> Optional[CartItem]:
        ...

    def create(
        self,
        *,
        cart: Cart,
        product_type: str,
        product_id: str,
        quantity: int,
        price: Decimal,
        attributes: Dict[str, Any],
    ) -> CartItem:
        ...

    def list_for_cart(self, cart_id: int) -> Iterable[CartItem]:
        ...

    def list_for_product(
        self, cart_id: int, product_type: str, product_id: str
    ) -> Iterable[CartItem]:
        ...

    def increment_quantity(self, item: CartItem, amount: int) -> CartItem:
        ...

    def delete(self, item: CartItem) -> None:
        ...

    def delete_for_cart(self, cart_id: int) -> None:
        ...


class BuyableResolverProtocol(Protocol):
    def canonical(self, ref: "ProductRef") -> "ProductRef":
        ...

    def resolve(self, ref: "ProductRef") -> "BuyableDTO":
        ...


class ItemMatcher(Protocol):
    """Decides whether ``item`` is the line an incoming add should merge into."""

    def __call__(
        self, item: CartItem, ref: "ProductRef", parameters: Mapping[str, Any]
    ) -> bool:
        ...

