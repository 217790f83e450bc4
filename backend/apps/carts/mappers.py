from decimal import Decimal
from typing import Iterable, List, Optional

from .dtos import CartDTO, CartItemDTO
from .models import Cart, CartItem
from .totals import cart_total, item_count, line_total


class CartItemMapper:
    def to_dto(self, item: CartItem) -> CartItemDTO:
        price = Decimal(str(item.price))
        return CartItemDTO(
            id=item.id,
            product_type=item.product_type,
            product_id=str(item.product_id),
            quantity=int(item.quantity),
            price=price,
            total=line_total(price, item.quantity),
            attributes=dict(item.attributes or {}),
        )

    def many_to_dto(self, items: Iterable[CartItem]) -> List[CartItemDTO]:
        return [self.to_dto(i) for i in items]


class CartMapper:
    def __init__(self, item_mapper: Optional[CartItemMapper] = None) -> None:
        self.item_mapper = item_mapper or CartItemMapper()

    def to_dto(self, cart: Cart, items: Iterable[CartItem]) -> CartDTO:
        lines = self.item_mapper.many_to_dto(items)
        return CartDTO(
            id=cart.id,
            session_key=cart.session_key,
            user_id=cart.user_id,
            state=str(cart.state),
            items=lines,
            item_count=item_count(lines),
            total=cart_total(lines),
        )
