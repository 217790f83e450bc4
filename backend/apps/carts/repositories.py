from django.db import transaction
from django.db.models import F

from apps.common.repository import GenericRepository
from .models import Cart, CartItem, CartState


class CartRepository(GenericRepository[Cart]):
    ordering = ("created_at", "id")

    def __init__(self):
        super().__init__(Cart)

    def create(self, **data):
        # Savepoint, so a lost session_key race leaves the outer transaction usable.
        with transaction.atomic():
            return super().create(**data)

    def latest_for_user(self, user_id: int):
        """The user's saved cart: most recently touched active cart."""
        return (
            self.model.objects.filter(user_id=user_id, state=CartState.ACTIVE)
            .order_by("-updated_at", "-id")
            .first()
        )


class CartItemRepository(GenericRepository[CartItem]):
    ordering = ("created_at", "id")

    def __init__(self):
        super().__init__(CartItem)

    def _base_queryset(self):
        return self.model.objects.select_related("cart")

    def list_for_cart(self, cart_id: int):
        return list(self.model.objects.filter(cart_id=cart_id).order_by(*self.ordering))

    def list_for_product(self, cart_id: int, product_type: str, product_id: str):
        return list(
            self.model.objects.filter(
                cart_id=cart_id, product_type=product_type, product_id=product_id
            ).order_by(*self.ordering)
        )

    def increment_quantity(self, item: CartItem, amount: int):
        self.model.objects.filter(pk=item.pk).update(quantity=F("quantity") + amount)
        item.refresh_from_db(fields=["quantity"])
        return item

    def delete_for_cart(self, cart_id: int):
        self.model.objects.filter(cart_id=cart_id).delete()
