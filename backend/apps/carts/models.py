from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class CartState(models.TextChoices):
    ACTIVE = "active", "Active"
    CHECKOUT = "checkout", "Checkout"
    COMPLETED = "completed", "Completed"
    ABANDONED = "abandoned", "Abandoned"


class Cart(models.Model):
    # NULL once the cart is forgotten or preserved for its user.
    session_key = models.CharField(max_length=64, null=True, blank=True, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="carts",
    )
    # Set when the user binding was removed by hand.
    user_detached = models.BooleanField(default=False)
    # Driven by checkout code outside the cart core.
    state = models.CharField(
        max_length=32, choices=CartState.choices, default=CartState.ACTIVE
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "state"], name="cart_user_state_idx"),
        ]

    def __str__(self):
        return f"Cart {self.id} (session={self.session_key}, user={self.user_id})"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product_type = models.CharField(max_length=100)
    product_id = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField(default=1)
    # Unit price captured when the line was created.
    price = models.DecimalField(max_digits=15, decimal_places=4)
    attributes = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("created_at", "id")
        indexes = [
            models.Index(
                fields=["cart", "product_type", "product_id"],
                name="cartitem_product_idx",
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_type}:{self.product_id} in cart {self.cart_id}"