from typing import Any, Dict


class CartError(Exception):
    """Base class for cart failures; ``code`` is the machine readable identifier."""

    code = "CART_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details


class InvalidQuantity(CartError):
    """Requested quantity is not a positive integer."""

    code = "INVALID_QUANTITY"


class UnresolvableProduct(CartError):
    """The product reference does not point at a sellable record."""

    code = "UNRESOLVABLE_PRODUCT"


class ItemNotInCart(CartError):
    """The targeted line does not belong to the identity's cart."""

    code = "ITEM_NOT_IN_CART"


class BindingConflict(CartError):
    """Stored bindings disagree about which cart an identity owns."""

    code = "BINDING_CONFLICT"


class CartBusy(CartError):
    """Another request for the same identity held the cart lock for too long."""

    code = "CART_BUSY"


class SessionRequired(CartError):
    """A cart can only be created for an identity that carries a session."""

    code = "SESSION_REQUIRED"


__all__ = [
    "CartError",
    "InvalidQuantity",
    "UnresolvableProduct",
    "ItemNotInCart",
    "BindingConflict",
    "CartBusy",
    "SessionRequired",
]
