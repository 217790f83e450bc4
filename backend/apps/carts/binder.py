"""Identity binding: which cart belongs to the current session and user.

A session is bound to the cart whose ``session_key`` equals it. A user's
saved cart is their most recently touched active cart. Login reconciles
the two, logout detaches the session or the user depending on
``CART_PRESERVE_FOR_USER``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.db import DatabaseError, transaction

from apps.common import get_logger

from .config import CartSettings
from .exceptions import BindingConflict
from .identity import Identity
from .models import Cart
from .protocols import CartItemRepositoryProtocol, CartRepositoryProtocol
from .resolver import ItemResolver

logger = get_logger(__name__).bind(component="carts", layer="binder")


class IdentityBinder:
    def __init__(
        self,
        carts: CartRepositoryProtocol,
        items: CartItemRepositoryProtocol,
        resolver: ItemResolver,
        settings: CartSettings,
    ):
        self.carts = carts
        self.items = items
        self.resolver = resolver
        self.settings = settings
        self.logger = logger.bind(service="IdentityBinder")

    # -- lookups ---------------------------------------------------------

    def session_cart(self, identity: Identity) -> Optional[Cart]:
        if not identity.session_key:
            return None
        bound: List[Cart] = list(self.carts.list(session_key=identity.session_key))
        if len(bound) > 1:
            self.logger.error(
                "Session bound to several carts",
                session_key=identity.session_key,
                cart_ids=[cart.id for cart in bound],
            )
            raise BindingConflict(
                "Session is bound to more than one cart",
                cart_ids=[cart.id for cart in bound],
            )
        return bound[0] if bound else None

    def saved_cart(self, user_id: int, current: Optional[Cart] = None) -> Optional[Cart]:
        """The user's saved cart, unless that is ``current`` itself."""
        saved = self.carts.latest_for_user(user_id)
        if saved is None or (current is not None and saved.id == current.id):
            return None
        return saved

    def resolve(self, identity: Identity) -> Optional[Cart]:
        return self.session_cart(identity)

    def binding_fields(self, identity: Identity) -> Dict[str, Any]:
        """Columns a freshly materialized cart is created with."""
        fields: Dict[str, Any] = {"session_key": identity.session_key}
        if self.settings.auto_assign_user and identity.user_id is not None:
            fields["user_id"] = identity.user_id
        return fields

    # -- binding writes --------------------------------------------------

    def assign_user(self, cart: Cart, user_id: Optional[int]) -> Cart:
        detached = user_id is None
        if cart.user_id == user_id and cart.user_detached == detached:
            return cart
        self.logger.info(
            "Binding cart to user", cart_id=cart.id, user_id=user_id, previous=cart.user_id
        )
        return self.carts.update(cart, user_id=user_id, user_detached=detached)

    def forget(self, cart: Cart) -> Cart:
        self.logger.info("Dropping session binding", cart_id=cart.id)
        return self.carts.update(cart, session_key=None)

    def abandon(self, cart: Cart) -> Cart:
        self.logger.info("Abandoning cart", cart_id=cart.id, user_id=cart.user_id)
        return self.carts.update(cart, session_key=None, user_id=None)

    def restore(
        self, identity: Identity, saved: Cart, replacing: Optional[Cart] = None
    ) -> Optional[Cart]:
        """Bind ``saved`` to the current session, unbinding ``replacing`` first."""
        if not identity.session_key:
            self.logger.warning("Cannot restore cart without a session", cart_id=saved.id)
            return None
        if replacing is not None and replacing.id != saved.id:
            self.forget(replacing)
        if saved.session_key and saved.session_key != identity.session_key:
            self.logger.info(
                "Moving saved cart off its previous session", cart_id=saved.id
            )
        restored = self.carts.update(saved, session_key=identity.session_key)
        self.logger.info(
            "Restored saved cart",
            cart_id=restored.id,
            user_id=identity.user_id,
            replaced_cart_id=replacing.id if replacing is not None else None,
        )
        return restored

    def merge(self, identity: Identity, current: Cart, saved: Cart) -> Cart:
        """Fold every line of ``saved`` into ``current`` and abandon ``saved``."""
        lines = list(self.items.list_for_cart(saved.id))
        for line in lines:
            self.resolver.merge_line(current, line)
        self.abandon(saved)
        user_id = current.user_id
        if user_id is None and self.settings.auto_assign_user:
            user_id = identity.user_id
        # Always written so updated_at marks this as the user's latest cart.
        merged = self.carts.update(
            current, user_id=user_id, user_detached=user_id is None and current.user_detached
        )
        self.logger.info(
            "Merged saved cart into session cart",
            cart_id=merged.id,
            saved_cart_id=saved.id,
            lines=len(lines),
        )
        return merged

    # -- identity events -------------------------------------------------

    def on_login(self, identity: Identity) -> Optional[Cart]:
        if identity.user_id is None:
            return self.session_cart(identity)
        current = self.session_cart(identity)
        if current is not None and current.user_id not in (None, identity.user_id):
            self.logger.error(
                "Session cart owned by another user",
                cart_id=current.id,
                owner_id=current.user_id,
                user_id=identity.user_id,
            )
            raise BindingConflict(
                "Session cart belongs to a different user",
                cart_id=current.id,
            )
        saved = self.saved_cart(identity.user_id, current)
        if current is not None and saved is not None:
            if self.settings.merge_duplicates:
                return self.merge(identity, current, saved)
            return self.restore(identity, saved, replacing=current)
        if current is not None:
            if self.settings.auto_assign_user and current.user_id is None:
                return self.assign_user(current, identity.user_id)
            return current
        if saved is not None:
            return self.restore(identity, saved)
        self.logger.debug("Nothing to reconcile at login", user_id=identity.user_id)
        return None

    def on_logout(self, identity: Identity) -> Optional[Cart]:
        cart = self.session_cart(identity)
        if cart is None:
            return None
        if self.settings.preserve_for_user:
            if cart.user_id is None:
                return cart
            self.logger.info(
                "Preserving cart for user", cart_id=cart.id, user_id=cart.user_id
            )
            return self.forget(cart)
        if cart.user_id is not None:
            self.logger.info(
                "Detaching user from cart", cart_id=cart.id, user_id=cart.user_id
            )
            return self.carts.update(cart, user_id=None)
        return cart

    def repair_user_binding(self, identity: Identity, cart: Cart) -> Cart:
        """Bind a logged-in identity's existing cart that is missing its user.

        Called on guarded write paths only. A cart whose user was removed by
        hand keeps no user until ``assign_user`` or a login binds one again.
        """
        if not self.settings.auto_assign_user or identity.user_id is None:
            return cart
        if cart.user_id is not None or cart.user_detached:
            return cart
        try:
            with transaction.atomic():
                self.carts.update(cart, user_id=identity.user_id)
        except DatabaseError as exc:
            cart.user_id = None
            self.logger.warning(
                "Could not repair user binding", cart_id=cart.id, error=str(exc)
            )
            return cart
        self.logger.warning(
            "Repaired missing user binding", cart_id=cart.id, user_id=identity.user_id
        )
        return cart
