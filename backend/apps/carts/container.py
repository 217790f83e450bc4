from __future__ import annotations

from typing import Optional

from django.utils.module_loading import import_string

from apps.catalog.mappers import ProductMapper

from .binder import IdentityBinder
from .config import CartSettings
from .locks import build_identity_lock
from .mappers import CartItemMapper, CartMapper
from .products import BuyableResolver, ProductTypeRegistry
from .repositories import CartItemRepository, CartRepository
from .resolver import ItemResolver
from .services import CartManager
from .store import CartStore


def build_product_registry(settings: CartSettings) -> ProductTypeRegistry:
    registry = ProductTypeRegistry(settings.product_types)
    registry.register_adapter("catalog.product", ProductMapper.to_buyable)
    return registry


def build_cart_manager(settings: Optional[CartSettings] = None) -> CartManager:
    settings = settings or CartSettings.from_settings()
    carts = CartRepository()
    items = CartItemRepository()
    matcher = import_string(settings.item_matcher) if settings.item_matcher else None
    resolver = ItemResolver(items, settings, matcher=matcher)
    binder = IdentityBinder(carts, items, resolver, settings)
    store = CartStore(carts, items, binder, build_identity_lock(settings))
    return CartManager(
        store=store,
        binder=binder,
        resolver=resolver,
        items=items,
        buyables=BuyableResolver(build_product_registry(settings)),
        cart_mapper=CartMapper(CartItemMapper()),
        settings=settings,
    )
