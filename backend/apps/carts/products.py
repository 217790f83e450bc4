"""Product references and the Buyable capability.

Cart lines point at sellable records through a ``ProductRef``. The type name
is looked up in ``CART_PRODUCT_TYPES`` (short name -> model label); names
missing from that table are taken to be model labels themselves. An adapter
registered per model label turns the record into a ``BuyableDTO``.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional

from django.apps import apps as django_apps
from django.core.exceptions import ValidationError

from apps.catalog.dtos import BuyableDTO
from apps.common import get_logger

from .dtos import ProductRef
from .exceptions import UnresolvableProduct

logger = get_logger(__name__).bind(component="carts", layer="products")

BuyableAdapter = Callable[[Any, str], BuyableDTO]


def attribute_adapter(record: Any, type_name: str) -> BuyableDTO:
    """Fallback adapter reading conventional attribute names off the record."""
    name = (
        getattr(record, "name", None)
        or getattr(record, "title", None)
        or str(record)
    )
    raw_price = getattr(record, "price", None)
    try:
        price = Decimal(str(raw_price)) if raw_price is not None else Decimal("0")
    except (InvalidOperation, ValueError):
        raise UnresolvableProduct(
            "Product has no usable price", type=type_name, id=str(record.pk)
        )
    image = getattr(record, "image_url", None) or getattr(record, "image", None) or None
    thumbnail = getattr(record, "thumbnail_url", None) or getattr(record, "thumbnail", None)
    return BuyableDTO(
        id=str(record.pk),
        display_name=str(name),
        price=price,
        type_name=type_name,
        has_image=bool(image),
        thumbnail_url=thumbnail or image,
        image_url=image,
        source=record,
    )


class ProductTypeRegistry:
    def __init__(self, types: Optional[Mapping[str, str]] = None):
        self._short_to_label: Dict[str, str] = {
            short: label.lower() for short, label in (types or {}).items()
        }
        self._label_to_short: Dict[str, str] = {
            label: short for short, label in self._short_to_label.items()
        }
        self._adapters: Dict[str, BuyableAdapter] = {}

    def register_adapter(self, model_label: str, adapter: BuyableAdapter) -> None:
        self._adapters[model_label.lower()] = adapter

    def model_label(self, type_name: str) -> str:
        return self._short_to_label.get(type_name, type_name.lower())

    def type_name_for(self, model_label: str) -> str:
        """Short name when one is configured, otherwise the full label."""
        label = model_label.lower()
        return self._label_to_short.get(label, label)

    def canonical(self, type_name: str) -> str:
        return self.type_name_for(self.model_label(type_name))

    def adapter_for(self, model_label: str) -> BuyableAdapter:
        return self._adapters.get(model_label.lower(), attribute_adapter)


class BuyableResolver:
    """Dereferences ``ProductRef`` values through the Django app registry."""

    def __init__(self, registry: ProductTypeRegistry, app_registry: Any = None):
        self.registry = registry
        self.app_registry = app_registry or django_apps
        self.logger = logger.bind(service="BuyableResolver")

    def canonical(self, ref: ProductRef) -> ProductRef:
        return ProductRef(self.registry.canonical(ref.type_name), ref.product_id)

    def resolve(self, ref: ProductRef) -> BuyableDTO:
        if not ref.type_name or not ref.product_id:
            raise UnresolvableProduct(
                "Product reference is incomplete", type=ref.type_name, id=ref.product_id
            )
        label = self.registry.model_label(ref.type_name)
        try:
            model = self.app_registry.get_model(label)
        except (LookupError, ValueError):
            self.logger.warning("Unknown product type", type=ref.type_name, label=label)
            raise UnresolvableProduct(
                f"Unknown product type '{ref.type_name}'",
                type=ref.type_name,
                id=ref.product_id,
            )
        try:
            record = model._default_manager.filter(pk=ref.product_id).first()
        except (ValueError, TypeError, ValidationError):
            record = None
        if record is None:
            self.logger.info("Product not found", type=ref.type_name, product_id=ref.product_id)
            raise UnresolvableProduct(
                f"Product {ref} does not exist", type=ref.type_name, id=ref.product_id
            )
        adapter = self.registry.adapter_for(label)
        return adapter(record, self.registry.type_name_for(label))
