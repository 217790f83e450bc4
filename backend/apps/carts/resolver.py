"""Line resolution: merge an added product into an existing line or open a new one.

Two lines of the same product are the same line when their
``attributes["configuration"]`` payloads are structurally equal. Both
missing (or empty) counts as equal, one missing never does. The comparison
is the default ``ItemMatcher``; deployments can plug in their own through
``CART_ITEM_MATCHER``.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple

from django.core.serializers.json import DjangoJSONEncoder

from apps.catalog.dtos import BuyableDTO
from apps.common import get_logger

from .config import CartSettings
from .dtos import ProductRef
from .models import Cart, CartItem
from .protocols import CartItemRepositoryProtocol, ItemMatcher

logger = get_logger(__name__).bind(component="carts", layer="resolver")

CONFIGURATION_KEY = "configuration"


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_plain(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_json_value(value: Any) -> Any:
    """Coerce to what the JSON column hands back after a save."""
    return json.loads(json.dumps(_plain(value), cls=DjangoJSONEncoder))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def _differs(left: Any, right: Any) -> bool:
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return True
        return any(_differs(left[key], right[key]) for key in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return True
        return any(_differs(a, b) for a, b in zip(left, right))
    return left != right


def configurations_equal(left: Any, right: Any) -> bool:
    left_blank, right_blank = _is_blank(left), _is_blank(right)
    if left_blank or right_blank:
        return left_blank and right_blank
    return not _differs(to_json_value(left), to_json_value(right))


def normalize_parameters(parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return ``{"attributes": {...}}``; a top-level ``configuration`` is folded in."""
    parameters = dict(parameters or {})
    attributes = dict(parameters.get("attributes") or {})
    if CONFIGURATION_KEY in parameters and CONFIGURATION_KEY not in attributes:
        attributes[CONFIGURATION_KEY] = parameters[CONFIGURATION_KEY]
    return {"attributes": attributes}


def configuration_matches(
    item: CartItem, ref: ProductRef, parameters: Mapping[str, Any]
) -> bool:
    existing = (item.attributes or {}).get(CONFIGURATION_KEY)
    incoming = (parameters.get("attributes") or {}).get(CONFIGURATION_KEY)
    return configurations_equal(existing, incoming)


def _creation_order(item: CartItem):
    return (item.created_at, item.id)


class ItemResolver:
    def __init__(
        self,
        items: CartItemRepositoryProtocol,
        settings: CartSettings,
        matcher: Optional[ItemMatcher] = None,
    ):
        self.items = items
        self.settings = settings
        self.matcher = matcher or configuration_matches
        self.logger = logger.bind(service="ItemResolver")

    def find_match(
        self, cart: Cart, ref: ProductRef, parameters: Mapping[str, Any]
    ) -> Optional[CartItem]:
        candidates = sorted(
            self.items.list_for_product(cart.id, ref.type_name, ref.product_id),
            key=_creation_order,
        )
        for item in candidates:
            if self.matcher(item, ref, parameters):
                return item
        return None

    def add(
        self,
        cart: Cart,
        ref: ProductRef,
        buyable: BuyableDTO,
        quantity: int,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[CartItem, bool]:
        """Returns ``(line, created)``."""
        parameters = normalize_parameters(parameters)
        match = self.find_match(cart, ref, parameters)
        if match is not None:
            item = self.items.increment_quantity(match, quantity)
            self.logger.debug(
                "Merged into existing line",
                cart_id=cart.id,
                item_id=item.id,
                product=str(ref),
                quantity=item.quantity,
            )
            return item, False
        attributes = self._snapshot_attributes(buyable)
        attributes.update(parameters["attributes"])
        item = self.items.create(
            cart=cart,
            product_type=ref.type_name,
            product_id=ref.product_id,
            quantity=quantity,
            price=buyable.price,
            attributes=to_json_value(attributes),
        )
        self.logger.debug(
            "Opened new line",
            cart_id=cart.id,
            item_id=item.id,
            product=str(ref),
            quantity=quantity,
        )
        return item, True

    def merge_line(self, cart: Cart, source: CartItem) -> Tuple[CartItem, bool]:
        """Fold a line from another cart in, keeping its price snapshot if copied."""
        ref = ProductRef(source.product_type, source.product_id)
        attributes = dict(source.attributes or {})
        match = self.find_match(cart, ref, {"attributes": attributes})
        if match is not None:
            return self.items.increment_quantity(match, source.quantity), False
        item = self.items.create(
            cart=cart,
            product_type=source.product_type,
            product_id=source.product_id,
            quantity=source.quantity,
            price=source.price,
            attributes=to_json_value(attributes),
        )
        return item, True

    def _snapshot_attributes(self, buyable: BuyableDTO) -> Dict[str, Any]:
        return {
            name: buyable.attribute(name)
            for name in self.settings.extra_product_attributes
        }
