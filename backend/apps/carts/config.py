from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Tuple


def _ordered_unique(names: Optional[Iterable[str]]) -> Tuple[str, ...]:
    seen = []
    for name in names or ():
        name = str(name).strip()
        if name and name not in seen:
            seen.append(name)
    return tuple(seen)


@dataclass(frozen=True)
class CartSettings:
    """Snapshot of the ``CART_*`` Django settings."""

    auto_destroy: bool = False
    auto_assign_user: bool = True
    preserve_for_user: bool = False
    merge_duplicates: bool = False
    extra_product_attributes: Tuple[str, ...] = ()
    product_types: Mapping[str, str] = field(default_factory=dict)
    item_matcher: Optional[str] = None
    lock_timeout: float = 10.0
    lock_wait: float = 5.0

    def __post_init__(self):
        object.__setattr__(
            self,
            "extra_product_attributes",
            _ordered_unique(self.extra_product_attributes),
        )
        object.__setattr__(self, "product_types", dict(self.product_types or {}))

    @classmethod
    def from_settings(cls, source: Any = None) -> "CartSettings":
        if source is None:
            from django.conf import settings as source
        defaults = cls()
        return cls(
            auto_destroy=bool(getattr(source, "CART_AUTO_DESTROY", defaults.auto_destroy)),
            auto_assign_user=bool(
                getattr(source, "CART_AUTO_ASSIGN_USER", defaults.auto_assign_user)
            ),
            preserve_for_user=bool(
                getattr(source, "CART_PRESERVE_FOR_USER", defaults.preserve_for_user)
            ),
            merge_duplicates=bool(
                getattr(source, "CART_MERGE_DUPLICATES", defaults.merge_duplicates)
            ),
            extra_product_attributes=getattr(
                source, "CART_EXTRA_PRODUCT_ATTRIBUTES", ()
            ),
            product_types=getattr(source, "CART_PRODUCT_TYPES", None) or {},
            item_matcher=getattr(source, "CART_ITEM_MATCHER", None),
            lock_timeout=float(getattr(source, "CART_LOCK_TIMEOUT", defaults.lock_timeout)),
            lock_wait=float(getattr(source, "CART_LOCK_WAIT", defaults.lock_wait)),
        )
