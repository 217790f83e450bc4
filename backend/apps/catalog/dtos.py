from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class BuyableDTO:
    """Read-only view of anything a cart line can point at."""

    id: str
    display_name: str
    price: Decimal
    type_name: str
    has_image: bool = False
    thumbnail_url: Optional[str] = None
    image_url: Optional[str] = None
    # Underlying record; extra cart attributes are read from it by name.
    source: Any = field(default=None, repr=False, compare=False)

    def attribute(self, name: str, default: Any = None) -> Any:
        if self.source is None:
            return default
        return getattr(self.source, name, default)
