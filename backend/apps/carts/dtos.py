from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ProductRef:
    """Tagged reference to a sellable record: ``(type_name, product_id)``."""

    type_name: str
    product_id: str

    @classmethod
    def of(cls, type_name: Any, product_id: Any) -> "ProductRef":
        return cls(type_name=str(type_name).strip(), product_id=str(product_id).strip())

    def __str__(self) -> str:
        return f"{self.type_name}:{self.product_id}"


@dataclass
class CartItemDTO:
    id: int
    product_type: str
    product_id: str
    quantity: int
    price: Decimal
    total: Decimal
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def product_ref(self) -> ProductRef:
        return ProductRef(self.product_type, self.product_id)

    @property
    def configuration(self) -> Any:
        return self.attributes.get("configuration")


@dataclass
class CartDTO:
    id: int
    session_key: Optional[str]
    user_id: Optional[int]
    state: str
    items: List[CartItemDTO]
    item_count: int
    total: Decimal
