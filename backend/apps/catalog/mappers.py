from decimal import Decimal

from .dtos import BuyableDTO
from .models import Product


class ProductMapper:
    @staticmethod
    def to_buyable(product: Product, type_name: str) -> BuyableDTO:
        image = product.image or None
        return BuyableDTO(
            id=str(product.id),
            display_name=product.title,
            price=Decimal(str(product.price)),
            type_name=type_name,
            has_image=bool(image),
            thumbnail_url=product.thumbnail or image,
            image_url=image,
            source=product,
        )
