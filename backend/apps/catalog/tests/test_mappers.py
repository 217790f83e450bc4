import unittest
from decimal import Decimal
from apps.catalog.mappers import ProductMapper


class StubProduct:
    def __init__(
        self,
        product_id: int,
        title: str,
        price,
        sku: str = "",
        description: str = "",
        image: str = "",
        thumbnail: str = "",
    ):
        self.id = product_id
        self.title = title
        self.price = price
        self.sku = sku
        self.description = description
        self.image = image
        self.thumbnail = thumbnail


class ProductMapperTests(unittest.TestCase):
    def test_to_buyable_without_image(self):
        buyable = ProductMapper.to_buyable(StubProduct(3, "Gadget", "12.50"), "product")
        self.assertEqual(buyable.id, "3")
        self.assertEqual(buyable.display_name, "Gadget")
        self.assertEqual(buyable.price, Decimal("12.50"))
        self.assertEqual(buyable.type_name, "product")
        self.assertFalse(buyable.has_image)
        self.assertIsNone(buyable.image_url)
        self.assertIsNone(buyable.thumbnail_url)

    def test_to_buyable_thumbnail_falls_back_to_image(self):
        product = StubProduct(4, "Lamp", "3", image="https://cdn/lamp.png")
        buyable = ProductMapper.to_buyable(product, "product")
        self.assertTrue(buyable.has_image)
        self.assertEqual(buyable.thumbnail_url, "https://cdn/lamp.png")

    def test_buyable_attribute_reads_source_record(self):
        product = StubProduct(6, "Mug", "4", sku="MUG-6")
        buyable = ProductMapper.to_buyable(product, "product")
        self.assertEqual(buyable.attribute("sku"), "MUG-6")
        self.assertEqual(buyable.attribute("missing", "n/a"), "n/a")
