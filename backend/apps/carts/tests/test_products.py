import unittest
from decimal import Decimal

from apps.carts.dtos import ProductRef
from apps.carts.exceptions import UnresolvableProduct
from apps.carts.products import BuyableResolver, ProductTypeRegistry, attribute_adapter
from apps.catalog.dtos import BuyableDTO

from .fakes import StubProduct


class StubQuerySet:
    def __init__(self, record):
        self.record = record

    def first(self):
        return self.record


class StubManager:
    def __init__(self, records):
        self.records = {str(r.pk): r for r in records}

    def filter(self, pk):
        if not str(pk).isdigit():
            raise ValueError("Field 'id' expected a number")
        return StubQuerySet(self.records.get(str(pk)))


class StubModel:
    def __init__(self, records):
        self._default_manager = StubManager(records)


class StubAppRegistry:
    def __init__(self, models):
        self.models = models

    def get_model(self, label):
        if "." not in label:
            raise ValueError("Model label must be 'app_label.ModelName'")
        try:
            return self.models[label]
        except KeyError:
            raise LookupError(label)


class ProductTypeRegistryTests(unittest.TestCase):
    def setUp(self):
        self.registry = ProductTypeRegistry({"product": "catalog.Product"})

    def test_short_names_map_both_ways(self):
        self.assertEqual(self.registry.model_label("product"), "catalog.product")
        self.assertEqual(self.registry.type_name_for("catalog.Product"), "product")
        self.assertEqual(self.registry.canonical("catalog.product"), "product")

    def test_unmapped_names_are_labels(self):
        self.assertEqual(self.registry.model_label("Shop.Bundle"), "shop.bundle")
        self.assertEqual(self.registry.canonical("Shop.Bundle"), "shop.bundle")

    def test_fallback_adapter(self):
        self.assertIs(self.registry.adapter_for("shop.bundle"), attribute_adapter)


class BuyableResolverTests(unittest.TestCase):
    def setUp(self):
        registry = ProductTypeRegistry({"product": "catalog.product"})
        self.adapted = []

        def adapter(record, type_name):
            self.adapted.append(type_name)
            return BuyableDTO(
                id=str(record.pk), display_name=record.title, price=record.price, type_name=type_name
            )

        registry.register_adapter("catalog.product", adapter)
        app_registry = StubAppRegistry(
            {
                "catalog.product": StubModel([StubProduct(1, "Widget", "10.00")]),
                "shop.bundle": StubModel([StubProduct(4, "Bundle", "25.00", name="Starter kit")]),
            }
        )
        self.resolver = BuyableResolver(registry, app_registry)

    def test_resolves_through_registered_adapter(self):
        buyable = self.resolver.resolve(ProductRef("product", "1"))
        self.assertEqual(buyable.price, Decimal("10.00"))
        self.assertEqual(self.adapted, ["product"])

    def test_resolves_unmapped_type_with_fallback_adapter(self):
        buyable = self.resolver.resolve(ProductRef("shop.bundle", "4"))
        self.assertEqual(buyable.display_name, "Starter kit")
        self.assertEqual(buyable.type_name, "shop.bundle")
        self.assertEqual(buyable.attribute("title"), "Bundle")

    def test_canonical_uses_short_name(self):
        self.assertEqual(
            self.resolver.canonical(ProductRef("catalog.product", "1")), ProductRef("product", "1")
        )

    def test_unresolvable_references(self):
        for ref in (
            ProductRef("product", "99"),
            ProductRef("product", "abc"),
            ProductRef("product", ""),
            ProductRef("unknown", "1"),
            ProductRef("shop.missing", "1"),
        ):
            with self.subTest(ref=str(ref)):
                with self.assertRaises(UnresolvableProduct):
                    self.resolver.resolve(ref)

    def test_product_ref_of_strips_values(self):
        self.assertEqual(ProductRef.of(" product ", 5), ProductRef("product", "5"))
        self.assertEqual(str(ProductRef("product", "5")), "product:5")
