import unittest
from datetime import datetime
from decimal import Decimal

from apps.carts.config import CartSettings
from apps.carts.resolver import (
    ItemResolver,
    configuration_matches,
    configurations_equal,
    normalize_parameters,
)
from apps.catalog.dtos import BuyableDTO

from .fakes import FakeCartItemRepository, P, StubCart, StubCartItem, StubProduct


class ConfigurationComparisonTests(unittest.TestCase):
    def test_missing_and_empty_are_equal(self):
        self.assertTrue(configurations_equal(None, None))
        self.assertTrue(configurations_equal(None, {}))
        self.assertTrue(configurations_equal([], ""))

    def test_missing_never_equals_present(self):
        self.assertFalse(configurations_equal(None, {"size": "M"}))
        self.assertFalse(configurations_equal({"size": "M"}, {}))

    def test_mapping_key_order_is_ignored(self):
        self.assertTrue(
            configurations_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})
        )

    def test_sequence_order_matters(self):
        self.assertFalse(configurations_equal([1, 2], [2, 1]))

    def test_values_compare_as_stored(self):
        self.assertTrue(configurations_equal({"price": Decimal("1.50")}, {"price": "1.50"}))
        self.assertTrue(configurations_equal(("x", "y"), ["x", "y"]))

    def test_nested_differences_are_found(self):
        self.assertFalse(
            configurations_equal({"a": {"b": {"c": 1}}}, {"a": {"b": {"c": 2}}})
        )

    def test_normalize_folds_top_level_configuration(self):
        params = normalize_parameters({"configuration": {"x": 1}, "attributes": {"note": "n"}})
        self.assertEqual(params, {"attributes": {"note": "n", "configuration": {"x": 1}}})

    def test_attributes_configuration_wins(self):
        params = normalize_parameters(
            {"configuration": "outer", "attributes": {"configuration": "inner"}}
        )
        self.assertEqual(params["attributes"]["configuration"], "inner")

    def test_default_matcher_reads_configuration(self):
        item = StubCartItem(1, 1, "product", "1", 1, Decimal("1"), {"configuration": "a"}, None)
        self.assertTrue(configuration_matches(item, P(1), {"attributes": {"configuration": "a"}}))
        self.assertFalse(configuration_matches(item, P(1), {"attributes": {}}))


class ItemResolverTests(unittest.TestCase):
    def setUp(self):
        self.items = FakeCartItemRepository()
        self.cart = StubCart(1, session_key="s")
        self.product = StubProduct(1, "Widget", "9.99", sku="W-1")
        self.buyable = BuyableDTO(
            id="1", display_name="Widget", price=Decimal("9.99"), type_name="product", source=self.product
        )
        self.resolver = ItemResolver(self.items, CartSettings(extra_product_attributes=["sku"]))

    def test_add_creates_then_merges(self):
        item, created = self.resolver.add(self.cart, P(1), self.buyable, 2)
        self.assertTrue(created)
        self.assertEqual(item.attributes, {"sku": "W-1"})
        again, created = self.resolver.add(self.cart, P(1), self.buyable, 3)
        self.assertFalse(created)
        self.assertEqual(again.id, item.id)
        self.assertEqual(again.quantity, 5)

    def test_ties_go_to_the_earliest_line(self):
        early = StubCartItem(7, 1, "product", "1", 1, Decimal("1"), {}, datetime(2024, 1, 1))
        late = StubCartItem(3, 1, "product", "1", 1, Decimal("1"), {}, datetime(2024, 1, 2))
        self.items._storage = {late.id: late, early.id: early}
        match = self.resolver.find_match(self.cart, P(1), {"attributes": {}})
        self.assertIs(match, early)

    def test_custom_matcher_is_used(self):
        calls = []

        def never(item, ref, parameters):
            calls.append(ref)
            return False

        resolver = ItemResolver(self.items, CartSettings(), matcher=never)
        resolver.add(self.cart, P(1), self.buyable, 1)
        resolver.add(self.cart, P(1), self.buyable, 1)
        self.assertEqual(len(self.items.list_for_cart(1)), 2)
        self.assertEqual(calls, [P(1)])

    def test_merge_line_copies_the_source_snapshot(self):
        source = StubCartItem(
            50, 9, "product", "1", 2, Decimal("4.00"), {"configuration": {"c": 1}}, None
        )
        item, created = self.resolver.merge_line(self.cart, source)
        self.assertTrue(created)
        self.assertEqual(item.cart_id, 1)
        self.assertEqual(item.price, Decimal("4.00"))
        self.assertEqual(item.attributes, {"configuration": {"c": 1}})

    def test_merge_line_increments_a_matching_line(self):
        existing, _ = self.resolver.add(self.cart, P(1), self.buyable, 1)
        source = StubCartItem(50, 9, "product", "1", 2, Decimal("4.00"), {"sku": "W-1"}, None)
        item, created = self.resolver.merge_line(self.cart, source)
        self.assertFalse(created)
        self.assertEqual(item.id, existing.id)
        self.assertEqual(item.quantity, 3)
