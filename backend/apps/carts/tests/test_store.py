import unittest

from django.core.cache.backends.locmem import LocMemCache
from django.db import IntegrityError

from apps.carts.config import CartSettings
from apps.carts.exceptions import CartBusy, SessionRequired
from apps.carts.identity import Identity
from apps.carts.locks import IdentityLock, build_identity_lock

from .fakes import CartHarness, FakeCartRepository


class RacingCartRepository(FakeCartRepository):
    """Simulates another process inserting the session's cart first."""

    def create(self, **data):
        self.insert(**data)
        raise IntegrityError("duplicate session_key")


class CartStoreTests(unittest.TestCase):
    def setUp(self):
        self.harness = CartHarness()
        self.store = self.harness.store
        self.identity = Identity(session_key="s-1", user_id=3)

    def test_materialize_creates_once(self):
        cart, created = self.store.materialize(self.identity)
        self.assertTrue(created)
        self.assertEqual(cart.session_key, "s-1")
        self.assertEqual(cart.user_id, 3)
        again, created = self.store.materialize(self.identity)
        self.assertFalse(created)
        self.assertEqual(again.id, cart.id)

    def test_materialize_requires_a_session(self):
        with self.assertRaises(SessionRequired):
            self.store.materialize(Identity(user_id=3))
        self.assertEqual(self.harness.carts.all(), [])

    def test_lost_insert_race_adopts_the_winner(self):
        self.harness.carts = RacingCartRepository(self.harness.clock)
        self.harness.binder.carts = self.harness.carts
        self.store.carts = self.harness.carts
        cart, created = self.store.materialize(self.identity)
        self.assertFalse(created)
        self.assertEqual(cart.session_key, "s-1")
        self.assertEqual(len(self.harness.carts.all()), 1)

    def test_delete_removes_lines_and_record(self):
        cart, _ = self.store.materialize(self.identity)
        self.harness.items.create(
            cart=cart, product_type="product", product_id="1", quantity=1, price=1, attributes={}
        )
        self.store.delete(cart)
        self.assertIsNone(self.harness.carts.get(id=cart.id))
        self.assertEqual(self.harness.items.list_for_cart(cart.id), [])

    def test_current_without_binding_is_none(self):
        self.assertIsNone(self.store.current(Identity(session_key="nobody")))


class IdentityLockTests(unittest.TestCase):
    def setUp(self):
        self.cache = LocMemCache(f"lock-tests-{id(self)}", {})
        self.lock = IdentityLock(self.cache, timeout=5, wait=0, poll_interval=0.001)

    def test_hold_and_release(self):
        with self.lock.hold("session:a", "user:1"):
            self.assertTrue(self.lock.is_held("session:a"))
            self.assertTrue(self.lock.is_held("user:1"))
        self.assertFalse(self.lock.is_held("session:a"))
        self.assertFalse(self.lock.is_held("user:1"))

    def test_contended_key_raises_busy(self):
        with self.lock.hold("session:a"):
            with self.assertRaises(CartBusy):
                with self.lock.hold("session:a"):
                    pass
            self.assertTrue(self.lock.is_held("session:a"))

    def test_partial_acquisition_is_rolled_back(self):
        with self.lock.hold("user:1"):
            with self.assertRaises(CartBusy):
                with self.lock.hold("session:a", "user:1"):
                    pass
            self.assertFalse(self.lock.is_held("session:a"))

    def test_foreign_token_is_not_released(self):
        with self.lock.hold("session:a"):
            self.cache.set("cart-lock:session:a", "someone-else")
        self.assertTrue(self.lock.is_held("session:a"))

    def test_no_keys_is_a_noop(self):
        with self.lock.hold():
            pass

    def test_built_from_settings(self):
        lock = build_identity_lock(CartSettings(lock_timeout=3, lock_wait=0.5))
        self.assertEqual(lock.timeout, 3)
        self.assertEqual(lock.wait, 0.5)
