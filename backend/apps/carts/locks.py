from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from django.core.cache import cache as default_cache

from apps.common import get_logger

from .exceptions import CartBusy

logger = get_logger(__name__).bind(component="carts", layer="lock")


class IdentityLock:
    """Per-identity mutual exclusion built on the Django cache.

    ``cache.add`` only writes when the key is absent, which makes it an atomic
    test-and-set on Redis and on the local-memory backend. Locks expire after
    ``timeout`` seconds so a crashed worker cannot wedge an identity.
    """

    def __init__(
        self,
        cache: Any = None,
        *,
        timeout: float = 10.0,
        wait: float = 5.0,
        poll_interval: float = 0.01,
        prefix: str = "cart-lock",
    ):
        self.cache = cache or default_cache
        self.timeout = timeout
        self.wait = wait
        self.poll_interval = poll_interval
        self.prefix = prefix

    def _cache_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _acquire(self, key: str, token: str) -> bool:
        deadline = time.monotonic() + self.wait
        while True:
            if self.cache.add(key, token, self.timeout):
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(self.poll_interval)

    def _release(self, key: str, token: str) -> None:
        if self.cache.get(key) == token:
            self.cache.delete(key)

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Hold every key for the duration of the block.

        Keys are taken in sorted order so two callers locking overlapping
        sets cannot deadlock each other.
        """
        token = uuid.uuid4().hex
        held: List[str] = []
        try:
            for key in sorted(set(keys)):
                cache_key = self._cache_key(key)
                if not self._acquire(cache_key, token):
                    logger.warning("Cart lock wait exceeded", key=key, wait=self.wait)
                    raise CartBusy(
                        "The cart is being modified by another request", key=key
                    )
                held.append(cache_key)
            yield
        finally:
            for cache_key in reversed(held):
                self._release(cache_key, token)

    def is_held(self, key: str) -> bool:
        return self.cache.get(self._cache_key(key)) is not None


def build_identity_lock(settings: Optional[Any] = None) -> IdentityLock:
    if settings is None:
        return IdentityLock()
    return IdentityLock(timeout=settings.lock_timeout, wait=settings.lock_wait)
