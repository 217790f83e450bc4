from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Optional, Tuple

# Session entry holding the cart token. Django keeps session data across the
# key rotation done by login() and drops it on logout()'s flush.
SESSION_TOKEN_KEY = "cart_session"


@dataclass(frozen=True)
class Identity:
    """The (session, optional user) pair every cart operation is scoped to."""

    session_key: Optional[str] = None
    user_id: Optional[int] = None

    @property
    def has_session(self) -> bool:
        return bool(self.session_key)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def lock_keys(self, include_user: bool = False) -> Tuple[str, ...]:
        keys = []
        if self.session_key:
            keys.append(f"session:{self.session_key}")
        if include_user and self.user_id is not None:
            keys.append(f"user:{self.user_id}")
        return tuple(keys)

    def with_user(self, user_id: Optional[int]) -> "Identity":
        return Identity(session_key=self.session_key, user_id=user_id)


def session_token(request: Any, create: bool = False) -> Optional[str]:
    session = getattr(request, "session", None)
    if session is None:
        return None
    token = session.get(SESSION_TOKEN_KEY)
    if not token and create:
        token = secrets.token_hex(16)
        session[SESSION_TOKEN_KEY] = token
    return token or None


def identity_from_request(
    request: Any, create: bool = False, user: Any = None
) -> Identity:
    """Build the identity for a request.

    Read paths pass ``create=False`` so anonymous visitors who never add
    anything do not get a session written for them.
    """
    if user is None:
        user = getattr(request, "user", None)
    user_id = None
    if user is not None and getattr(user, "is_authenticated", False):
        user_id = user.pk
    return Identity(session_key=session_token(request, create=create), user_id=user_id)
