from __future__ import annotations

from evomanager.token_store import REQUIRED_TOKENS, TokenStore


class LoginRequired(Exception):
    """Raised by protected pages when no complete session exists."""


def is_authorized(store: TokenStore) -> bool:
    # Read-only: clearing stale state belongs to the login flow.
    return all(store.read(token_id) for token_id in REQUIRED_TOKENS)
