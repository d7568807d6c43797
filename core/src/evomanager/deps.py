from __future__ import annotations

import httpx
from fastapi import HTTPException, Request

from evomanager.guard import LoginRequired, is_authorized
from evomanager.session import SessionOrchestrator
from evomanager.token_store import TokenStore


def get_token_store(request: Request) -> TokenStore:
    store = getattr(request.app.state, "token_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Token store not initialized")
    return store


def get_http_client(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise HTTPException(status_code=500, detail="HTTP client not initialized")
    return client


def get_orchestrator(request: Request) -> SessionOrchestrator:
    return SessionOrchestrator(get_token_store(request), get_http_client(request))


async def require_session(request: Request) -> TokenStore:
    """Route guard for protected pages: raises LoginRequired unless a full session exists."""

    store = get_token_store(request)
    if not is_authorized(store):
        raise LoginRequired()
    return store
