from __future__ import annotations

import httpx

from evomanager.config import HttpConfig


def build_async_client(
    config: HttpConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared `httpx.AsyncClient` used to talk to Evolution API servers.

    Timeouts and default headers are decided here; the verifiers only issue requests.
    `transport` lets tests plug in an `httpx.MockTransport`.
    """

    config = config or HttpConfig()
    headers = {
        "User-Agent": config.user_agent,
        "Accept": "application/json",
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def normalize_base_url(url: str) -> str:
    return url[:-1] if url.endswith("/") else url
