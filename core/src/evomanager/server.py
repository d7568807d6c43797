from __future__ import annotations

import logging

import httpx

from evomanager.http_client import normalize_base_url
from evomanager.models import ServerInfo

logger = logging.getLogger(__name__)


async def verify_server(client: httpx.AsyncClient, url: str) -> ServerInfo | None:
    """Fetch the server's root info document.

    Returns None when the server is unreachable, answers with an error status,
    or the body has no usable `version`. Callers treat all of those the same way.
    """

    endpoint = f"{normalize_base_url(url)}/"
    try:
        response = await client.get(endpoint)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Server check failed for %s: %s", endpoint, exc)
        return None
    except ValueError:
        logger.warning("Server check failed for %s: response is not JSON", endpoint)
        return None

    if not isinstance(data, dict):
        logger.warning("Server check failed for %s: unexpected payload", endpoint)
        return None

    version = data.get("version")
    if not isinstance(version, str) or not version:
        logger.warning("Server check failed for %s: no version reported", endpoint)
        return None

    client_name = data.get("clientName")
    return ServerInfo(
        version=version,
        client_name=client_name if isinstance(client_name, str) else None,
    )
