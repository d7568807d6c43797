from __future__ import annotations

import logging
from typing import Any

import httpx

from evomanager.http_client import normalize_base_url
from evomanager.models import (
    InstanceData,
    InstanceValidation,
    InvalidGlobalKey,
    InvalidNoMatch,
    InvalidResponse,
    Valid,
)

logger = logging.getLogger(__name__)

FETCH_INSTANCES_PATH = "/instance/fetchInstances"


def classify_instances(data: Any) -> InstanceValidation:
    """Classify a fetchInstances payload by how many instances the key resolves to.

    A key that sees several instances is a global key: valid for the server, but
    it cannot be bound to a single session.
    """

    if not isinstance(data, list):
        return InvalidResponse(error="Invalid API response")

    if len(data) == 0:
        return InvalidNoMatch(error="No instance found with this key")

    if len(data) > 1:
        return InvalidGlobalKey(error="Global API Key detected")

    record = data[0]
    if not isinstance(record, dict):
        return InvalidResponse(error="Invalid API response")

    return Valid(
        instance=InstanceData(
            id=record.get("id"),
            name=record.get("name"),
            token=record.get("token"),
            connection_status=record.get("connectionStatus"),
        )
    )


async def verify_instance_key(
    client: httpx.AsyncClient, url: str, apikey: str
) -> InstanceValidation:
    endpoint = f"{normalize_base_url(url)}{FETCH_INSTANCES_PATH}"
    try:
        response = await client.get(endpoint, headers={"apikey": apikey})
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Instance lookup rejected by %s with status %s",
            endpoint,
            exc.response.status_code,
        )
        return InvalidResponse(error="Authentication failed")
    except httpx.HTTPError:
        logger.exception("Error verifying instance key against %s", endpoint)
        return InvalidResponse(error="Authentication failed")
    except httpx.InvalidURL as exc:
        logger.warning("Instance lookup skipped, invalid URL %s: %s", endpoint, exc)
        return InvalidResponse(error="Authentication failed")
    except ValueError:
        logger.warning("Instance lookup at %s returned a non-JSON body", endpoint)
        return InvalidResponse(error="Invalid API response")

    result = classify_instances(data)
    if not isinstance(result, Valid):
        logger.info("Instance key rejected by %s: %s", endpoint, result.error)
    return result
