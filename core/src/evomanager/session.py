from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Final
from urllib.parse import urlparse

import httpx

from evomanager.instance_key import verify_instance_key
from evomanager.models import (
    InvalidGlobalKey,
    InvalidNoMatch,
    InvalidResponse,
    Session,
    Valid,
)
from evomanager.server import verify_server
from evomanager.token_store import TokenStore

logger = logging.getLogger(__name__)

SERVER_URL_FIELD: Final[str] = "serverUrl"
API_KEY_FIELD: Final[str] = "apiKey"

INVALID_SERVER: Final[str] = "Invalid server"
GLOBAL_KEY_DETECTED: Final[str] = "Global key detected"
INVALID_CREDENTIALS: Final[str] = "Invalid credentials"
NO_INSTANCE_FOUND: Final[str] = "No instance found"

INVALID_URL: Final[str] = "Invalid URL"
SERVER_URL_REQUIRED: Final[str] = "Server URL is required"
API_KEY_REQUIRED: Final[str] = "API key is required"

LOGIN_PATH: Final[str] = "/manager/login"


def _is_http_url(raw: str) -> bool:
    try:
        parsed = urlparse(raw)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def validate_login_input(server_url: str, api_key: str) -> dict[str, str]:
    """Field errors for a login attempt, checked before any request is sent."""

    errors: dict[str, str] = {}
    if not server_url:
        errors[SERVER_URL_FIELD] = SERVER_URL_REQUIRED
    elif not _is_http_url(server_url):
        errors[SERVER_URL_FIELD] = INVALID_URL
    if not api_key:
        errors[API_KEY_FIELD] = API_KEY_REQUIRED
    return errors


def _non_empty_str(value: object) -> bool:
    return isinstance(value, str) and bool(value)


def instance_dashboard_path(instance_id: str) -> str:
    return f"/manager/instance/{instance_id}/dashboard"


@dataclass(frozen=True)
class LoginSuccess:
    target: str
    session: Session


@dataclass(frozen=True)
class LoginFailure:
    field_errors: dict[str, str] = field(default_factory=dict)


type LoginResult = LoginSuccess | LoginFailure


class SessionOrchestrator:
    """Runs server check, key classification and session persistence in order.

    Each step only runs when the previous one succeeded. The store is touched
    twice at most: cleared when the server check fails, saved on success.
    """

    def __init__(self, store: TokenStore, client: httpx.AsyncClient) -> None:
        self.store = store
        self.client = client

    async def login(self, url: str, apikey: str) -> LoginResult:
        server = await verify_server(self.client, url)
        if server is None:
            # A failed re-login must not leave the previous session reachable.
            self.store.clear()
            logger.warning("Login rejected: %s is not a compatible server", url)
            return LoginFailure({SERVER_URL_FIELD: INVALID_SERVER})

        validation = await verify_instance_key(self.client, url, apikey)
        match validation:
            case Valid(instance=instance):
                pass
            case InvalidGlobalKey():
                logger.warning("Login rejected on %s: key has cluster-wide scope", url)
                return LoginFailure({API_KEY_FIELD: GLOBAL_KEY_DETECTED})
            case InvalidNoMatch(error=error) | InvalidResponse(error=error):
                logger.warning("Login rejected on %s: %s", url, error)
                return LoginFailure({API_KEY_FIELD: INVALID_CREDENTIALS})

        # A session without id or token would fail the route guard right after "success".
        if (
            instance is None
            or not _non_empty_str(instance.id)
            or not _non_empty_str(instance.token)
        ):
            logger.warning("Login rejected on %s: validation carried no instance", url)
            return LoginFailure({API_KEY_FIELD: NO_INSTANCE_FOUND})

        session = Session(
            api_url=url,
            instance_token=instance.token,
            instance_id=instance.id,
            instance_name=instance.name if isinstance(instance.name, str) else "",
            version=server.version,
            client_name=server.client_name,
        )
        self.store.save(session)
        logger.info(
            "Logged in to instance %s (%s) on %s, server version %s",
            instance.id,
            instance.name,
            url,
            server.version,
        )
        return LoginSuccess(target=instance_dashboard_path(instance.id), session=session)


def logout(store: TokenStore) -> None:
    store.clear()
    logger.info("Session cleared")
