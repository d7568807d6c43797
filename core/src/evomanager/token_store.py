from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from evomanager.models import Session

logger = logging.getLogger(__name__)


class TokenId(str, Enum):
    API_URL = "apiUrl"
    INSTANCE_TOKEN = "instanceToken"
    INSTANCE_ID = "instanceId"
    INSTANCE_NAME = "instanceName"
    VERSION = "version"
    CLIENT_NAME = "clientName"


REQUIRED_TOKENS: tuple[TokenId, ...] = (
    TokenId.API_URL,
    TokenId.INSTANCE_TOKEN,
    TokenId.INSTANCE_ID,
    TokenId.VERSION,
)


class TokenStore(Protocol):
    def save(self, session: Session) -> None: ...

    def read(self, token_id: TokenId) -> str | None: ...

    def clear(self) -> None: ...


def _session_to_record(session: Session) -> dict[str, str]:
    record = {
        TokenId.API_URL.value: session.api_url,
        TokenId.INSTANCE_TOKEN.value: session.instance_token,
        TokenId.INSTANCE_ID.value: session.instance_id,
        TokenId.INSTANCE_NAME.value: session.instance_name,
        TokenId.VERSION.value: session.version,
    }
    if session.client_name is not None:
        record[TokenId.CLIENT_NAME.value] = session.client_name
    return record


class InMemoryTokenStore:
    def __init__(self) -> None:
        self._record: dict[str, str] = {}

    def save(self, session: Session) -> None:
        # Rebind instead of mutating so a reader sees either the old or the new record.
        self._record = _session_to_record(session)

    def read(self, token_id: TokenId) -> str | None:
        return self._record.get(TokenId(token_id).value)

    def clear(self) -> None:
        self._record = {}


class JsonFileTokenStore:
    """Session record persisted as a single JSON object on disk.

    `save` replaces the file atomically (temp file + os.replace), so the record
    on disk is always either the previous session or the new one.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def save(self, session: Session) -> None:
        payload = json.dumps(_session_to_record(session), indent=2, sort_keys=True) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable session file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring session file %s: expected a JSON object", self.path)
            return {}
        return data

    def read(self, token_id: TokenId) -> str | None:
        value = self._load().get(TokenId(token_id).value)
        if not isinstance(value, str):
            return None
        return value

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def load_session(store: TokenStore) -> Session | None:
    values = {token_id: store.read(token_id) for token_id in TokenId}
    if not all(values[t] for t in REQUIRED_TOKENS):
        return None
    return Session(
        api_url=values[TokenId.API_URL] or "",
        instance_token=values[TokenId.INSTANCE_TOKEN] or "",
        instance_id=values[TokenId.INSTANCE_ID] or "",
        instance_name=values[TokenId.INSTANCE_NAME] or "",
        version=values[TokenId.VERSION] or "",
        client_name=values[TokenId.CLIENT_NAME],
    )
