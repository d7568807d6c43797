from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel


class Session(BaseModel):
    """Credentials and metadata needed to address one instance.

    Persisted as a whole by the token store; never partially updated.
    """

    api_url: str
    instance_token: str
    instance_id: str
    instance_name: str
    version: str
    client_name: str | None = None


@dataclass(frozen=True)
class ServerInfo:
    version: str
    client_name: str | None = None


@dataclass(frozen=True)
class InstanceData:
    """One fetchInstances record, copied as received (fields may be missing)."""

    id: str | None
    name: str | None
    token: str | None
    connection_status: str | None


@dataclass(frozen=True)
class Valid:
    instance: InstanceData | None


@dataclass(frozen=True)
class InvalidNoMatch:
    error: str


@dataclass(frozen=True)
class InvalidGlobalKey:
    error: str


@dataclass(frozen=True)
class InvalidResponse:
    error: str


type InstanceValidation = Valid | InvalidNoMatch | InvalidGlobalKey | InvalidResponse
