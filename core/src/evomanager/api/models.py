from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApiError(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ApiResponse[T](BaseModel):
    ok: bool
    data: T | None = None
    error: ApiError | None = None


def ok[T](data: T) -> ApiResponse[T]:
    return ApiResponse(ok=True, data=data)


def fail(*, code: str, message: str, details: Any | None = None) -> ApiResponse[None]:
    return ApiResponse(ok=False, error=ApiError(code=code, message=message, details=details))


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    server_url: str = Field(alias="serverUrl", min_length=1)
    api_key: str = Field(alias="apiKey", min_length=1)


class LoginTarget(BaseModel):
    target: str


class SessionInfo(BaseModel):
    """Session details safe to hand to a client (no instance token)."""

    model_config = ConfigDict(populate_by_name=True)

    api_url: str = Field(alias="apiUrl")
    instance_id: str = Field(alias="instanceId")
    instance_name: str = Field(alias="instanceName")
    version: str
    client_name: str | None = Field(default=None, alias="clientName")
