from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from evomanager.home import ManagerPaths


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=9494, ge=1, le=65535)


class HttpConfig(BaseModel):
    """Outbound requests to the Evolution API server."""

    timeout_seconds: float = Field(default=10.0, gt=0)
    user_agent: str = Field(default="evolution-manager/0.1")


class SessionConfig(BaseModel):
    store: Literal["file", "memory"] = Field(
        default="file",
        description="'file' keeps the session across restarts; 'memory' drops it on exit.",
    )
    file_name: str = Field(
        default="session.json",
        description="Session file name, resolved under EVOMANAGER_HOME/config",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class ManagerConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_manager_config(paths: ManagerPaths) -> ManagerConfig:
    """Load config from ${EVOMANAGER_HOME}/config/manager.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.manager_config_path
    if not config_path.exists():
        return ManagerConfig()

    raw = _read_json(config_path)
    return ManagerConfig.model_validate(raw)


def write_manager_config(paths: ManagerPaths, config: ManagerConfig) -> None:
    """Persist config to ${EVOMANAGER_HOME}/config/manager.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.manager_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def resolve_session_path(paths: ManagerPaths, config: ManagerConfig) -> Path:
    name = (config.session.file_name or "").strip() or "session.json"
    return paths.config_dir / name
