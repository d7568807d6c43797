from __future__ import annotations

from typing import Any

import httpx
import pytest


class FakeEvolutionServer:
    """In-process stand-in for an Evolution API server, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.info: Any = {"version": "1.2.0", "clientName": "evolution_exchange"}
        self.info_status = 200
        self.info_unreachable = False
        self.instances: Any = []
        self.instances_status = 200
        self.instances_unreachable = False
        self.requests: list[httpx.Request] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/":
            if self.info_unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(self.info_status, json=self.info)

        if path == "/instance/fetchInstances":
            if self.instances_unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(self.instances_status, json=self.instances)

        return httpx.Response(404, json={"message": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def evolution_server() -> FakeEvolutionServer:
    return FakeEvolutionServer()


@pytest.fixture
def single_instance() -> dict[str, str]:
    return {"id": "abc", "name": "Main", "token": "tok1", "connectionStatus": "open"}
