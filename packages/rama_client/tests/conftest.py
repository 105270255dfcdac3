"""Shared fixtures for rama_client tests."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from rama_client.config import ClientConfig
from rama_client.infrastructure.cache import TopologyCache

ENTRY_URL = "http://entry:2000"


class ScriptedCluster:
    """httpx mock-transport handler that replays scripted responses.

    Every request is recorded. Once the script is exhausted, ``fallback`` (if
    any) answers the remaining requests.
    """

    def __init__(
        self,
        responses: list[httpx.Response] | None = None,
        fallback: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses or [])
        self._fallback = fallback

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        if self._fallback is not None:
            return self._fallback(request)
        raise AssertionError(f"Unexpected request to {request.url}")

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    @property
    def hosts(self) -> list[str]:
        return [f"{r.url.host}:{r.url.port}" for r in self.requests]


def redirect(location: str, supervisors: list[str]) -> httpx.Response:
    return httpx.Response(
        308,
        headers={"Location": location, "Supervisor-Locations": json.dumps(supervisors)},
    )


def ok(payload: object) -> httpx.Response:
    return httpx.Response(200, json=payload)


@pytest.fixture
def client_config() -> ClientConfig:
    """Configuration pointing at a fake entry point."""
    return ClientConfig(base_url=ENTRY_URL)


@pytest.fixture
def topology_cache() -> TopologyCache:
    """A fresh cache per test instead of the process-wide one."""
    return TopologyCache()


@pytest.fixture
def scripted_cluster() -> type[ScriptedCluster]:
    return ScriptedCluster


@pytest.fixture
def redirect_response() -> Callable[[str, list[str]], httpx.Response]:
    return redirect


@pytest.fixture
def ok_response() -> Callable[[object], httpx.Response]:
    return ok
