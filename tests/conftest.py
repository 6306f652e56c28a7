"""Shared fixtures: a stub KSeF API behind ``httpx.MockTransport``."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import httpx
import pytest

from ksef_mcp.client.client import KsefClient


@dataclass
class StubApi:
    """Answers every request with a fixed status and body, recording requests."""

    status_code: int = 200
    body: str = "{}"
    error: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def stub_api() -> StubApi:
    return StubApi()


@pytest.fixture
async def client(stub_api: StubApi) -> AsyncIterator[KsefClient]:
    async with KsefClient(transport=httpx.MockTransport(stub_api.handler)) as ksef:
        yield ksef
