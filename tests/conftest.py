from __future__ import annotations

import httpx
import pytest

from helpers import Handler
from repocatalog.github import GitHubClient


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_client(sleeps: list[float]):
    """Factory for clients backed by a MockTransport; backoff delays land in ``sleeps``."""
    clients: list[GitHubClient] = []

    def _make(handler: Handler, token: str = "") -> GitHubClient:
        client = GitHubClient(
            token, transport=httpx.MockTransport(handler), sleep=sleeps.append
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
