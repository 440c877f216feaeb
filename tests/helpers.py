"""Fake GitHub payloads and a route-table transport handler."""

from __future__ import annotations

import base64
from collections.abc import Callable

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def repo_payload(owner: str = "o", name: str = "r", **overrides) -> dict:
    payload = {
        "name": name,
        "full_name": f"{owner}/{name}",
        "description": f"The {name} project",
        "html_url": f"https://github.com/{owner}/{name}",
        "homepage": "",
        "stargazers_count": 5,
        "updated_at": "2024-01-01T00:00:00Z",
        "pushed_at": "2024-02-01T00:00:00Z",
        "default_branch": "main",
    }
    payload.update(overrides)
    return payload


def readme_payload(text: str) -> dict:
    return {
        "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
        "encoding": "base64",
        "path": "README.md",
    }


class Recorder:
    """MockTransport handler that answers from a route table and keeps every request."""

    def __init__(self, routes: dict[str, object]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

