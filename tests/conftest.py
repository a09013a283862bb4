"""Pytest fixtures for the PrintPal client tests."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest
import structlog

from printpal.client import PrintPalClient

API_BASE = "https://api.printpal.test"
API_KEY = "pp_test_key"

Reply = Union[Tuple[int, Any], Callable[[httpx.Request], Any]]


class FakePrintPal:
    """In-memory stand-in for the remote service, served through httpx.MockTransport.

    Each route holds a queue of replies; the last reply repeats once the
    queue is drained.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *replies: Reply) -> None:
        self.routes.setdefault((method.upper(), path), []).extend(replies)

    def json(self, method: str, path: str, *payloads: Any, status: int = 200) -> None:
        self.add(method, path, *[(status, payload) for payload in payloads])

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method.upper() and request.url.path == path
        ]

    def _handle(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        status, body = reply
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by configure_logging so tests stay isolated."""

    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if type(h) is logging.StreamHandler]:
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()


@pytest.fixture
def service() -> FakePrintPal:
    return FakePrintPal()


@pytest.fixture
def make_client(service: FakePrintPal) -> Callable[..., PrintPalClient]:
    """Build clients wired to the fake service."""

    def _make(**kwargs: Any) -> PrintPalClient:
        kwargs.setdefault("timeout", 5.0)
        return PrintPalClient(API_KEY, base_url=API_BASE, transport=service.transport, **kwargs)

    return _make


@pytest.fixture
def client(make_client) -> PrintPalClient:
    return make_client()


@pytest.fixture
def generate_payload() -> Callable[..., Dict[str, Any]]:
    """Build a ``POST /api/generate`` response body."""

    def _build(uid: str = "abcdef1234567890", **overrides: Any) -> Dict[str, Any]:
        payload = {
            "generation_uid": uid,
            "status": "pending",
            "quality": "default",
            "credits_used": 4,
            "credits_remaining": 96,
            "estimated_time_seconds": 20,
            "status_url": f"/api/generate/{uid}/status",
            "download_url": f"/api/generate/{uid}/download",
        }
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image-bytes")
    return path
