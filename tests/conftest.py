"""Test harness configuration.

This repo uses a `src/` layout. In some developer environments an older
installed `cordhook` package can shadow the local sources.

Ensure tests always import the in-repo code.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest
from nacl.signing import SigningKey

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 120
TEST_API_BASE_URL = "https://discord.test/api/v10"
TEST_TIMESTAMP = "1700000000"


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    src_path = str(src_dir)
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """
    Apply a default per-test timeout to non-integration tests.

    This relies on `pytest-timeout` when installed; if it isn't installed, the
    marker is inert but still documents the intent.
    """
    _ = session, config
    for item in items:
        if item.get_closest_marker("integration") is not None:
            continue
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


@pytest.fixture()
def signing_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture()
def public_key_hex(signing_key: SigningKey) -> str:
    return signing_key.verify_key.encode().hex()


SignFunc = Callable[..., tuple[dict[str, str], bytes]]


@pytest.fixture()
def sign(signing_key: SigningKey) -> SignFunc:
    """Return a helper producing signed (headers, body) pairs."""
    from cordhook.constants import SIGNATURE_HEADER, TIMESTAMP_HEADER

    def _sign(
        payload: Union[dict[str, Any], bytes], *, timestamp: str = TEST_TIMESTAMP
    ) -> tuple[dict[str, str], bytes]:
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        signature = signing_key.sign(timestamp.encode() + body).signature.hex()
        return {SIGNATURE_HEADER: signature, TIMESTAMP_HEADER: timestamp}, body

    return _sign


@pytest.fixture()
def make_interaction() -> Callable[..., dict[str, Any]]:
    """Build an interaction payload sent from guild-1 by user-1."""

    def _make(
        interaction_type: int,
        data: Optional[dict[str, Any]] = None,
        **extra: Any,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": "int-1",
            "token": "tok-1",
            "application_id": "app-1",
            "type": interaction_type,
            "guild_id": "guild-1",
            "channel_id": "chan-1",
            "member": {"user": {"id": "user-1", "username": "alice"}, "roles": []},
            "locale": "en-US",
            "guild_locale": "en-US",
            "app_permissions": "2048",
            "entitlements": [],
        }
        if data is not None:
            payload["data"] = data
        payload.update(extra)
        return payload

    return _make


@dataclass
class RecordedRequest:
    method: str
    path: str
    params: dict[str, str]
    json: Any
    authorization: Optional[str]


class FakeDiscordAPI:
    """Records REST calls and answers them the way the platform does."""

    def __init__(self) -> None:
        self.requests: list[RecordedRequest] = []
        self.fail_with: Optional[httpx.Response] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.url.path,
                params=dict(request.url.params),
                json=body,
                authorization=request.headers.get("Authorization"),
            )
        )
        if self.fail_with is not None:
            return self.fail_with
        if request.method == "DELETE":
            return httpx.Response(204)
        if request.url.path.endswith("/callback"):
            return httpx.Response(
                200,
                json={
                    "interaction": {"id": request.url.path.split("/")[-3]},
                    "resource": {"type": (body or {}).get("type")},
                },
            )
        if request.method == "PUT":
            return httpx.Response(200, json=body)
        return httpx.Response(200, json={"id": "msg-1", **(body or {})})

    def client(self):
        from cordhook.rest import DiscordRestClient

        return DiscordRestClient(
            bot_token="bot-token",
            base_url=TEST_API_BASE_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture()
def discord_api() -> FakeDiscordAPI:
    return FakeDiscordAPI()
