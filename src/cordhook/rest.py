from __future__ import annotations

import logging
from typing import Any, Optional

import anyio
import httpx

from .constants import (
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DISCORD_API_BASE_URL,
    ORIGINAL_MESSAGE_ID,
)
from .errors import DiscordAPIError, InteractionTimeout

logger = logging.getLogger(__name__)


async def _log_request(request: httpx.Request) -> None:
    logger.debug("[REST] %s %s", request.method, request.url.path)


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug(
        "[REST] %s %s -> %d %s",
        request.method,
        request.url.path,
        response.status_code,
        response.reason_phrase,
    )


class DiscordRestClient:
    """Bot-authenticated calls to the Discord REST API.

    Every call is attempted once and bounded by ``timeout_seconds``; a call
    that exceeds it raises ``InteractionTimeout``.
    """

    def __init__(
        self,
        *,
        bot_token: str,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        base_url: str = DISCORD_API_BASE_URL,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        event_hooks: dict[str, list[Any]] = {"request": [], "response": []}
        if debug:
            event_hooks = {"request": [_log_request], "response": [_log_response]}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
            event_hooks=event_hooks,
        )
        self._authorization_header = f"Bot {bot_token}"
        self._timeout_seconds = timeout_seconds

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DiscordRestClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | list[dict[str, Any]] | None = None,
        params: Optional[dict[str, str]] = None,
        expect_json: bool = True,
    ) -> Any:
        try:
            # httpx timeouts apply per phase; this bounds the whole call.
            with anyio.fail_after(self._timeout_seconds):
                response = await self._client.request(
                    method,
                    path,
                    json=payload,
                    params=params,
                    headers={"Authorization": self._authorization_header},
                )
            response.raise_for_status()
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise InteractionTimeout(
                f"Discord API call timed out for {method} {path}"
            ) from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            body_preview = (exc.response.text or "").strip().replace("\n", " ")[:200]
            raise DiscordAPIError(
                f"Discord API request failed for {method} {path}: "
                f"status={status_code} body={body_preview!r}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise DiscordAPIError(
                f"Discord API network error for {method} {path}: {exc}"
            ) from exc

        if not expect_json or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise DiscordAPIError(
                f"Discord API returned non-JSON success response for {method} {path}",
                status_code=response.status_code,
            ) from exc

    async def list_application_commands(
        self, *, application_id: str, guild_id: str | None = None
    ) -> list[dict[str, Any]]:
        path = (
            f"/applications/{application_id}/commands"
            if guild_id is None
            else f"/applications/{application_id}/guilds/{guild_id}/commands"
        )
        payload = await self._request("GET", path)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def bulk_overwrite_application_commands(
        self,
        *,
        application_id: str,
        commands: list[dict[str, Any]],
        guild_id: str | None = None,
    ) -> list[dict[str, Any]]:
        path = (
            f"/applications/{application_id}/commands"
            if guild_id is None
            else f"/applications/{application_id}/guilds/{guild_id}/commands"
        )
        payload = await self._request("PUT", path, payload=commands)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def create_interaction_response(
        self,
        *,
        interaction_id: str,
        interaction_token: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"/interactions/{interaction_id}/{interaction_token}/callback",
            payload=payload,
            params={"with_response": "true"},
        )
        return response if isinstance(response, dict) else {}

    async def create_followup_message(
        self,
        *,
        application_id: str,
        interaction_token: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"/webhooks/{application_id}/{interaction_token}",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def edit_interaction_message(
        self,
        *,
        application_id: str,
        interaction_token: str,
        payload: dict[str, Any],
        message_id: str = ORIGINAL_MESSAGE_ID,
    ) -> dict[str, Any]:
        response = await self._request(
            "PATCH",
            f"/webhooks/{application_id}/{interaction_token}/messages/{message_id}",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def delete_interaction_message(
        self,
        *,
        application_id: str,
        interaction_token: str,
        message_id: str = ORIGINAL_MESSAGE_ID,
    ) -> None:
        await self._request(
            "DELETE",
            f"/webhooks/{application_id}/{interaction_token}/messages/{message_id}",
            expect_json=False,
        )
