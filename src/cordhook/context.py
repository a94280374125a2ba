"""Per-request handles passed to interaction handlers.

A handle wraps one classified interaction plus the REST client. What a
handler may do with it depends on the interaction kind; each kind composes
only the capabilities that are valid for it:

============================  =====  ==============  =====  ============
handle                        reply  message update  modal  autocomplete
============================  =====  ==============  =====  ============
ChatInput/User/MessageCommand   x                      x
Component                       x          x           x
ModalSubmit                     x          x
Autocomplete                                                     x
============================  =====  ==============  =====  ============

Response calls move the handle through ``ResponseState``; calls that are not
valid in the current state raise ``InvalidResponseState`` instead of being
sent to the platform.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional, Union

from .constants import (
    DISCORD_EPHEMERAL_FLAG,
    DISCORD_MAX_AUTOCOMPLETE_CHOICES,
    ORIGINAL_MESSAGE_ID,
    CallbackType,
)
from .errors import InvalidResponseState
from .interactions import (
    AutocompleteInteraction,
    ChatInputCommandInteraction,
    ComponentInteraction,
    InteractionEnvelope,
    MessageCommandInteraction,
    ModalSubmitInteraction,
    UserCommandInteraction,
)
from .modal_fields import ModalFieldResolver
from .options import OptionResolver
from .rest import DiscordRestClient

MessageContent = Union[str, dict[str, Any]]


class ResponseState(str, Enum):
    NOT_RESPONDED = "not_responded"
    DEFERRED = "deferred"
    REPLIED = "replied"


def _message_data(content: MessageContent, *, ephemeral: bool = False) -> dict[str, Any]:
    data = {"content": content} if isinstance(content, str) else dict(content)
    if ephemeral:
        data["flags"] = int(data.get("flags") or 0) | DISCORD_EPHEMERAL_FLAG
    return data


def _parse_timestamp(value: object) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ResponseTracker:
    """Owns the response state of one interaction and sends its initial callback."""

    def __init__(self, envelope: InteractionEnvelope, rest: DiscordRestClient) -> None:
        self._envelope = envelope
        self._rest = rest
        self._state = ResponseState.NOT_RESPONDED
        self._callback_response: Optional[dict[str, Any]] = None

    @property
    def envelope(self) -> InteractionEnvelope:
        return self._envelope

    @property
    def rest(self) -> DiscordRestClient:
        return self._rest

    @property
    def response_state(self) -> ResponseState:
        return self._state

    @property
    def callback_response(self) -> Optional[dict[str, Any]]:
        """What the platform returned for the initial response, if one was sent."""
        return self._callback_response

    @property
    def id(self) -> str:
        return self._envelope.id

    @property
    def token(self) -> str:
        return self._envelope.token

    @property
    def application_id(self) -> str:
        return self._envelope.application_id

    def _require_state(self, action: str, *allowed: ResponseState) -> None:
        if self._state not in allowed:
            raise InvalidResponseState(
                f"Cannot {action} interaction {self.id} in state {self._state.value}"
            )

    async def _send_callback(
        self,
        action: str,
        callback_type: CallbackType,
        data: Optional[dict[str, Any]],
        next_state: ResponseState,
    ) -> dict[str, Any]:
        self._require_state(action, ResponseState.NOT_RESPONDED)
        payload: dict[str, Any] = {"type": int(callback_type)}
        if data is not None:
            payload["data"] = data
        response = await self._rest.create_interaction_response(
            interaction_id=self.id,
            interaction_token=self.token,
            payload=payload,
        )
        self._state = next_state
        self._callback_response = response
        return response


class InteractionContext(ResponseTracker):
    """Identity, actor and location accessors shared by every handle."""

    @property
    def user(self) -> dict[str, Any]:
        return self._envelope.user

    @property
    def user_id(self) -> Optional[str]:
        return self._envelope.user_id

    @property
    def member(self) -> Optional[dict[str, Any]]:
        return self._envelope.member

    @property
    def guild_id(self) -> Optional[str]:
        return self._envelope.guild_id

    @property
    def channel_id(self) -> Optional[str]:
        return self._envelope.channel_id

    @property
    def locale(self) -> Optional[str]:
        return self._envelope.locale

    @property
    def guild_locale(self) -> Optional[str]:
        return self._envelope.guild_locale

    @property
    def app_permissions(self) -> Optional[str]:
        return self._envelope.app_permissions

    def in_guild(self) -> bool:
        return bool(self._envelope.guild_id)

    def in_dm(self) -> bool:
        return not self.in_guild()

    def app_entitlements(self) -> list[dict[str, Any]]:
        return [
            entitlement
            for entitlement in self._envelope.entitlements
            if str(entitlement.get("application_id")) == self.application_id
        ]

    def _active_entitlements(self, key: str, owner_id: Optional[str]) -> bool:
        if not owner_id:
            return False
        now = datetime.now(timezone.utc)
        for entitlement in self.app_entitlements():
            if str(entitlement.get(key)) != owner_id:
                continue
            ends_at = _parse_timestamp(entitlement.get("ends_at"))
            if ends_at is None or ends_at > now:
                return True
        return False

    def user_has_premium(self) -> bool:
        return self._active_entitlements("user_id", self.user_id)

    def guild_has_premium(self) -> bool:
        return self._active_entitlements("guild_id", self.guild_id)


class ReplyCapable(ResponseTracker):
    """Initial replies, deferrals, edits, deletes and follow-ups."""

    async def reply(
        self, content: MessageContent, ephemeral: bool = True
    ) -> dict[str, Any]:
        return await self._send_callback(
            "reply",
            CallbackType.CHANNEL_MESSAGE_WITH_SOURCE,
            _message_data(content, ephemeral=ephemeral),
            ResponseState.REPLIED,
        )

    async def defer_reply(self, ephemeral: bool = True) -> dict[str, Any]:
        return await self._send_callback(
            "defer",
            CallbackType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
            {"flags": DISCORD_EPHEMERAL_FLAG} if ephemeral else None,
            ResponseState.DEFERRED,
        )

    async def edit_reply(
        self, content: MessageContent, message_id: str = ORIGINAL_MESSAGE_ID
    ) -> dict[str, Any]:
        self._require_state("edit", ResponseState.DEFERRED, ResponseState.REPLIED)
        message = await self._rest.edit_interaction_message(
            application_id=self.application_id,
            interaction_token=self.token,
            payload=_message_data(content),
            message_id=message_id,
        )
        self._state = ResponseState.REPLIED
        return message

    async def delete_reply(self, message_id: str = ORIGINAL_MESSAGE_ID) -> None:
        self._require_state("delete", ResponseState.DEFERRED, ResponseState.REPLIED)
        await self._rest.delete_interaction_message(
            application_id=self.application_id,
            interaction_token=self.token,
            message_id=message_id,
        )

    async def follow_up(
        self, content: MessageContent, ephemeral: bool = False
    ) -> dict[str, Any]:
        self._require_state("follow up", ResponseState.DEFERRED, ResponseState.REPLIED)
        return await self._rest.create_followup_message(
            application_id=self.application_id,
            interaction_token=self.token,
            payload=_message_data(content, ephemeral=ephemeral),
        )


class MessageUpdateCapable(ResponseTracker):
    """Updating the message a component or modal was attached to."""

    async def update(self, content: MessageContent) -> dict[str, Any]:
        return await self._send_callback(
            "update",
            CallbackType.UPDATE_MESSAGE,
            _message_data(content),
            ResponseState.REPLIED,
        )

    async def defer_update(self) -> dict[str, Any]:
        return await self._send_callback(
            "defer update",
            CallbackType.DEFERRED_UPDATE_MESSAGE,
            None,
            ResponseState.DEFERRED,
        )


class ModalCapable(ResponseTracker):
    async def show_modal(self, modal: dict[str, Any]) -> dict[str, Any]:
        return await self._send_callback(
            "show modal", CallbackType.MODAL, dict(modal), ResponseState.REPLIED
        )


class AutocompleteCapable(ResponseTracker):
    async def respond(self, choices: Iterable[dict[str, Any]]) -> dict[str, Any]:
        selected = list(choices)[:DISCORD_MAX_AUTOCOMPLETE_CHOICES]
        return await self._send_callback(
            "respond to",
            CallbackType.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT,
            {"choices": selected},
            ResponseState.REPLIED,
        )

    @property
    def responded(self) -> bool:
        return self._state is not ResponseState.NOT_RESPONDED


class ChatInputContext(InteractionContext, ReplyCapable, ModalCapable):
    def __init__(
        self, interaction: ChatInputCommandInteraction, rest: DiscordRestClient
    ) -> None:
        super().__init__(interaction.envelope, rest)
        self.interaction = interaction
        self.options = OptionResolver(interaction.options, interaction.resolved)

    @property
    def command_name(self) -> str:
        return self.interaction.command_name

    @property
    def command_id(self) -> Optional[str]:
        return self.interaction.command_id


class UserCommandContext(InteractionContext, ReplyCapable, ModalCapable):
    def __init__(
        self, interaction: UserCommandInteraction, rest: DiscordRestClient
    ) -> None:
        super().__init__(interaction.envelope, rest)
        self.interaction = interaction

    @property
    def command_name(self) -> str:
        return self.interaction.command_name

    @property
    def target_user(self) -> dict[str, Any]:
        return self.interaction.target_user

    @property
    def target_member(self) -> Optional[dict[str, Any]]:
        return self.interaction.target_member


class MessageCommandContext(InteractionContext, ReplyCapable, ModalCapable):
    def __init__(
        self, interaction: MessageCommandInteraction, rest: DiscordRestClient
    ) -> None:
        super().__init__(interaction.envelope, rest)
        self.interaction = interaction

    @property
    def command_name(self) -> str:
        return self.interaction.command_name

    @property
    def target_message(self) -> dict[str, Any]:
        return self.interaction.target_message


class AutocompleteContext(InteractionContext, AutocompleteCapable):
    def __init__(
        self, interaction: AutocompleteInteraction, rest: DiscordRestClient
    ) -> None:
        super().__init__(interaction.envelope, rest)
        self.interaction = interaction
        self.options = OptionResolver(interaction.options, interaction.resolved)

    @property
    def command_name(self) -> str:
        return self.interaction.command_name


class ComponentContext(
    InteractionContext, ReplyCapable, MessageUpdateCapable, ModalCapable
):
    def __init__(
        self, interaction: ComponentInteraction, rest: DiscordRestClient
    ) -> None:
        super().__init__(interaction.envelope, rest)
        self.interaction = interaction

    @property
    def custom_id(self) -> str:
        return self.interaction.custom_id

    @property
    def values(self) -> tuple[str, ...]:
        return self.interaction.values

    @property
    def message(self) -> Optional[dict[str, Any]]:
        return self.interaction.message


class ModalSubmitContext(InteractionContext, ReplyCapable, MessageUpdateCapable):
    def __init__(
        self, interaction: ModalSubmitInteraction, rest: DiscordRestClient
    ) -> None:
        super().__init__(interaction.envelope, rest)
        self.interaction = interaction
        self.fields = ModalFieldResolver(interaction.components, interaction.resolved)

    @property
    def custom_id(self) -> str:
        return self.interaction.custom_id

    @property
    def message(self) -> Optional[dict[str, Any]]:
        return self.interaction.message


HandlerContext = Union[
    ChatInputContext,
    UserCommandContext,
    MessageCommandContext,
    AutocompleteContext,
    ComponentContext,
    ModalSubmitContext,
]
