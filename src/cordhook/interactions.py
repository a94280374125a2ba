"""Interaction payload classification.

Each inbound payload becomes exactly one variant of ``Interaction``. The
variant is chosen from the top-level ``type`` and, for application commands,
``data.type``; anything else is rejected rather than coerced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .constants import ApplicationCommandType, InteractionType
from .errors import MalformedPayload, UnsupportedInteractionType
from .resolved import ResolvedEntityMap


def _as_id(value: object) -> str | None:
    if value is None:
        return None
    token = str(value).strip()
    return token or None


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: object) -> list[Any]:
    return value if isinstance(value, list) else []


def extract_interaction_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("id"))


def extract_interaction_token(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("token"))


def extract_channel_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    channel_id = _as_id(interaction_payload.get("channel_id"))
    if channel_id:
        return channel_id
    return _as_id(_as_dict(interaction_payload.get("channel")).get("id"))


def extract_guild_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("guild_id"))


def extract_user(interaction_payload: dict[str, Any]) -> dict[str, Any]:
    member_user = _as_dict(_as_dict(interaction_payload.get("member")).get("user"))
    if member_user:
        return member_user
    return _as_dict(interaction_payload.get("user"))


@dataclass(frozen=True)
class InteractionEnvelope:
    """Fields every interaction carries, whatever its kind."""

    id: str
    token: str
    application_id: str
    type: InteractionType
    user: dict[str, Any]
    member: Optional[dict[str, Any]]
    guild_id: Optional[str]
    channel_id: Optional[str]
    guild: Optional[dict[str, Any]]
    locale: Optional[str]
    guild_locale: Optional[str]
    app_permissions: Optional[str]
    entitlements: tuple[dict[str, Any], ...]
    raw: dict[str, Any] = field(repr=False)

    @property
    def user_id(self) -> Optional[str]:
        return _as_id(self.user.get("id"))


@dataclass(frozen=True)
class PingInteraction:
    raw: dict[str, Any] = field(repr=False)


@dataclass(frozen=True)
class ChatInputCommandInteraction:
    envelope: InteractionEnvelope
    command_id: Optional[str]
    command_name: str
    options: tuple[dict[str, Any], ...]
    resolved: ResolvedEntityMap


@dataclass(frozen=True)
class UserCommandInteraction:
    envelope: InteractionEnvelope
    command_id: Optional[str]
    command_name: str
    target_id: str
    resolved: ResolvedEntityMap

    @property
    def target_user(self) -> dict[str, Any]:
        return self.resolved.require("users", self.target_id)

    @property
    def target_member(self) -> Optional[dict[str, Any]]:
        return self.resolved.find("members", self.target_id)


@dataclass(frozen=True)
class MessageCommandInteraction:
    envelope: InteractionEnvelope
    command_id: Optional[str]
    command_name: str
    target_id: str
    resolved: ResolvedEntityMap

    @property
    def target_message(self) -> dict[str, Any]:
        return self.resolved.require("messages", self.target_id)


@dataclass(frozen=True)
class AutocompleteInteraction:
    envelope: InteractionEnvelope
    command_id: Optional[str]
    command_name: str
    options: tuple[dict[str, Any], ...]
    resolved: ResolvedEntityMap


@dataclass(frozen=True)
class ComponentInteraction:
    envelope: InteractionEnvelope
    custom_id: str
    component_type: Optional[int]
    values: tuple[str, ...]
    message: Optional[dict[str, Any]]
    resolved: ResolvedEntityMap


@dataclass(frozen=True)
class ModalSubmitInteraction:
    envelope: InteractionEnvelope
    custom_id: str
    components: tuple[dict[str, Any], ...]
    message: Optional[dict[str, Any]]
    resolved: ResolvedEntityMap


CommandInteraction = Union[
    ChatInputCommandInteraction, UserCommandInteraction, MessageCommandInteraction
]

Interaction = Union[
    PingInteraction,
    ChatInputCommandInteraction,
    UserCommandInteraction,
    MessageCommandInteraction,
    AutocompleteInteraction,
    ComponentInteraction,
    ModalSubmitInteraction,
]


def _coerce_type(value: object) -> Optional[InteractionType]:
    try:
        return InteractionType(value)  # type: ignore[arg-type]
    except ValueError:
        return None


def _build_envelope(
    payload: dict[str, Any], interaction_type: InteractionType
) -> InteractionEnvelope:
    interaction_id = extract_interaction_id(payload)
    token = extract_interaction_token(payload)
    application_id = _as_id(payload.get("application_id"))
    if not interaction_id or not token or not application_id:
        raise MalformedPayload(
            "Interaction payload is missing id, token, or application_id"
        )
    member = payload.get("member")
    return InteractionEnvelope(
        id=interaction_id,
        token=token,
        application_id=application_id,
        type=interaction_type,
        user=extract_user(payload),
        member=member if isinstance(member, dict) else None,
        guild_id=extract_guild_id(payload),
        channel_id=extract_channel_id(payload),
        guild=payload.get("guild") if isinstance(payload.get("guild"), dict) else None,
        locale=_as_id(payload.get("locale")),
        guild_locale=_as_id(payload.get("guild_locale")),
        app_permissions=_as_id(payload.get("app_permissions")),
        entitlements=tuple(
            item for item in _as_list(payload.get("entitlements")) if isinstance(item, dict)
        ),
        raw=payload,
    )


def _require_data(payload: dict[str, Any]) -> dict[str, Any]:
    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedPayload("Interaction payload is missing data")
    return data


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedPayload(f"Interaction data is missing {key}")
    return value


def _option_nodes(data: dict[str, Any]) -> tuple[dict[str, Any], ...]:
    return tuple(item for item in _as_list(data.get("options")) if isinstance(item, dict))


def _classify_command(
    envelope: InteractionEnvelope, data: dict[str, Any]
) -> CommandInteraction:
    raw_command_type = data.get("type")
    try:
        command_type = ApplicationCommandType(raw_command_type)
    except ValueError:
        raise UnsupportedInteractionType(envelope.type, raw_command_type) from None

    name = _require_str(data, "name")
    command_id = _as_id(data.get("id"))
    resolved = ResolvedEntityMap.from_payload(data.get("resolved"))

    if command_type is ApplicationCommandType.CHAT_INPUT:
        return ChatInputCommandInteraction(
            envelope=envelope,
            command_id=command_id,
            command_name=name,
            options=_option_nodes(data),
            resolved=resolved,
        )
    target_id = _as_id(data.get("target_id"))
    if not target_id:
        raise MalformedPayload("Context menu command is missing target_id")
    if command_type is ApplicationCommandType.USER:
        return UserCommandInteraction(
            envelope=envelope,
            command_id=command_id,
            command_name=name,
            target_id=target_id,
            resolved=resolved,
        )
    return MessageCommandInteraction(
        envelope=envelope,
        command_id=command_id,
        command_name=name,
        target_id=target_id,
        resolved=resolved,
    )


def classify_interaction(payload: dict[str, Any]) -> Interaction:
    raw_type = payload.get("type")
    interaction_type = _coerce_type(raw_type)
    if interaction_type is None:
        raise UnsupportedInteractionType(raw_type)
    if interaction_type is InteractionType.PING:
        return PingInteraction(raw=payload)

    envelope = _build_envelope(payload, interaction_type)
    data = _require_data(payload)
    message = payload.get("message") if isinstance(payload.get("message"), dict) else None

    if interaction_type is InteractionType.APPLICATION_COMMAND:
        return _classify_command(envelope, data)
    if interaction_type is InteractionType.APPLICATION_COMMAND_AUTOCOMPLETE:
        return AutocompleteInteraction(
            envelope=envelope,
            command_id=_as_id(data.get("id")),
            command_name=_require_str(data, "name"),
            options=_option_nodes(data),
            resolved=ResolvedEntityMap.from_payload(data.get("resolved")),
        )
    if interaction_type is InteractionType.MESSAGE_COMPONENT:
        component_type = data.get("component_type")
        return ComponentInteraction(
            envelope=envelope,
            custom_id=_require_str(data, "custom_id"),
            component_type=component_type if isinstance(component_type, int) else None,
            values=tuple(
                str(value)
                for value in _as_list(data.get("values"))
                if isinstance(value, (str, int, float))
            ),
            message=message,
            resolved=ResolvedEntityMap.from_payload(data.get("resolved")),
        )
    return ModalSubmitInteraction(
        envelope=envelope,
        custom_id=_require_str(data, "custom_id"),
        components=tuple(
            item for item in _as_list(data.get("components")) if isinstance(item, dict)
        ),
        message=message,
        resolved=ResolvedEntityMap.from_payload(data.get("resolved")),
    )
