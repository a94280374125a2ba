from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from .constants import ApplicationCommandType

if TYPE_CHECKING:
    from .context import (
        AutocompleteContext,
        ChatInputContext,
        ComponentContext,
        MessageCommandContext,
        ModalSubmitContext,
        UserCommandContext,
    )

HandlerResult = Optional[Awaitable[None]]


class HandlerKind(str, Enum):
    SLASH_COMMAND = "slash_command"
    CONTEXT_COMMAND = "context_command"
    COMPONENT = "component"
    MODAL = "modal"


def _require_key(value: object, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} must be a non-empty string")
    return value


@dataclass
class SlashCommandHandler:
    """Chat input command, optionally with an autocomplete callback."""

    name: str
    description: str
    callback: Callable[["ChatInputContext"], HandlerResult]
    autocomplete: Optional[Callable[["AutocompleteContext"], HandlerResult]] = None
    options: list[dict[str, Any]] = field(default_factory=list)
    default_member_permissions: Optional[str] = None
    kind = HandlerKind.SLASH_COMMAND

    def __post_init__(self) -> None:
        _require_key(self.name, "Command name")

    @property
    def key(self) -> str:
        return self.name

    def to_command_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": int(ApplicationCommandType.CHAT_INPUT),
            "name": self.name,
            "description": self.description,
        }
        if self.options:
            payload["options"] = self.options
        if self.default_member_permissions is not None:
            payload["default_member_permissions"] = self.default_member_permissions
        return payload


@dataclass
class ContextCommandHandler:
    """User or message context-menu command."""

    name: str
    command_type: ApplicationCommandType
    callback: Callable[
        [Union["UserCommandContext", "MessageCommandContext"]], HandlerResult
    ]
    default_member_permissions: Optional[str] = None
    kind = HandlerKind.CONTEXT_COMMAND

    def __post_init__(self) -> None:
        _require_key(self.name, "Command name")
        self.command_type = ApplicationCommandType(self.command_type)
        if self.command_type is ApplicationCommandType.CHAT_INPUT:
            raise ValueError("Context commands must be of type USER or MESSAGE")

    @property
    def key(self) -> str:
        return self.name

    def to_command_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": int(self.command_type), "name": self.name}
        if self.default_member_permissions is not None:
            payload["default_member_permissions"] = self.default_member_permissions
        return payload


@dataclass
class ComponentHandler:
    """Buttons and select menus whose custom id starts with ``prefix``."""

    prefix: str
    callback: Callable[["ComponentContext"], HandlerResult]
    kind = HandlerKind.COMPONENT

    def __post_init__(self) -> None:
        _require_key(self.prefix, "Component handler prefix")

    @property
    def key(self) -> str:
        return self.prefix


@dataclass
class ModalHandler:
    """Modal submissions whose custom id starts with ``prefix``."""

    prefix: str
    callback: Callable[["ModalSubmitContext"], HandlerResult]
    kind = HandlerKind.MODAL

    def __post_init__(self) -> None:
        _require_key(self.prefix, "Modal handler prefix")

    @property
    def key(self) -> str:
        return self.prefix


CommandHandler = Union[SlashCommandHandler, ContextCommandHandler]
Handler = Union[SlashCommandHandler, ContextCommandHandler, ComponentHandler, ModalHandler]
