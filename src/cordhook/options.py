"""Typed access to the options of a chat-input or autocomplete interaction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Union

from .constants import OptionType
from .errors import MissingRequiredOption, TypeMismatch
from .resolved import ResolvedEntityMap

OptionValue = Union[str, int, float, bool]


@dataclass(frozen=True)
class FocusedOption:
    name: str
    type: OptionType
    value: OptionValue


def _option_type(node: dict[str, Any]) -> Optional[OptionType]:
    try:
        return OptionType(node.get("type"))
    except ValueError:
        return None


class OptionResolver:
    """Resolves command options against the interaction's resolved entities.

    The option tree is hoisted through at most one subcommand group and one
    subcommand. Only the leaf options of the invoked subcommand are exposed,
    so options of sibling subcommands never collide.
    """

    def __init__(
        self,
        options: Optional[Sequence[dict[str, Any]]],
        resolved: Optional[ResolvedEntityMap] = None,
    ) -> None:
        self._data: tuple[dict[str, Any], ...] = tuple(
            node for node in (options or ()) if isinstance(node, dict)
        )
        self._resolved = resolved or ResolvedEntityMap()
        self._group: Optional[str] = None
        self._subcommand: Optional[str] = None

        hoisted = list(self._data)
        if hoisted and _option_type(hoisted[0]) is OptionType.SUB_COMMAND_GROUP:
            self._group = str(hoisted[0].get("name"))
            hoisted = [n for n in hoisted[0].get("options") or [] if isinstance(n, dict)]
        if hoisted and _option_type(hoisted[0]) is OptionType.SUB_COMMAND:
            self._subcommand = str(hoisted[0].get("name"))
            hoisted = [n for n in hoisted[0].get("options") or [] if isinstance(n, dict)]
        self._hoisted: tuple[dict[str, Any], ...] = tuple(hoisted)

    @property
    def data(self) -> tuple[dict[str, Any], ...]:
        """The raw option tree, as delivered."""
        return self._data

    @property
    def resolved(self) -> ResolvedEntityMap:
        return self._resolved

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(str(node.get("name")) for node in self._hoisted)

    def get(self, name: str, required: bool = False) -> Optional[dict[str, Any]]:
        for node in self._hoisted:
            if node.get("name") == name:
                return node
        if required:
            raise MissingRequiredOption(name)
        return None

    def _get_typed(
        self, name: str, allowed: Iterable[OptionType], required: bool
    ) -> Optional[dict[str, Any]]:
        node = self.get(name, required)
        if node is None:
            return None
        allowed_types = tuple(allowed)
        actual = _option_type(node)
        if actual not in allowed_types:
            expected: object = allowed_types[0] if len(allowed_types) == 1 else allowed_types
            raise TypeMismatch(name, expected=expected, actual=actual or node.get("type"))
        return node

    def get_subcommand(self, required: bool = True) -> Optional[str]:
        if required and self._subcommand is None:
            raise MissingRequiredOption("subcommand")
        return self._subcommand

    def get_subcommand_group(self, required: bool = False) -> Optional[str]:
        if required and self._group is None:
            raise MissingRequiredOption("subcommand group")
        return self._group

    def get_focused(self) -> FocusedOption:
        for node in self._hoisted:
            if node.get("focused"):
                option_type = _option_type(node) or OptionType.STRING
                return FocusedOption(
                    name=str(node.get("name")),
                    type=option_type,
                    value=node.get("value", ""),
                )
        raise MissingRequiredOption("focused option")

    @staticmethod
    def _scalar(node: dict[str, Any], name: str, convert: Any, expected: OptionType) -> Any:
        value = node.get("value")
        # A focused option holds partial user input, e.g. "" or "-".
        if node.get("focused"):
            return value
        if value is None:
            raise TypeMismatch(name, expected=expected, actual=None)
        try:
            return convert(value)
        except (TypeError, ValueError):
            raise TypeMismatch(name, expected=expected, actual=value) from None

    def get_string(self, name: str, required: bool = False) -> Optional[str]:
        node = self._get_typed(name, (OptionType.STRING,), required)
        return None if node is None else self._scalar(node, name, str, OptionType.STRING)

    def get_integer(self, name: str, required: bool = False) -> Union[int, str, None]:
        """Return an integer option.

        While autocompleting, the focused option is returned as the raw text
        typed so far.
        """
        node = self._get_typed(name, (OptionType.INTEGER,), required)
        return None if node is None else self._scalar(node, name, int, OptionType.INTEGER)

    def get_number(self, name: str, required: bool = False) -> Union[float, str, None]:
        node = self._get_typed(name, (OptionType.NUMBER,), required)
        return None if node is None else self._scalar(node, name, float, OptionType.NUMBER)

    def get_boolean(self, name: str, required: bool = False) -> Optional[bool]:
        node = self._get_typed(name, (OptionType.BOOLEAN,), required)
        return None if node is None else bool(node.get("value"))

    def get_user(self, name: str, required: bool = False) -> Optional[dict[str, Any]]:
        node = self._get_typed(name, (OptionType.USER, OptionType.MENTIONABLE), required)
        if node is None:
            return None
        return self._resolved.require("users", str(node.get("value")))

    def get_member(self, name: str, required: bool = False) -> Optional[dict[str, Any]]:
        """Return the guild member behind a user option.

        ``None`` when the user is not a member of the guild; the platform
        leaves such users out of the members partition.
        """
        node = self._get_typed(name, (OptionType.USER, OptionType.MENTIONABLE), required)
        if node is None:
            return None
        return self._resolved.find("members", str(node.get("value")))

    def get_channel(
        self,
        name: str,
        required: bool = False,
        channel_types: Optional[Iterable[int]] = None,
    ) -> Optional[dict[str, Any]]:
        node = self._get_typed(name, (OptionType.CHANNEL,), required)
        if node is None:
            return None
        channel = self._resolved.require("channels", str(node.get("value")))
        if channel_types is not None:
            allowed = tuple(channel_types)
            if channel.get("type") not in allowed:
                raise TypeMismatch(name, expected=allowed, actual=channel.get("type"))
        return channel

    def get_role(self, name: str, required: bool = False) -> Optional[dict[str, Any]]:
        node = self._get_typed(name, (OptionType.ROLE, OptionType.MENTIONABLE), required)
        if node is None:
            return None
        return self._resolved.require("roles", str(node.get("value")))

    def get_mentionable(
        self, name: str, required: bool = False
    ) -> Optional[dict[str, Any]]:
        node = self._get_typed(
            name,
            (OptionType.MENTIONABLE, OptionType.USER, OptionType.ROLE),
            required,
        )
        if node is None:
            return None
        entity_id = str(node.get("value"))
        for kind in ("members", "users", "roles"):
            entity = self._resolved.find(kind, entity_id)
            if entity is not None:
                return entity
        return self._resolved.require("users", entity_id)

    def get_attachment(
        self, name: str, required: bool = False
    ) -> Optional[dict[str, Any]]:
        node = self._get_typed(name, (OptionType.ATTACHMENT,), required)
        if node is None:
            return None
        return self._resolved.require("attachments", str(node.get("value")))
