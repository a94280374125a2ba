from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from .constants import ComponentType
from .errors import MissingField, TypeMismatch
from .resolved import ResolvedEntityMap


def flatten_modal_components(
    components: Iterable[Any],
) -> dict[str, dict[str, Any]]:
    """Map custom id to submitted component across every layout level.

    Action rows carry a ``components`` list, labels wrap a single
    ``component``; text displays and other layout blocks have no custom id
    and are skipped.
    """
    fields: dict[str, dict[str, Any]] = {}
    stack = [item for item in components if isinstance(item, dict)]
    stack.reverse()
    while stack:
        node = stack.pop()
        children: list[dict[str, Any]] = []
        nested = node.get("components")
        if isinstance(nested, list):
            children.extend(item for item in nested if isinstance(item, dict))
        single = node.get("component")
        if isinstance(single, dict):
            children.append(single)
        if children:
            stack.extend(reversed(children))
            continue
        custom_id = node.get("custom_id")
        if isinstance(custom_id, str) and custom_id:
            fields[custom_id] = node
    return fields


class ModalFieldResolver:
    """Typed access to the values of a submitted modal."""

    def __init__(
        self,
        components: Sequence[dict[str, Any]],
        resolved: Optional[ResolvedEntityMap] = None,
    ) -> None:
        self._fields = flatten_modal_components(components)
        self._resolved = resolved or ResolvedEntityMap()

    @property
    def custom_ids(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def get_field(
        self, custom_id: str, required: bool = False
    ) -> Optional[dict[str, Any]]:
        field = self._fields.get(custom_id)
        if field is None and required:
            raise MissingField(custom_id)
        return field

    def _get_typed(
        self,
        custom_id: str,
        allowed: tuple[ComponentType, ...],
        required: bool,
    ) -> Optional[dict[str, Any]]:
        field = self.get_field(custom_id, required)
        if field is None:
            return None
        if field.get("type") not in allowed:
            expected: object = allowed[0] if len(allowed) == 1 else allowed
            raise TypeMismatch(custom_id, expected=expected, actual=field.get("type"))
        return field

    def _values(
        self, custom_id: str, allowed: tuple[ComponentType, ...], required: bool
    ) -> Optional[list[str]]:
        field = self._get_typed(custom_id, allowed, required)
        if field is None:
            return None
        values = field.get("values")
        if not isinstance(values, list):
            return []
        return [str(value) for value in values]

    def _resolve_all(
        self, kind: str, custom_id: str, allowed: tuple[ComponentType, ...], required: bool
    ) -> Optional[list[dict[str, Any]]]:
        ids = self._values(custom_id, allowed, required)
        if ids is None:
            return None
        return [self._resolved.require(kind, entity_id) for entity_id in ids]

    def get_text_input_value(
        self, custom_id: str, required: bool = False
    ) -> Optional[str]:
        field = self._get_typed(custom_id, (ComponentType.TEXT_INPUT,), required)
        if field is None:
            return None
        value = field.get("value")
        return "" if value is None else str(value)

    def get_string_select_values(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[str]]:
        return self._values(custom_id, (ComponentType.STRING_SELECT,), required)

    def get_selected_users(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[dict[str, Any]]]:
        return self._resolve_all(
            "users",
            custom_id,
            (ComponentType.USER_SELECT, ComponentType.MENTIONABLE_SELECT),
            required,
        )

    def get_selected_members(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[dict[str, Any]]]:
        ids = self._values(
            custom_id,
            (ComponentType.USER_SELECT, ComponentType.MENTIONABLE_SELECT),
            required,
        )
        if ids is None:
            return None
        members = (self._resolved.find("members", entity_id) for entity_id in ids)
        return [member for member in members if member is not None]

    def get_selected_roles(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[dict[str, Any]]]:
        return self._resolve_all(
            "roles",
            custom_id,
            (ComponentType.ROLE_SELECT, ComponentType.MENTIONABLE_SELECT),
            required,
        )

    def get_selected_channels(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[dict[str, Any]]]:
        return self._resolve_all(
            "channels", custom_id, (ComponentType.CHANNEL_SELECT,), required
        )

    def get_selected_mentionables(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[dict[str, Any]]]:
        ids = self._values(
            custom_id,
            (ComponentType.MENTIONABLE_SELECT, ComponentType.USER_SELECT, ComponentType.ROLE_SELECT),
            required,
        )
        if ids is None:
            return None
        entities: list[dict[str, Any]] = []
        for entity_id in ids:
            entity = self._resolved.find("users", entity_id) or self._resolved.find(
                "roles", entity_id
            )
            if entity is None:
                entity = self._resolved.require("users", entity_id)
            entities.append(entity)
        return entities

    def get_uploaded_files(
        self, custom_id: str, required: bool = False
    ) -> Optional[list[dict[str, Any]]]:
        return self._resolve_all(
            "attachments", custom_id, (ComponentType.FILE_UPLOAD,), required
        )
