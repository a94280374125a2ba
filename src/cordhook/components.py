from __future__ import annotations

from typing import Any, Optional

from .constants import ComponentType

DISCORD_BUTTON_STYLE_PRIMARY = 1
DISCORD_BUTTON_STYLE_SECONDARY = 2
DISCORD_BUTTON_STYLE_SUCCESS = 3
DISCORD_BUTTON_STYLE_DANGER = 4
DISCORD_BUTTON_STYLE_LINK = 5
DISCORD_SELECT_OPTION_MAX_OPTIONS = 25
DISCORD_MODAL_MAX_COMPONENTS = 5

TEXT_INPUT_STYLE_SHORT = 1
TEXT_INPUT_STYLE_PARAGRAPH = 2


def build_action_row(components: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "type": int(ComponentType.ACTION_ROW),
        "components": components,
    }


def build_button(
    label: str,
    custom_id: Optional[str] = None,
    *,
    style: int = DISCORD_BUTTON_STYLE_SECONDARY,
    url: Optional[str] = None,
    emoji: Optional[str] = None,
    disabled: bool = False,
) -> dict[str, Any]:
    """Build a button; link buttons carry ``url`` and never reach a handler."""
    if url is not None:
        style = DISCORD_BUTTON_STYLE_LINK
    elif not custom_id:
        raise ValueError("Non-link buttons need a custom_id")
    button: dict[str, Any] = {
        "type": int(ComponentType.BUTTON),
        "style": style,
        "label": label[:80],
        "disabled": disabled,
    }
    if url is not None:
        button["url"] = url
    else:
        button["custom_id"] = custom_id
    if emoji:
        button["emoji"] = {"name": emoji}
    return button


ENTITY_SELECT_TYPES = (
    ComponentType.USER_SELECT,
    ComponentType.ROLE_SELECT,
    ComponentType.MENTIONABLE_SELECT,
    ComponentType.CHANNEL_SELECT,
)


def _select_base(
    component_type: ComponentType,
    custom_id: str,
    *,
    placeholder: Optional[str],
    min_values: int,
    max_values: int,
    disabled: bool,
) -> dict[str, Any]:
    select: dict[str, Any] = {
        "type": int(component_type),
        "custom_id": custom_id,
        "min_values": max(0, min_values),
        "max_values": max(1, min(max_values, DISCORD_SELECT_OPTION_MAX_OPTIONS)),
        "disabled": disabled,
    }
    if placeholder:
        select["placeholder"] = placeholder[:150]
    return select


def build_select_menu(
    custom_id: str,
    options: list[dict[str, Any]],
    *,
    placeholder: Optional[str] = None,
    min_values: int = 1,
    max_values: int = 1,
    disabled: bool = False,
) -> dict[str, Any]:
    select = _select_base(
        ComponentType.STRING_SELECT,
        custom_id,
        placeholder=placeholder,
        min_values=min_values,
        max_values=max_values,
        disabled=disabled,
    )
    select["options"] = options[:DISCORD_SELECT_OPTION_MAX_OPTIONS]
    return select


def build_entity_select(
    component_type: ComponentType,
    custom_id: str,
    *,
    placeholder: Optional[str] = None,
    min_values: int = 1,
    max_values: int = 1,
    channel_types: Optional[list[int]] = None,
    disabled: bool = False,
) -> dict[str, Any]:
    """User, role, mentionable or channel select.

    Selected ids come back in ``values`` and are looked up in the
    interaction's resolved entities.
    """
    component_type = ComponentType(component_type)
    if component_type not in ENTITY_SELECT_TYPES:
        raise ValueError(f"{component_type.name} is not an entity select type")
    select = _select_base(
        component_type,
        custom_id,
        placeholder=placeholder,
        min_values=min_values,
        max_values=max_values,
        disabled=disabled,
    )
    if channel_types:
        if component_type is not ComponentType.CHANNEL_SELECT:
            raise ValueError("channel_types only applies to channel selects")
        select["channel_types"] = list(channel_types)
    return select


def build_select_option(
    label: str,
    value: str,
    *,
    description: Optional[str] = None,
    emoji: Optional[str] = None,
    default: bool = False,
) -> dict[str, Any]:
    option: dict[str, Any] = {
        "label": label[:100],
        "value": value[:100],
        "default": default,
    }
    if description:
        option["description"] = description[:100]
    if emoji:
        option["emoji"] = {"name": emoji}
    return option


def build_text_input(
    custom_id: str,
    *,
    style: int = TEXT_INPUT_STYLE_SHORT,
    required: bool = True,
    placeholder: Optional[str] = None,
    value: Optional[str] = None,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> dict[str, Any]:
    text_input: dict[str, Any] = {
        "type": int(ComponentType.TEXT_INPUT),
        "custom_id": custom_id,
        "style": style,
        "required": required,
    }
    if placeholder:
        text_input["placeholder"] = placeholder[:100]
    if value is not None:
        text_input["value"] = value
    if min_length is not None:
        text_input["min_length"] = min_length
    if max_length is not None:
        text_input["max_length"] = max_length
    return text_input


def build_label(
    label: str,
    component: dict[str, Any],
    *,
    description: Optional[str] = None,
) -> dict[str, Any]:
    wrapper: dict[str, Any] = {
        "type": int(ComponentType.LABEL),
        "label": label[:45],
        "component": component,
    }
    if description:
        wrapper["description"] = description[:100]
    return wrapper


def build_file_upload(
    custom_id: str,
    *,
    min_values: int = 1,
    max_values: int = 1,
    required: bool = True,
) -> dict[str, Any]:
    # Only valid inside a label.
    return {
        "type": int(ComponentType.FILE_UPLOAD),
        "custom_id": custom_id,
        "min_values": min_values,
        "max_values": max_values,
        "required": required,
    }


def build_text_display(content: str) -> dict[str, Any]:
    return {"type": int(ComponentType.TEXT_DISPLAY), "content": content}


def build_modal(
    custom_id: str,
    title: str,
    components: list[dict[str, Any]],
) -> dict[str, Any]:
    if not components:
        raise ValueError("A modal needs at least one component")
    return {
        "custom_id": custom_id,
        "title": title[:45],
        "components": components[:DISCORD_MODAL_MAX_COMPONENTS],
    }
