from __future__ import annotations

import pytest

from cordhook.constants import InteractionType
from cordhook.errors import MalformedPayload, ResolutionFailure, UnsupportedInteractionType
from cordhook.interactions import (
    AutocompleteInteraction,
    ChatInputCommandInteraction,
    ComponentInteraction,
    MessageCommandInteraction,
    ModalSubmitInteraction,
    PingInteraction,
    UserCommandInteraction,
    classify_interaction,
    extract_channel_id,
    extract_guild_id,
    extract_interaction_id,
    extract_interaction_token,
    extract_user,
)


def test_extract_ids_from_interaction_payload() -> None:
    payload = {
        "id": "inter-1",
        "token": "token-1",
        "channel_id": "chan-1",
        "guild_id": "guild-1",
        "member": {"user": {"id": "user-1"}},
    }
    assert extract_interaction_id(payload) == "inter-1"
    assert extract_interaction_token(payload) == "token-1"
    assert extract_channel_id(payload) == "chan-1"
    assert extract_guild_id(payload) == "guild-1"
    assert extract_user(payload) == {"id": "user-1"}


def test_extract_ids_from_dm_payload() -> None:
    payload = {"channel": {"id": "dm-1"}, "user": {"id": "user-2"}}
    assert extract_channel_id(payload) == "dm-1"
    assert extract_guild_id(payload) is None
    assert extract_user(payload) == {"id": "user-2"}


def test_classify_ping() -> None:
    assert isinstance(classify_interaction({"type": 1}), PingInteraction)


def test_classify_chat_input_command(make_interaction) -> None:
    payload = make_interaction(
        2,
        {
            "id": "cmd-1",
            "name": "echo",
            "type": 1,
            "options": [{"type": 3, "name": "text", "value": "hi"}],
        },
    )

    interaction = classify_interaction(payload)

    assert isinstance(interaction, ChatInputCommandInteraction)
    assert interaction.command_name == "echo"
    assert interaction.command_id == "cmd-1"
    assert interaction.options[0]["value"] == "hi"
    envelope = interaction.envelope
    assert envelope.type is InteractionType.APPLICATION_COMMAND
    assert envelope.id == "int-1"
    assert envelope.token == "tok-1"
    assert envelope.application_id == "app-1"
    assert envelope.user_id == "user-1"
    assert envelope.guild_id == "guild-1"
    assert envelope.locale == "en-US"


def test_classify_user_command_resolves_target(make_interaction) -> None:
    payload = make_interaction(
        2,
        {
            "name": "Inspect",
            "type": 2,
            "target_id": "user-9",
            "resolved": {
                "users": {"user-9": {"id": "user-9", "username": "bob"}},
                "members": {"user-9": {"nick": "Bobby"}},
            },
        },
    )

    interaction = classify_interaction(payload)

    assert isinstance(interaction, UserCommandInteraction)
    assert interaction.target_user["username"] == "bob"
    assert interaction.target_member == {"nick": "Bobby"}


def test_classify_message_command_resolves_target(make_interaction) -> None:
    payload = make_interaction(
        2,
        {
            "name": "Quote",
            "type": 3,
            "target_id": "msg-9",
            "resolved": {"messages": {"msg-9": {"id": "msg-9", "content": "hello"}}},
        },
    )

    interaction = classify_interaction(payload)

    assert isinstance(interaction, MessageCommandInteraction)
    assert interaction.target_message["content"] == "hello"


def test_message_command_target_missing_from_resolved(make_interaction) -> None:
    payload = make_interaction(2, {"name": "Quote", "type": 3, "target_id": "msg-9"})

    interaction = classify_interaction(payload)

    assert isinstance(interaction, MessageCommandInteraction)
    with pytest.raises(ResolutionFailure):
        _ = interaction.target_message


def test_classify_autocomplete(make_interaction) -> None:
    payload = make_interaction(
        4,
        {
            "name": "search",
            "type": 1,
            "options": [{"type": 3, "name": "query", "value": "py", "focused": True}],
        },
    )

    interaction = classify_interaction(payload)

    assert isinstance(interaction, AutocompleteInteraction)
    assert interaction.command_name == "search"


def test_classify_component(make_interaction) -> None:
    payload = make_interaction(
        3,
        {"custom_id": "poll/vote?1", "component_type": 3, "values": ["a", "b"]},
        message={"id": "msg-1"},
    )

    interaction = classify_interaction(payload)

    assert isinstance(interaction, ComponentInteraction)
    assert interaction.custom_id == "poll/vote?1"
    assert interaction.component_type == 3
    assert interaction.values == ("a", "b")
    assert interaction.message == {"id": "msg-1"}


def test_classify_modal_submit(make_interaction) -> None:
    payload = make_interaction(
        5,
        {
            "custom_id": "feedback",
            "components": [
                {"type": 1, "components": [{"type": 4, "custom_id": "body", "value": "x"}]}
            ],
        },
    )

    interaction = classify_interaction(payload)

    assert isinstance(interaction, ModalSubmitInteraction)
    assert interaction.custom_id == "feedback"
    assert len(interaction.components) == 1
    assert interaction.message is None


@pytest.mark.parametrize("interaction_type", [0, 6, 99])
def test_unknown_interaction_type_is_rejected(make_interaction, interaction_type) -> None:
    with pytest.raises(UnsupportedInteractionType):
        classify_interaction(make_interaction(interaction_type, {"name": "x"}))


def test_unknown_command_type_is_rejected(make_interaction) -> None:
    payload = make_interaction(2, {"name": "x", "type": 4})

    with pytest.raises(UnsupportedInteractionType) as excinfo:
        classify_interaction(payload)
    assert excinfo.value.command_type == 4


@pytest.mark.parametrize(
    ("interaction_type", "data"),
    [
        (2, None),
        (2, {"type": 1}),
        (2, {"name": "Inspect", "type": 2}),
        (3, {"component_type": 2}),
        (5, {"components": []}),
    ],
)
def test_missing_required_data_is_malformed(make_interaction, interaction_type, data) -> None:
    with pytest.raises(MalformedPayload):
        classify_interaction(make_interaction(interaction_type, data))


def test_missing_token_is_malformed(make_interaction) -> None:
    payload = make_interaction(2, {"name": "echo", "type": 1})
    del payload["token"]

    with pytest.raises(MalformedPayload):
        classify_interaction(payload)
