from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cordhook.components import build_modal, build_text_input
from cordhook.context import (
    AutocompleteContext,
    ChatInputContext,
    ComponentContext,
    ModalSubmitContext,
    ResponseState,
)
from cordhook.errors import InvalidResponseState
from cordhook.interactions import classify_interaction


def _chat_input(make_interaction, discord_api, **extra) -> ChatInputContext:
    interaction = classify_interaction(
        make_interaction(2, {"name": "echo", "type": 1}, **extra)
    )
    return ChatInputContext(interaction, discord_api.client())


@pytest.mark.anyio
async def test_reply_sends_ephemeral_message_by_default(make_interaction, discord_api) -> None:
    ctx = _chat_input(make_interaction, discord_api)

    await ctx.reply("hello")

    assert ctx.response_state is ResponseState.REPLIED
    assert discord_api.requests[0].json == {
        "type": 4,
        "data": {"content": "hello", "flags": 64},
    }
    assert ctx.callback_response["interaction"]["id"] == "int-1"


@pytest.mark.anyio
async def test_public_reply_with_message_payload(make_interaction, discord_api) -> None:
    ctx = _chat_input(make_interaction, discord_api)

    await ctx.reply({"content": "hi", "embeds": []}, ephemeral=False)

    assert discord_api.requests[0].json["data"] == {"content": "hi", "embeds": []}


@pytest.mark.anyio
async def test_second_initial_response_is_rejected_locally(make_interaction, discord_api) -> None:
    ctx = _chat_input(make_interaction, discord_api)
    await ctx.reply("first")

    with pytest.raises(InvalidResponseState):
        await ctx.reply("second")
    with pytest.raises(InvalidResponseState):
        await ctx.defer_reply()
    with pytest.raises(InvalidResponseState):
        await ctx.show_modal(build_modal("m", "Title", [build_text_input("x")]))

    assert len(discord_api.requests) == 1


@pytest.mark.anyio
async def test_defer_then_edit_then_follow_up(make_interaction, discord_api) -> None:
    ctx = _chat_input(make_interaction, discord_api)

    await ctx.defer_reply()
    assert ctx.response_state is ResponseState.DEFERRED
    await ctx.edit_reply("done")
    assert ctx.response_state is ResponseState.REPLIED
    await ctx.follow_up("extra")
    await ctx.delete_reply()

    assert [(r.method, r.path) for r in discord_api.requests] == [
        ("POST", "/api/v10/interactions/int-1/tok-1/callback"),
        ("PATCH", "/api/v10/webhooks/app-1/tok-1/messages/@original"),
        ("POST", "/api/v10/webhooks/app-1/tok-1"),
        ("DELETE", "/api/v10/webhooks/app-1/tok-1/messages/@original"),
    ]
    assert discord_api.requests[0].json == {"type": 5, "data": {"flags": 64}}


@pytest.mark.anyio
async def test_edit_and_follow_up_require_an_initial_response(
    make_interaction, discord_api
) -> None:
    ctx = _chat_input(make_interaction, discord_api)

    with pytest.raises(InvalidResponseState):
        await ctx.edit_reply("too early")
    with pytest.raises(InvalidResponseState):
        await ctx.follow_up("too early")
    with pytest.raises(InvalidResponseState):
        await ctx.delete_reply()
    assert discord_api.requests == []


@pytest.mark.anyio
async def test_show_modal_sends_modal_callback(make_interaction, discord_api) -> None:
    ctx = _chat_input(make_interaction, discord_api)
    modal = build_modal("feedback", "Feedback", [build_text_input("body")])

    await ctx.show_modal(modal)

    assert discord_api.requests[0].json == {"type": 9, "data": modal}
    assert ctx.response_state is ResponseState.REPLIED


@pytest.mark.anyio
async def test_component_update_and_defer_update(make_interaction, discord_api) -> None:
    payload = make_interaction(3, {"custom_id": "poll/vote", "component_type": 2})
    ctx = ComponentContext(classify_interaction(payload), discord_api.client())

    await ctx.update("Voted")

    assert discord_api.requests[0].json == {"type": 7, "data": {"content": "Voted"}}
    with pytest.raises(InvalidResponseState):
        await ctx.defer_update()


@pytest.mark.anyio
async def test_modal_submit_defer_update(make_interaction, discord_api) -> None:
    payload = make_interaction(
        5,
        {"custom_id": "feedback", "components": [{"type": 4, "custom_id": "body", "value": "x"}]},
    )
    ctx = ModalSubmitContext(classify_interaction(payload), discord_api.client())

    await ctx.defer_update()

    assert ctx.fields.get_text_input_value("body") == "x"
    assert discord_api.requests[0].json == {"type": 6}
    assert ctx.response_state is ResponseState.DEFERRED
    assert not hasattr(ctx, "show_modal")


@pytest.mark.anyio
async def test_autocomplete_respond_caps_choices(make_interaction, discord_api) -> None:
    payload = make_interaction(
        4,
        {"name": "search", "type": 1, "options": [{"type": 3, "name": "q", "value": "", "focused": True}]},
    )
    ctx = AutocompleteContext(classify_interaction(payload), discord_api.client())
    choices = [{"name": f"c{i}", "value": str(i)} for i in range(30)]

    assert ctx.responded is False
    await ctx.respond(choices)

    sent = discord_api.requests[0].json
    assert sent["type"] == 8
    assert len(sent["data"]["choices"]) == 25
    assert ctx.responded is True
    assert not hasattr(ctx, "reply")


def test_identity_and_location_accessors(make_interaction, discord_api) -> None:
    ctx = _chat_input(make_interaction, discord_api)

    assert ctx.id == "int-1"
    assert ctx.token == "tok-1"
    assert ctx.application_id == "app-1"
    assert ctx.user_id == "user-1"
    assert ctx.guild_id == "guild-1"
    assert ctx.channel_id == "chan-1"
    assert ctx.in_guild() is True
    assert ctx.in_dm() is False
    assert ctx.locale == "en-US"
    assert ctx.app_permissions == "2048"
    assert ctx.command_name == "echo"


def test_dm_context_has_no_guild(make_interaction, discord_api) -> None:
    payload = make_interaction(2, {"name": "echo", "type": 1}, user={"id": "user-2"})
    for key in ("guild_id", "member"):
        payload.pop(key)
    ctx = ChatInputContext(classify_interaction(payload), discord_api.client())

    assert ctx.in_dm() is True
    assert ctx.user_id == "user-2"
    assert ctx.member is None


def test_entitlements_are_scoped_to_application(make_interaction, discord_api) -> None:
    future = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    ctx = _chat_input(
        make_interaction,
        discord_api,
        entitlements=[
            {"application_id": "app-1", "user_id": "user-1", "ends_at": future},
            {"application_id": "app-1", "guild_id": "guild-1", "ends_at": past},
            {"application_id": "other-app", "guild_id": "guild-1"},
        ],
    )

    assert len(ctx.app_entitlements()) == 2
    assert ctx.user_has_premium() is True
    assert ctx.guild_has_premium() is False
