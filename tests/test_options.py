from __future__ import annotations

import pytest

from cordhook.constants import OptionType
from cordhook.errors import MissingRequiredOption, ResolutionFailure, TypeMismatch
from cordhook.options import OptionResolver
from cordhook.resolved import ResolvedEntityMap

RESOLVED = ResolvedEntityMap.from_payload(
    {
        "users": {
            "u1": {"id": "u1", "username": "alice"},
            "u2": {"id": "u2", "username": "bob"},
        },
        "members": {"u1": {"nick": "Al"}},
        "roles": {"r1": {"id": "r1", "name": "mods"}},
        "channels": {"c1": {"id": "c1", "type": 0}},
        "attachments": {"a1": {"id": "a1", "filename": "log.txt"}},
    }
)


def _resolver(*options: dict) -> OptionResolver:
    return OptionResolver(list(options), RESOLVED)


def test_scalar_getters() -> None:
    options = _resolver(
        {"type": 3, "name": "text", "value": "hello"},
        {"type": 4, "name": "count", "value": 3},
        {"type": 10, "name": "ratio", "value": 0.5},
        {"type": 5, "name": "loud", "value": True},
    )

    assert options.get_string("text") == "hello"
    assert options.get_integer("count") == 3
    assert options.get_number("ratio") == 0.5
    assert options.get_boolean("loud") is True
    assert options.names == ("text", "count", "ratio", "loud")


def test_absent_optional_option_returns_none() -> None:
    options = _resolver()

    assert options.get_string("text") is None
    assert options.get_user("target") is None
    assert options.get("text") is None


def test_absent_required_option_raises() -> None:
    with pytest.raises(MissingRequiredOption) as excinfo:
        _resolver().get_string("text", required=True)
    assert excinfo.value.name == "text"


def test_wrong_option_type_raises_type_mismatch() -> None:
    options = _resolver({"type": 4, "name": "count", "value": 3})

    with pytest.raises(TypeMismatch) as excinfo:
        options.get_string("count")
    assert excinfo.value.expected is OptionType.STRING
    assert excinfo.value.actual is OptionType.INTEGER


def test_focused_numeric_option_returns_partial_input() -> None:
    options = _resolver(
        {"type": 4, "name": "count", "value": "", "focused": True},
        {"type": 10, "name": "ratio", "value": "0.", "focused": True},
    )

    assert options.get_integer("count") == ""
    assert options.get_number("ratio") == "0."


@pytest.mark.parametrize(
    ("option", "getter"),
    [
        ({"type": 4, "name": "n"}, "get_integer"),
        ({"type": 4, "name": "n", "value": "abc"}, "get_integer"),
        ({"type": 10, "name": "n", "value": "abc"}, "get_number"),
        ({"type": 10, "name": "n", "value": None}, "get_number"),
    ],
)
def test_unconvertible_option_value_raises_type_mismatch(option, getter) -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        getattr(_resolver(option), getter)("n")
    assert excinfo.value.name == "n"
    assert excinfo.value.actual == option.get("value")


def test_subcommand_group_and_subcommand_are_hoisted() -> None:
    options = _resolver(
        {
            "type": 2,
            "name": "admin",
            "options": [
                {
                    "type": 1,
                    "name": "ban",
                    "options": [{"type": 6, "name": "target", "value": "u2"}],
                }
            ],
        }
    )

    assert options.get_subcommand_group() == "admin"
    assert options.get_subcommand() == "ban"
    assert options.get_user("target") == {"id": "u2", "username": "bob"}
    assert options.data[0]["name"] == "admin"


def test_sibling_subcommand_options_are_not_visible() -> None:
    options = _resolver(
        {"type": 1, "name": "add", "options": [{"type": 3, "name": "item", "value": "x"}]}
    )

    assert options.get_string("item") == "x"
    assert options.get_subcommand_group() is None
    with pytest.raises(MissingRequiredOption):
        options.get_subcommand_group(required=True)


def test_get_subcommand_required_by_default() -> None:
    with pytest.raises(MissingRequiredOption):
        _resolver({"type": 3, "name": "text", "value": "x"}).get_subcommand()
    assert _resolver().get_subcommand(required=False) is None


def test_user_and_member_resolution() -> None:
    options = _resolver(
        {"type": 6, "name": "member", "value": "u1"},
        {"type": 6, "name": "outsider", "value": "u2"},
    )

    assert options.get_user("member")["username"] == "alice"
    assert options.get_member("member") == {"nick": "Al"}
    assert options.get_member("outsider") is None


def test_user_missing_from_resolved_raises() -> None:
    options = _resolver({"type": 6, "name": "target", "value": "ghost"})

    with pytest.raises(ResolutionFailure) as excinfo:
        options.get_user("target")
    assert excinfo.value.kind == "users"
    assert excinfo.value.entity_id == "ghost"


def test_channel_role_and_attachment_resolution() -> None:
    options = _resolver(
        {"type": 7, "name": "where", "value": "c1"},
        {"type": 8, "name": "role", "value": "r1"},
        {"type": 11, "name": "file", "value": "a1"},
    )

    assert options.get_channel("where") == {"id": "c1", "type": 0}
    assert options.get_channel("where", channel_types=[0, 5])["id"] == "c1"
    assert options.get_role("role")["name"] == "mods"
    assert options.get_attachment("file")["filename"] == "log.txt"


def test_channel_type_filter_rejects_other_types() -> None:
    options = _resolver({"type": 7, "name": "where", "value": "c1"})

    with pytest.raises(TypeMismatch):
        options.get_channel("where", channel_types=[2])


def test_mentionable_prefers_member_then_user_then_role() -> None:
    options = _resolver(
        {"type": 9, "name": "a", "value": "u1"},
        {"type": 9, "name": "b", "value": "u2"},
        {"type": 9, "name": "c", "value": "r1"},
        {"type": 9, "name": "d", "value": "nobody"},
    )

    assert options.get_mentionable("a") == {"nick": "Al"}
    assert options.get_mentionable("b")["username"] == "bob"
    assert options.get_mentionable("c")["name"] == "mods"
    with pytest.raises(ResolutionFailure):
        options.get_mentionable("d")


def test_get_focused_returns_focused_leaf() -> None:
    options = _resolver(
        {
            "type": 1,
            "name": "find",
            "options": [
                {"type": 3, "name": "kind", "value": "book"},
                {"type": 3, "name": "query", "value": "dun", "focused": True},
            ],
        }
    )

    focused = options.get_focused()
    assert focused.name == "query"
    assert focused.type is OptionType.STRING
    assert focused.value == "dun"


def test_get_focused_without_focus_raises() -> None:
    with pytest.raises(MissingRequiredOption):
        _resolver({"type": 3, "name": "query", "value": "x"}).get_focused()
