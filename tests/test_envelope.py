"""Envelope model: sparse wire form, aliases, decode-time rejection."""

import json

import pytest

from prisclient.errors import EnvelopeError
from prisclient.models.envelope import Action, ClientType, MessageBlock, QueryType, UserInfo
from prisclient.models.responder import ResponderCommand
from prisclient.transport.envelope import (
    build_command,
    build_message,
    disengage_notice,
    encode_envelope,
    is_disengage_notice,
    parse_envelope,
)


def test_disengage_notice_wire_form():
    assert disengage_notice().to_wire() == {
        "type": "command",
        "source": "pris",
        "command": {"action": "disengage"},
    }
    assert is_disengage_notice(disengage_notice())
    assert not is_disengage_notice(build_command("disengage", source="slack"))


def test_wire_form_omits_zero_values():
    query = build_message("lobby", "hi", source="irc")
    assert query.to_wire() == {
        "type": "message",
        "source": "irc",
        "message": {"message": "hi", "room": "lobby"},
    }


def test_message_aliases_round_trip_to_wire_names():
    query = build_message(
        "lobby", "@bot ping",
        from_="alice", mentioned=True, stripped="ping",
        mention_notify=["alice", "bob"], display_name="Alice",
        user=UserInfo(id="U1", name="alice", mention="@alice", email="a@example.com"),
    )
    wire = query.to_wire()["message"]
    assert wire["from"] == "alice"
    assert wire["mentionnotify"] == ["alice", "bob"]
    assert wire["username"] == "Alice"
    assert wire["user"] == {"id": "U1", "name": "alice", "mention": "@alice", "email": "a@example.com"}


def test_encode_is_compact_json_line():
    data = encode_envelope(build_command("info", type="user", id="abc"))
    assert data.endswith(b"\n")
    assert b" " not in data
    assert json.loads(data) == {"type": "command", "command": {"id": "abc", "action": "info", "type": "user"}}


def test_parse_fills_missing_fields_with_zero_values():
    query = parse_envelope({"type": "message", "message": {"room": "lobby", "from": "bob"}})
    assert query.type == QueryType.MESSAGE
    assert query.source == ""
    assert query.command is None
    assert query.message.from_ == "bob"
    assert query.message.mentioned is False
    assert query.message.mention_notify == []
    assert query.message.user is None


def test_parse_handshake_reply():
    query = parse_envelope({"type": "command", "command": {"action": "proceed", "data": "bot-1"}})
    assert query.command.action == Action.PROCEED
    assert query.command.data == "bot-1"
    assert query.command.time == 0


def test_parse_keeps_auxiliary_fields():
    query = parse_envelope({
        "type": "command",
        "command": {"action": "info", "type": "room", "array": ["a"], "options": ["o"],
                    "map": {"k": "v"}, "error": "nope"},
    })
    assert query.command.array == ["a"]
    assert query.command.options == ["o"]
    assert query.command.map == {"k": "v"}
    assert query.command.error == "nope"


def test_payload_entries_with_empty_values_survive_encoding():
    query = build_command("info", type="room", map={"k": "", "j": "v"}, array=["", "a"])
    wire = json.loads(encode_envelope(query))
    assert wire["command"]["map"] == {"k": "", "j": "v"}
    assert wire["command"]["array"] == ["", "a"]
    assert "options" not in wire["command"]
    assert parse_envelope(wire).command.map == {"k": "", "j": "v"}


def test_parse_ignores_unknown_keys():
    query = parse_envelope({"type": "message", "flavor": "x", "message": {"room": "r", "extra": 1}})
    assert query.message.room == "r"


@pytest.mark.parametrize("raw", [
    {"type": "bogus"},
    {"source": "no-type"},
    {"type": "command", "command": {"action": "dance"}},
    {"type": "message", "message": {"mentionnotify": "not-a-list"}},
    ["not", "an", "object"],
])
def test_parse_rejects_unknown_variants(raw):
    with pytest.raises(EnvelopeError) as exc:
        parse_envelope(raw)
    assert exc.value.code == "envelope_error"


def test_message_block_accepts_both_names():
    assert MessageBlock(**{"from": "a"}).from_ == "a"
    assert MessageBlock(from_="a").from_ == "a"


def test_client_type_values():
    assert {c.value for c in ClientType} == {"adapter", "responder"}


def test_responder_command_defaults():
    cmd = ResponderCommand(name="ping", regex=r"^ping$", help="replies pong")
    assert cmd.type == "message"
    assert cmd.fallthrough is False
    assert cmd.help_cmd == ""
