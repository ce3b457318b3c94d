"""
Envelope construction, encoding and parsing.
"""

import json
from typing import Any

from pydantic import ValidationError

from prisclient.errors import EnvelopeError
from prisclient.models.envelope import Action, CommandBlock, MessageBlock, Query, QueryType

DISENGAGE_SOURCE = "pris"


def build_command(
    action: str,
    type: str = "",
    data: str = "",
    source: str = "",
    to: str = "",
    **fields: Any,
) -> Query:
    """Build a command envelope. Extra keyword arguments go into the command block."""
    return Query(
        type=QueryType.COMMAND,
        source=source,
        to=to,
        command=CommandBlock(action=action, type=type, data=data, **fields),
    )


def build_message(room: str, text: str, source: str = "", to: str = "", **fields: Any) -> Query:
    """Build a message envelope. Extra keyword arguments go into the message block."""
    return Query(
        type=QueryType.MESSAGE,
        source=source,
        to=to,
        message=MessageBlock(room=room, message=text, **fields),
    )


def disengage_notice() -> Query:
    """The envelope handed to the application when the session ends."""
    return Query(
        type=QueryType.COMMAND,
        source=DISENGAGE_SOURCE,
        command=CommandBlock(action=Action.DISENGAGE),
    )


def is_disengage_notice(query: Query) -> bool:
    return (
        query.type == QueryType.COMMAND
        and query.source == DISENGAGE_SOURCE
        and query.command is not None
        and query.command.action == Action.DISENGAGE
    )


def encode_envelope(query: Query) -> bytes:
    """Compact JSON followed by a newline."""
    return json.dumps(query.to_wire(), separators=(",", ":")).encode("utf-8") + b"\n"


def parse_envelope(raw: Any) -> Query:
    """Parse a decoded JSON object into a Query. Raises EnvelopeError on schema errors."""
    try:
        return Query.model_validate(raw)
    except ValidationError as e:
        raise EnvelopeError(
            f"Malformed envelope: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False), "raw": raw},
        ) from e
