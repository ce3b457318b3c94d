"""
Envelope validation.

The same predicate gates both directions. Missing command ids are filled in
with a fresh random id, which is the only change a validation makes.
"""

import logging
from typing import Optional

from prisclient.auth import random_id
from prisclient.models.envelope import Action, CommandBlock, Query, QueryType

logger = logging.getLogger(__name__)

USER_REQUEST_TYPES = frozenset({"user", "mention", "email", "id"})
ROOM_REQUEST_TYPES = frozenset({"name", "id"})
INFO_TYPES = frozenset({"user", "room"})


def _validate_command(cmd: CommandBlock, log: logging.Logger) -> bool:
    if not cmd.id:
        log.warning("Missing request id, assigning one")
        cmd.id = random_id()

    if cmd.action == Action.USER_REQUEST:
        if cmd.type not in USER_REQUEST_TYPES:
            log.error("Invalid user request type: %r", cmd.type)
            return False
        if not cmd.data:
            log.error("Missing data field in user request")
            return False
        return True

    if cmd.action == Action.ROOM_REQUEST:
        if cmd.type not in ROOM_REQUEST_TYPES:
            log.error("Invalid room request type: %r", cmd.type)
            return False
        if not cmd.data:
            log.error("Missing data field in room request")
            return False
        return True

    if cmd.action == Action.INFO:
        if cmd.type not in INFO_TYPES:
            log.error("Invalid info request type: %r", cmd.type)
            return False
        return True

    if cmd.action == Action.DISENGAGE:
        return True

    log.error("Unsupported command: %r", cmd.action.value if cmd.action else None)
    return False


def validate_query(query: Query, log: Optional[logging.Logger] = None) -> bool:
    log = log or logger
    if query.type == QueryType.COMMAND:
        if query.command is None:
            log.error("Command query without a command block")
            return False
        return _validate_command(query.command, log)
    if query.type == QueryType.MESSAGE:
        if query.message is None or not query.message.room:
            log.error("Message query without a room")
            return False
        return True
    return False


def validate_outbound(query: Query, log: Optional[logging.Logger] = None) -> bool:
    """Check an envelope the application wants to send."""
    return validate_query(query, log)


def validate_inbound(query: Query, log: Optional[logging.Logger] = None) -> bool:
    """Check an envelope decoded from the hub."""
    return validate_query(query, log)
