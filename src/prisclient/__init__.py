"""
prisclient: Priscilla hub client for Python.

Engage with a Priscilla chat-automation hub over TCP as an adapter or a
responder, then exchange validated command and message envelopes.
"""

from prisclient.client import PrisClient
from prisclient.auth import compute_credential, random_id
from prisclient.config import ClientConfig
from prisclient.errors import (
    PrisError,
    ConfigurationError,
    ConnectionError,
    HandshakeError,
    Disconnected,
    EnvelopeError,
)
from prisclient.models.envelope import Action, ClientType, CommandBlock, MessageBlock, Query, QueryType, UserInfo
from prisclient.models.responder import ResponderCommand
from prisclient.transport.connection import ConnectionState
from prisclient.transport.envelope import build_command, build_message, disengage_notice, is_disengage_notice
from prisclient.validator import validate_inbound, validate_outbound

__version__ = "0.1.0"
__all__ = [
    "PrisClient",
    "ClientConfig",
    "ConnectionState",
    "compute_credential",
    "random_id",
    "validate_inbound",
    "validate_outbound",
    "build_command",
    "build_message",
    "disengage_notice",
    "is_disengage_notice",
    "Query",
    "QueryType",
    "CommandBlock",
    "MessageBlock",
    "UserInfo",
    "Action",
    "ClientType",
    "ResponderCommand",
    "PrisError",
    "ConfigurationError",
    "ConnectionError",
    "HandshakeError",
    "Disconnected",
    "EnvelopeError",
]
