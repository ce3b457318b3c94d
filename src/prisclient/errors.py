"""
prisclient error types.

Dial and handshake failures are retried when auto-retry is on and are
fatal otherwise. Envelope errors never tear the connection down.
"""

from typing import Any, Optional


class PrisError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ConfigurationError(PrisError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("configuration_error", message, details)


class ConnectionError(PrisError):
    def __init__(self, message: str, code: str = "connection_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class HandshakeError(ConnectionError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="handshake_error", details=details)


class Disconnected(ConnectionError):
    """The hub closed the stream cleanly."""

    def __init__(self, message: str = "connection closed by hub"):
        super().__init__(message, code="disconnected")


class EnvelopeError(PrisError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("envelope_error", message, details)
