"""
Engage credential and correlation ids.

The hub recomputes the same digest from its copy of the shared secret, so
the output must depend only on the inputs.
"""

import base64
import hashlib
import hmac
import secrets


def compute_credential(secret: str, source_id: str, timestamp: int) -> str:
    """HMAC-SHA256 over ``f"{timestamp}{source_id}{secret}"`` keyed by ``secret``, base64-encoded."""
    message = f"{timestamp}{source_id}{secret}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def random_id() -> str:
    """16 lowercase hex characters from the OS CSPRNG."""
    return secrets.token_hex(8)
