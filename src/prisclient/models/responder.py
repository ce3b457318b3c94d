"""
Responder command descriptor.

A responder advertises the commands it handles with these records. Matching
``regex`` against incoming messages is left to the responder itself.
"""

from pydantic import BaseModel


class ResponderCommand(BaseModel):
    name: str
    type: str = "message"  # "message" or "mention"
    regex: str = ""
    help: str = ""
    help_cmd: str = ""
    fallthrough: bool = False
