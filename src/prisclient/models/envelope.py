"""
Wire envelope models: Query, CommandBlock, MessageBlock, UserInfo.

Every field is optional on the wire. A missing field decodes to its zero
value, and zero values are left out when encoding.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class QueryType(str, Enum):
    COMMAND = "command"
    MESSAGE = "message"


class Action(str, Enum):
    ENGAGE = "engage"
    PROCEED = "proceed"
    DISENGAGE = "disengage"
    USER_REQUEST = "user_request"
    ROOM_REQUEST = "room_request"
    INFO = "info"


class ClientType(str, Enum):
    ADAPTER = "adapter"
    RESPONDER = "responder"


class UserInfo(BaseModel):
    """Identity record resolved by the hub."""
    id: str = ""
    name: str = ""
    mention: str = ""
    email: str = ""


class CommandBlock(BaseModel):
    id: str = ""
    action: Optional[Action] = None
    type: str = ""  # sub-kind, depends on action
    time: int = 0   # unix seconds, engage only
    data: str = ""
    error: str = ""
    array: list[str] = []
    options: list[str] = []
    map: dict[str, str] = {}


class MessageBlock(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    from_: str = Field("", alias="from")
    room: str = ""
    mentioned: bool = False
    stripped: str = ""
    mention_notify: list[str] = Field([], alias="mentionnotify")
    user: Optional[UserInfo] = None
    display_name: str = Field("", alias="username")


class Query(BaseModel):
    type: QueryType
    source: str = ""
    to: str = ""
    command: Optional[CommandBlock] = None
    message: Optional[MessageBlock] = None

    def to_wire(self) -> dict[str, Any]:
        """Sparse JSON-ready dict using wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_defaults=True)
