"""
Client configuration: construction options and the JSON config file.
"""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from prisclient.errors import ConfigurationError
from prisclient.models.envelope import ClientType
from prisclient.transport.connection import RETRY_DELAY

CONFIG_FILE = Path.home() / ".pris" / "config.json"
DEFAULT_PORT = 4517


class ClientConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)
    client_type: ClientType = ClientType.RESPONDER
    source_id: str = ""
    secret: str = ""
    auto_retry: bool = False
    retry_delay: float = Field(RETRY_DELAY, ge=0)
    connect_timeout: Optional[float] = Field(None, gt=0)
    read_timeout: Optional[float] = Field(None, gt=0)

    def masked(self) -> dict[str, Any]:
        """Config as a dict with the secret hidden, for display."""
        data = self.model_dump(mode="json")
        if data["secret"]:
            data["secret"] = "********"
        return data


def make_config(values: dict[str, Any]) -> ClientConfig:
    """Validate raw option values. Unset (None) values fall back to defaults."""
    try:
        return ClientConfig.model_validate({k: v for k, v in values.items() if v is not None})
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid client configuration: {fields}",
                                 details={"errors": e.errors(include_url=False)}) from e


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    try:
        data = json.loads((path or CONFIG_FILE).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(cfg, indent=2))
