"""Server schema - a monitored media server."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServerType(str, Enum):
    """Supported media server products."""
    PLEX = "plex"
    JELLYFIN = "jellyfin"
    EMBY = "emby"


class Server(BaseModel):
    """Media server entity schema."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str = Field(..., description="Unique server identifier")
    name: str = Field(..., description="Display name")
    type: ServerType = Field(..., description="Media server product")
