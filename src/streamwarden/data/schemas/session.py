"""Session schema - canonical definition of a live playback session."""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Session(BaseModel):
    """Playback session entity schema.

    Represents one stream on a media server, owned by a server user.
    Stored records arrive in camelCase; both spellings are accepted.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        json_schema_extra={
            "example": {
                "id": "sess_abc123",
                "sessionKey": "abc123",
                "serverId": "srv_001",
                "serverUserId": "su_001",
                "state": "playing",
                "mediaType": "movie",
                "mediaTitle": "Test Movie",
                "startedAt": "2026-01-25T14:30:00Z",
                "ipAddress": "192.168.1.100",
            }
        },
    )

    id: str = Field(..., description="Unique session identifier")
    session_key: str = Field(..., description="Media server's key for the session")
    server_id: str = Field(..., description="Server the session is playing on")
    server_user_id: str = Field(..., description="Owning server user")
    started_at: datetime = Field(..., description="Playback start timestamp")
    state: str = Field(default="playing", description="playing, paused or stopped")
    media_type: Optional[str] = Field(default=None, description="movie, episode, track, ...")
    media_title: str = Field(default="", description="Title of the media being played")
    ip_address: Optional[str] = Field(default=None, description="Client IP address")
    geo_country: Optional[str] = Field(default=None, description="ISO 3166-1 alpha-2 country code")
    player_name: Optional[str] = Field(default=None, description="Player display name")
    device_id: Optional[str] = Field(default=None, description="Client device identifier")
    product: Optional[str] = Field(default=None, description="Client product name")
    platform: Optional[str] = Field(default=None, description="Client platform")

    @field_validator("started_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
