"""Server user schema - an account on one media server."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServerUser(BaseModel):
    """Server user entity schema.

    Trust score lives in [0, 100]; rules adjust it through the
    dependency provider, never on this object.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str = Field(..., description="Unique server user identifier")
    username: str = Field(..., description="Username on the media server")
    trust_score: int = Field(default=100, ge=0, le=100, description="Current trust score")
