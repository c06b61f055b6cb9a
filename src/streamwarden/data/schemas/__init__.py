"""Data schemas - canonical Pydantic definitions."""

from streamwarden.data.schemas.session import Session
from streamwarden.data.schemas.server import Server, ServerType
from streamwarden.data.schemas.user import ServerUser

__all__ = [
    "Session",
    "Server",
    "ServerType",
    "ServerUser",
]
