"""StreamWarden - rule enforcement for media-server playback sessions."""

__version__ = "0.1.0"
__author__ = "StreamWarden Team"
