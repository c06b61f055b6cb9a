"""Logging helpers."""

from streamwarden.common.logging.logger import get_logger

__all__ = ["get_logger"]
