"""Common utilities - logging, config, exceptions."""

from streamwarden.common.logging.logger import get_logger
from streamwarden.common.config import Config, get_config, reset_config
from streamwarden.common.exceptions import (
    StreamWardenException,
    CollaboratorError,
    LegacyRuleConversionError,
    AuditError,
    ConfirmationError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "get_config",
    "reset_config",
    # Exceptions
    "StreamWardenException",
    "CollaboratorError",
    "LegacyRuleConversionError",
    "AuditError",
    "ConfirmationError",
]
