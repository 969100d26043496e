"""
Validator Heartbeat Shared Library
==================================

Common utilities, configuration and chain access shared by the commands.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - blockchain: Chain client interface (mock/rpc)

Version: 0.1.0
"""

__version__ = "0.1.0"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
