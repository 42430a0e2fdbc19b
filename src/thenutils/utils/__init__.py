"""
Utility modules for thenutils
"""

from .exceptions import ThenUtilsError, ProcessExecutionError, FeatureDisabledError
from .config_manager import (  # noqa: F401
    ConfigurationError,
    ConfigurationManager,
    SystemConfiguration,
    get_config,
    reset_config,
)
from .logger_setup import setup_logging  # noqa: F401

__all__ = [
    "ThenUtilsError",
    "ProcessExecutionError",
    "FeatureDisabledError",
    "ConfigurationError",
    "ConfigurationManager",
    "SystemConfiguration",
    "get_config",
    "reset_config",
    "setup_logging",
]
