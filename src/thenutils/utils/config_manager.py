"""Configuration Management

Hierarchical configuration for the thenutils helpers.

Configuration Hierarchy (highest to lowest precedence):
1. Runtime overrides (update_configuration)
2. Environment Variables (THENUTILS_* prefix)
3. Project Configuration ({project}/.thenutils/config.yaml)
4. Global Configuration (~/.thenutils/config.yaml)
5. Hardcoded Defaults

Architecture:
- ConfigurationManager: singleton service with caching
- Configuration Models: Pydantic models for every section
- EnvironmentVariableMapper: environment variable handling
- ConfigurationLoader: YAML loading and merging
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from .exceptions import ThenUtilsError

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".thenutils"
CONFIG_FILENAME = "config.yaml"

# ============================================================================
# Exceptions
# ============================================================================

class ConfigurationError(ThenUtilsError):
    """Base exception for configuration management operations."""
    pass

class ConfigurationValidationError(ConfigurationError):
    """Raised when configuration validation fails."""
    pass

class ConfigurationFileError(ConfigurationError):
    """Raised when configuration file operations fail."""
    pass

# ============================================================================
# Configuration Models
# ============================================================================

class LoggingConfiguration(BaseModel):
    """Configuration for logging."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    level: str = Field(default="INFO", description="Default log level")
    enable_file_logging: bool = Field(default=False, description="Enable logging to files")
    log_directory: str = Field(default="logs", description="Log file directory")
    enable_structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    max_log_size_mb: int = Field(default=10, ge=1, le=1000, description="Maximum log file size (MB)")
    backup_count: int = Field(default=5, ge=0, le=100, description="Rotated log files to keep")

class FilesystemConfiguration(BaseModel):
    """Configuration for the filesystem helpers."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    copy_chunk_size: int = Field(default=64 * 1024, ge=1, description="Bytes per read while copying files")
    default_encoding: str = Field(default="utf-8", description="Encoding for directory entry names")

class ProcessConfiguration(BaseModel):
    """Configuration for the process wrappers."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    default_encoding: str = Field(default="utf-8", description="Encoding used to decode command output")
    default_timeout: Optional[float] = Field(default=None, gt=0, description="Command timeout in seconds")
    shell: Optional[str] = Field(default=None, description="Shell executable (platform default if unset)")

class FeatureConfiguration(BaseModel):
    """Selects which wrapper sets a toolkit is built with."""
    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid'
    )

    filesystem: bool = Field(default=True, description="Build the filesystem wrappers")
    process: bool = Field(default=True, description="Build the process wrappers")

class SystemConfiguration(BaseModel):
    """Master configuration containing all settings."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
    filesystem: FilesystemConfiguration = Field(default_factory=FilesystemConfiguration)
    process: ProcessConfiguration = Field(default_factory=ProcessConfiguration)
    features: FeatureConfiguration = Field(default_factory=FeatureConfiguration)

# ============================================================================
# Environment Variable Mapping
# ============================================================================

class EnvironmentVariableMapper:
    """Maps environment variables to configuration fields."""

    ENV_MAPPINGS = {
        "THENUTILS_LOG_LEVEL": "logging.level",
        "THENUTILS_LOG_FORMAT": "logging.enable_structured_logging",
        "THENUTILS_LOG_DIRECTORY": "logging.log_directory",
        "THENUTILS_COPY_CHUNK_SIZE": "filesystem.copy_chunk_size",
        "THENUTILS_FS_ENCODING": "filesystem.default_encoding",
        "THENUTILS_PROCESS_ENCODING": "process.default_encoding",
        "THENUTILS_PROCESS_TIMEOUT": "process.default_timeout",
        "THENUTILS_PROCESS_SHELL": "process.shell",
        "THENUTILS_ENABLE_FILESYSTEM": "features.filesystem",
        "THENUTILS_ENABLE_PROCESS": "features.process",
    }

    BOOLEAN_FIELDS = {"features.filesystem", "features.process"}
    INTEGER_FIELDS = {"filesystem.copy_chunk_size"}
    FLOAT_FIELDS = {"process.default_timeout"}

    @classmethod
    def load_from_environment(cls) -> Dict[str, Any]:
        """Load configuration values from environment variables."""
        env_config: Dict[str, Any] = {}

        for env_var, config_path in cls.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None:
                converted_value = cls._convert_env_value(value, config_path)
                cls._set_nested_value(env_config, config_path, converted_value)
                logger.debug(f"Loaded environment variable: {env_var}={value} -> {config_path}")

        return env_config

    @classmethod
    def _convert_env_value(cls, value: str, config_path: str) -> Any:
        """Convert environment variable string to appropriate type."""
        if config_path == "logging.enable_structured_logging":
            return value.strip().lower() == "json"

        if config_path in cls.BOOLEAN_FIELDS:
            return value.lower() in ('true', '1', 'yes', 'on')

        if config_path in cls.INTEGER_FIELDS:
            try:
                return int(value)
            except ValueError:
                logger.warning(f"Invalid integer value for {config_path}: {value}")
                return value

        if config_path in cls.FLOAT_FIELDS:
            try:
                return float(value)
            except ValueError:
                logger.warning(f"Invalid float value for {config_path}: {value}")
                return value

        return value

    @classmethod
    def _set_nested_value(cls, config_dict: Dict[str, Any], path: str, value: Any) -> None:
        """Set a value in a nested dictionary using dot notation."""
        keys = path.split('.')
        current = config_dict

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

# ============================================================================
# Configuration Loading and Management
# ============================================================================

class ConfigurationLoader:
    """Handles loading and parsing of configuration files."""

    @staticmethod
    def load_yaml_file(file_path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML file."""
        if not file_path.exists():
            logger.debug(f"Configuration file not found: {file_path}")
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error in {file_path}: {e}")
            raise ConfigurationFileError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except OSError as e:
            logger.error(f"Error loading configuration file {file_path}: {e}")
            raise ConfigurationFileError(f"Failed to load {file_path}: {e}") from e

        if not isinstance(content, dict):
            raise ConfigurationFileError(f"Configuration in {file_path} is not a mapping")

        logger.debug(f"Loaded configuration from: {file_path}")
        return content

    @staticmethod
    def merge_configurations(*configs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge multiple configuration dictionaries with deep merging."""
        def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
            result = base.copy()

            for key, value in override.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value

            return result

        merged: Dict[str, Any] = {}
        for config in configs:
            merged = deep_merge(merged, config)

        return merged


class ConfigurationManager:
    """
    Singleton configuration manager providing hierarchical configuration with caching.

    Implements the following precedence (highest to lowest):
    1. Runtime overrides applied through update_configuration
    2. Environment Variables
    3. Project Configuration (.thenutils/config.yaml in project root)
    4. Global Configuration (~/.thenutils/config.yaml)
    5. Default Values (hardcoded in Pydantic models)
    """

    _instance: Optional['ConfigurationManager'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigurationManager':
        """Ensure singleton pattern."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize configuration manager (only once due to singleton)."""
        if hasattr(self, '_initialized'):
            return

        self._initialized = True
        self._config: Optional[SystemConfiguration] = None
        self._config_cache_time: float = 0
        self._cache_ttl: float = 300
        self._project_root: Optional[Path] = None
        self._runtime_overrides: Dict[str, Any] = {}

    def get_config(self, force_reload: bool = False) -> SystemConfiguration:
        """
        Get the current configuration, reloading it when the cache expired.

        Args:
            force_reload: Force reload from all sources, ignoring cache

        Returns:
            Complete configuration
        """
        current_time = time.time()

        if (force_reload or
            self._config is None or
            (current_time - self._config_cache_time) > self._cache_ttl):

            self._config = self._load_configuration()
            self._config_cache_time = current_time

        return self._config

    def reload_configuration(self) -> SystemConfiguration:
        """Force reload configuration from all sources."""
        return self.get_config(force_reload=True)

    def set_project_root(self, project_root: Path) -> None:
        """Set the project root path for project-specific configuration."""
        self._project_root = Path(project_root)
        logger.debug(f"Set project root to: {project_root}")
        self.reload_configuration()

    def update_configuration(self, updates: Dict[str, Any]) -> SystemConfiguration:
        """
        Update configuration at runtime.

        Args:
            updates: Configuration updates in nested dictionary format

        Returns:
            The validated, updated configuration

        Raises:
            ConfigurationValidationError: if the merged configuration is invalid
        """
        current_dict = self.get_config().model_dump()
        merged_dict = ConfigurationLoader.merge_configurations(current_dict, updates)

        new_config = validate_configuration(merged_dict)

        # Kept so reloads from files and environment do not drop them
        self._runtime_overrides = ConfigurationLoader.merge_configurations(
            self._runtime_overrides, updates
        )
        self._config = new_config
        self._config_cache_time = time.time()
        logger.debug("Configuration updated")
        return new_config

    def _load_configuration(self) -> SystemConfiguration:
        """Load configuration from all sources with proper precedence."""
        configs_to_merge = []

        global_config_path = Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME
        global_config = ConfigurationLoader.load_yaml_file(global_config_path)
        if global_config:
            configs_to_merge.append(global_config)

        if self._project_root:
            project_config_path = self._project_root / CONFIG_DIRNAME / CONFIG_FILENAME
            project_config = ConfigurationLoader.load_yaml_file(project_config_path)
            if project_config:
                configs_to_merge.append(project_config)

        env_config = EnvironmentVariableMapper.load_from_environment()
        if env_config:
            configs_to_merge.append(env_config)

        if self._runtime_overrides:
            configs_to_merge.append(self._runtime_overrides)

        merged_config = ConfigurationLoader.merge_configurations(*configs_to_merge)
        config = validate_configuration(merged_config)
        logger.debug("Configuration loaded from %d source(s)", len(configs_to_merge))
        return config

    @classmethod
    def reset(cls) -> None:
        """Forget the singleton so the next access reloads from scratch."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance._runtime_overrides = {}
            cls._instance = None

# ============================================================================
# Global Configuration Access
# ============================================================================

def get_config_manager() -> ConfigurationManager:
    """Get the global configuration manager instance."""
    return ConfigurationManager()

def get_config() -> SystemConfiguration:
    """Get the global configuration instance."""
    return get_config_manager().get_config()

def reload_config() -> SystemConfiguration:
    """Force reload the global configuration."""
    return get_config_manager().reload_configuration()

def reset_config() -> None:
    """Drop cached configuration state."""
    ConfigurationManager.reset()

def validate_configuration(config_dict: Dict[str, Any]) -> SystemConfiguration:
    """Validate a configuration dictionary."""
    try:
        return SystemConfiguration(**config_dict)
    except Exception as e:
        raise ConfigurationValidationError(f"Configuration validation failed: {e}") from e
