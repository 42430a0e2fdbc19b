"""
thenutils: small async helpers.

Sequential async iteration, recursive filesystem operations, process
wrappers and a CLI-style argument tokenizer, all as coroutines.
"""

import logging

from .iteration import async_for, async_while, sleep, first_defined
from .filesystem import (
    rmrf,
    mkdirp,
    cpr,
    mv,
    readdir,
    filter_by_extension,
    read_file,
    write_file,
)
from .process import exec_command, spawn, CommandResult, SpawnedProcess
from .args import parse_args
from .toolkit import Toolkit, build_toolkit
from .utils import (
    ThenUtilsError,
    ProcessExecutionError,
    FeatureDisabledError,
    ConfigurationError,
    get_config,
    setup_logging,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Iteration
    "async_for",
    "async_while",
    "sleep",
    "first_defined",

    # Filesystem
    "rmrf",
    "mkdirp",
    "cpr",
    "mv",
    "readdir",
    "filter_by_extension",
    "read_file",
    "write_file",

    # Processes
    "exec_command",
    "spawn",
    "CommandResult",
    "SpawnedProcess",

    # Arguments
    "parse_args",

    # Feature selection
    "Toolkit",
    "build_toolkit",

    # Errors, configuration, logging
    "ThenUtilsError",
    "ProcessExecutionError",
    "FeatureDisabledError",
    "ConfigurationError",
    "get_config",
    "setup_logging",
]
