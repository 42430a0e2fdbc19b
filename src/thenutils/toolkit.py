"""
Feature-selected bundles of the public operations.

The iteration core is always available. The filesystem and process wrapper
sets are only built when the matching flag of ``FeatureConfiguration`` is
on, so an application can ship a toolkit that provably cannot touch the
disk or start processes.
"""

import logging
from typing import Any, Callable, Dict, Optional

from . import args, filesystem, iteration, process
from .utils.config_manager import FeatureConfiguration, get_config
from .utils.exceptions import FeatureDisabledError

logger = logging.getLogger(__name__)

CORE_OPERATIONS: Dict[str, Callable[..., Any]] = {
    "async_for": iteration.async_for,
    "async_while": iteration.async_while,
    "sleep": iteration.sleep,
    "first_defined": iteration.first_defined,
    "parse_args": args.parse_args,
}

FEATURE_OPERATIONS: Dict[str, Dict[str, Callable[..., Any]]] = {
    "filesystem": {
        "rmrf": filesystem.rmrf,
        "mkdirp": filesystem.mkdirp,
        "cpr": filesystem.cpr,
        "mv": filesystem.mv,
        "readdir": filesystem.readdir,
        "filter_by_extension": filesystem.filter_by_extension,
        "read_file": filesystem.read_file,
        "write_file": filesystem.write_file,
    },
    "process": {
        "exec_command": process.exec_command,
        "spawn": process.spawn,
    },
}


class Toolkit:
    """Namespace holding the operations of the enabled feature sets."""

    def __init__(self, features: FeatureConfiguration):
        self.features = features
        self._operations: Dict[str, Callable[..., Any]] = dict(CORE_OPERATIONS)
        for feature, operations in FEATURE_OPERATIONS.items():
            if getattr(features, feature):
                self._operations.update(operations)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        operations = self.__dict__.get("_operations", {})
        if name in operations:
            return operations[name]
        for feature, feature_operations in FEATURE_OPERATIONS.items():
            if name in feature_operations:
                raise FeatureDisabledError(name, feature)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self._operations))

    @property
    def enabled_features(self):
        return [feature for feature in FEATURE_OPERATIONS if getattr(self.features, feature)]


def build_toolkit(features: Optional[FeatureConfiguration] = None) -> Toolkit:
    """Build a toolkit for ``features``, or for the configured features."""
    if features is None:
        features = get_config().features
    toolkit = Toolkit(features)
    logger.debug(f"Built toolkit with features: {toolkit.enabled_features}")
    return toolkit
