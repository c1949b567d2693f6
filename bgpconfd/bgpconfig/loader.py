"""
Config Snapshot Loader

Reads the whole config file, parses it (TOML, YAML or JSON), validates
it against the schema and populates defaults. Every successful call
returns a brand new BgpConfigSet.

Duplicate keys are rejected in every format, and the schema rejects
unknown keys, so a typo in the file fails the load instead of being
silently dropped.
"""

import json
import logging
import os
import tomllib
from collections.abc import Hashable
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from .constants import (
    CONFIG_FILE_EXTENSIONS,
    CONFIG_TYPE_AUTO,
    CONFIG_TYPE_JSON,
    CONFIG_TYPE_TOML,
    CONFIG_TYPE_YAML,
    CONFIG_TYPES,
    DEFAULT_CONFIG_TYPE,
)
from .defaults import set_default_config_values
from .errors import (
    ConfigDefaultsError,
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
)
from .models import BgpConfigSet

logger = logging.getLogger("BGPConfig.Loader")


def detect_config_file_type(path: str, default: Optional[str] = None) -> str:
    """
    Pick the parser for a config file

    A recognized extension wins over the hint. With an unrecognized
    extension the hint is used, and "auto" (or no hint) falls back to TOML.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext in CONFIG_FILE_EXTENSIONS:
        return CONFIG_FILE_EXTENSIONS[ext]
    if not default or default == CONFIG_TYPE_AUTO:
        return DEFAULT_CONFIG_TYPE
    return default


class _UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that refuses repeated mapping keys"""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    "found unhashable key", key_node.start_mark
                )
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _unique_pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"duplicate key {key!r}")
        result[key] = value
    return result


def _parse(raw: bytes, config_type: str) -> Any:
    if config_type == CONFIG_TYPE_TOML:
        return tomllib.loads(raw.decode("utf-8"))
    if config_type == CONFIG_TYPE_YAML:
        return yaml.load(raw, Loader=_UniqueKeyLoader)
    if config_type == CONFIG_TYPE_JSON:
        return json.loads(raw, object_pairs_hook=_unique_pairs)
    raise ValueError(f"unsupported config type {config_type}")


def read_config_file(path: str, config_type: str) -> BgpConfigSet:
    """
    Load one snapshot from disk

    Args:
        path: Config file path
        config_type: Parser to use (toml, yaml or json)

    Returns:
        Fully defaulted config set

    Raises:
        ConfigNotFoundError: File does not exist
        ConfigParseError: Syntax error, duplicate/unknown key or schema violation
        ConfigDefaultsError: Default population failed
        ConfigError: File exists but cannot be read
    """
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError as e:
        raise ConfigNotFoundError(f"config file {path} not found", path) from e
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}", path) from e

    try:
        data = _parse(raw, config_type)
    except (ValueError, RecursionError, yaml.YAMLError) as e:
        # tomllib and json decode errors are ValueError subclasses;
        # RecursionError comes from pathologically nested documents
        raise ConfigParseError(f"cannot parse {config_type} file {path}: {e}", path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"config file {path} must hold a mapping at the top level, "
            f"got {type(data).__name__}", path
        )

    try:
        config_set = BgpConfigSet.model_validate(data)
    except (ValidationError, RecursionError) as e:
        raise ConfigParseError(f"invalid config file {path}: {e}", path) from e

    try:
        return set_default_config_values(config_set)
    except ConfigDefaultsError as e:
        e.path = path
        raise


class SnapshotLoader:
    """
    Loads config snapshots from a fixed source

    The parser is chosen once, at construction, from the file extension
    and the type hint.
    """

    def __init__(self, path: str, config_type: str = CONFIG_TYPE_AUTO):
        if config_type not in CONFIG_TYPES and config_type != CONFIG_TYPE_AUTO:
            raise ValueError(f"unsupported config type {config_type}")
        self.path = str(path)
        self.config_type = detect_config_file_type(self.path, config_type)

    def load(self) -> BgpConfigSet:
        """Read, parse and default the whole file"""
        config_set = read_config_file(self.path, self.config_type)
        logger.debug(
            f"[Config] Loaded {self.path}: {len(config_set.neighbors)} neighbors, "
            f"{len(config_set.peer_groups)} peer-groups, "
            f"{len(config_set.policy_definitions)} policies"
        )
        return config_set
