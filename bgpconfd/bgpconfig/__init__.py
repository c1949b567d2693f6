"""
BGP Config - hot reload and diff for the BGP daemon configuration

Keeps a running daemon in sync with its config file without a restart.
The file is watched, re-parsed on change, and each new snapshot is
diffed against the one currently applied so only affected sessions are
touched.

Features:
- TOML, YAML and JSON config files, strict schema (unknown keys rejected)
- Default population and peer-group inheritance
- Coalesced reloads from file events and SIGHUP
- Bounded retry while the file is missing at startup
- Peer-group / neighbor change sets and routing policy change detection

Usage:
    from bgpconfig import SnapshotLoader, ReloadLoop, ConfigConsumer

    loader = SnapshotLoader("/etc/bgpd.yaml")
    reload_loop = ReloadLoop(loader)
    consumer = ConfigConsumer(reload_loop.config_queue, apply_changes=apply)

    await asyncio.gather(reload_loop.run(), consumer.run())
"""

from .errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigDefaultsError,
    ConfigWatchError,
    ConfigFatalError,
)
from .models import (
    BgpConfigSet,
    Global,
    PeerGroup,
    Neighbor,
    DefinedSets,
    PolicyDefinition,
    RoutingPolicy,
    config_set_to_routing_policy,
)
from .defaults import set_default_config_values
from .loader import SnapshotLoader, read_config_file, detect_config_file_type
from .diff import (
    ChangeSet,
    ConfigChanges,
    update_peer_group_config,
    update_neighbor_config,
    check_policy_difference,
    compute_changes,
)
from .reload import ReloadLoop, ReloadState, ReloadStats
from .watcher import ConfigFileWatcher
from .consumer import ConfigConsumer
from .constants import (
    MAX_NOT_FOUND_RETRIES,
    NOT_FOUND_RETRY_DELAY,
    DEFAULT_CONFIG_TYPE,
)

__all__ = [
    # Errors
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigDefaultsError",
    "ConfigWatchError",
    "ConfigFatalError",
    # Models
    "BgpConfigSet",
    "Global",
    "PeerGroup",
    "Neighbor",
    "DefinedSets",
    "PolicyDefinition",
    "RoutingPolicy",
    "config_set_to_routing_policy",
    # Loading
    "set_default_config_values",
    "SnapshotLoader",
    "read_config_file",
    "detect_config_file_type",
    # Diff
    "ChangeSet",
    "ConfigChanges",
    "update_peer_group_config",
    "update_neighbor_config",
    "check_policy_difference",
    "compute_changes",
    # Reload
    "ReloadLoop",
    "ReloadState",
    "ReloadStats",
    "ConfigFileWatcher",
    "ConfigConsumer",
    # Constants
    "MAX_NOT_FOUND_RETRIES",
    "NOT_FOUND_RETRY_DELAY",
    "DEFAULT_CONFIG_TYPE",
]
