"""
BGP Config Constants

Defaults and tunables for configuration loading, default population
and the reload loop.
"""

# Config file formats
CONFIG_TYPE_TOML = "toml"
CONFIG_TYPE_YAML = "yaml"
CONFIG_TYPE_JSON = "json"
CONFIG_TYPE_AUTO = "auto"

CONFIG_TYPES = (CONFIG_TYPE_TOML, CONFIG_TYPE_YAML, CONFIG_TYPE_JSON)
DEFAULT_CONFIG_TYPE = CONFIG_TYPE_TOML

# Recognized file extensions (extension always wins over the type hint)
CONFIG_FILE_EXTENSIONS = {
    ".toml": CONFIG_TYPE_TOML,
    ".yaml": CONFIG_TYPE_YAML,
    ".yml": CONFIG_TYPE_YAML,
    ".json": CONFIG_TYPE_JSON,
}

# Reload loop
MAX_NOT_FOUND_RETRIES = 5              # First-load attempts before giving up
NOT_FOUND_RETRY_DELAY = 1.0            # Fixed delay between attempts (seconds)
CONFIG_QUEUE_SIZE = 1                  # Single-slot handoff to the consumer

# Global defaults
BGP_PORT = 179
DEFAULT_LOCAL_ADDRESS_LIST = ("0.0.0.0", "::")
DEFAULT_GLOBAL_AFI_SAFIS = ("ipv4-unicast", "ipv6-unicast")

# Neighbor defaults (seconds)
DEFAULT_HOLD_TIME = 90
DEFAULT_CONNECT_RETRY = 5
DEFAULT_IDLE_HOLD_TIME_AFTER_RESET = 30

# Address family defaults
AFI_SAFI_IPV4_UNICAST = "ipv4-unicast"
AFI_SAFI_IPV6_UNICAST = "ipv6-unicast"
IPV4_ANY = "0.0.0.0"
IPV6_ANY = "::"

# Peer types
PEER_TYPE_INTERNAL = "internal"
PEER_TYPE_EXTERNAL = "external"

# eBGP multihop TTLs
EBGP_DEFAULT_TTL = 1
IBGP_DEFAULT_TTL = 255
