"""
BGP Config Models

Pydantic schema for the BGP daemon configuration file.

Keys in the file are kebab-case (``peer-groups``, ``neighbor-address``).
Unknown keys are rejected rather than ignored. All models are frozen and
every sequence is a tuple, so a parsed snapshot cannot be mutated in place;
default population and any later change produce new objects.
"""

from types import MappingProxyType
from typing import Annotated, Any, Dict, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer


def _to_kebab(name: str) -> str:
    return name.replace("_", "-")


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


# Free-form section kept read-only all the way down
FrozenMapping = Annotated[
    Dict[str, Any],
    AfterValidator(_freeze),
    PlainSerializer(_thaw, return_type=Dict[str, Any]),
]


class ConfigModel(BaseModel):
    """Base for every config section"""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=_to_kebab,
    )

    def equal(self, other: Optional["ConfigModel"]) -> bool:
        """Structural comparison over every configured field"""
        if other is None:
            return False
        return self == other


# ---------------------------------------------------------------------------
# Shared sections
# ---------------------------------------------------------------------------

class AfiSafiConfig(ConfigModel):
    afi_safi_name: str
    enabled: bool = True


class AfiSafi(ConfigModel):
    config: AfiSafiConfig


class ApplyPolicyConfig(ConfigModel):
    import_policy_list: Tuple[str, ...] = ()
    export_policy_list: Tuple[str, ...] = ()
    default_import_policy: str = "accept-route"
    default_export_policy: str = "accept-route"


class ApplyPolicy(ConfigModel):
    config: ApplyPolicyConfig = Field(default_factory=ApplyPolicyConfig)


class TimersConfig(ConfigModel):
    """Session timers in seconds, 0 means unset"""
    hold_time: float = 0
    keepalive_interval: float = 0
    connect_retry: float = 0
    idle_hold_time_after_reset: float = 0
    minimum_advertisement_interval: float = 0


class Timers(ConfigModel):
    config: TimersConfig = Field(default_factory=TimersConfig)


class TransportConfig(ConfigModel):
    local_address: str = ""
    passive_mode: bool = False
    remote_port: int = 0


class Transport(ConfigModel):
    config: TransportConfig = Field(default_factory=TransportConfig)


class EbgpMultihopConfig(ConfigModel):
    enabled: bool = False
    multihop_ttl: int = 0


class EbgpMultihop(ConfigModel):
    config: EbgpMultihopConfig = Field(default_factory=EbgpMultihopConfig)


class RouteReflectorConfig(ConfigModel):
    route_reflector_client: bool = False
    route_reflector_cluster_id: str = ""


class RouteReflector(ConfigModel):
    config: RouteReflectorConfig = Field(default_factory=RouteReflectorConfig)


# ---------------------------------------------------------------------------
# Global
# ---------------------------------------------------------------------------

class GlobalConfig(ConfigModel):
    as_: int = Field(0, alias="as")
    router_id: str = ""
    port: int = 0
    local_address_list: Tuple[str, ...] = ()


class Global(ConfigModel):
    config: GlobalConfig = Field(default_factory=GlobalConfig)
    afi_safis: Tuple[AfiSafi, ...] = ()
    apply_policy: ApplyPolicy = Field(default_factory=ApplyPolicy)


# ---------------------------------------------------------------------------
# Peer groups and neighbors
# ---------------------------------------------------------------------------

class PeerGroupConfig(ConfigModel):
    peer_group_name: str
    peer_as: int = 0
    local_as: int = 0
    peer_type: str = ""
    description: str = ""
    auth_password: str = ""


class PeerGroup(ConfigModel):
    """A named template of neighbor settings, identified by its name"""

    config: PeerGroupConfig
    timers: Timers = Field(default_factory=Timers)
    transport: Transport = Field(default_factory=Transport)
    afi_safis: Tuple[AfiSafi, ...] = ()
    apply_policy: ApplyPolicy = Field(default_factory=ApplyPolicy)
    ebgp_multihop: EbgpMultihop = Field(default_factory=EbgpMultihop)
    route_reflector: RouteReflector = Field(default_factory=RouteReflector)

    @property
    def key(self) -> str:
        return self.config.peer_group_name


class NeighborConfig(ConfigModel):
    neighbor_address: str = ""
    neighbor_interface: str = ""
    peer_as: int = 0
    local_as: int = 0
    peer_group: str = ""
    peer_type: str = ""
    description: str = ""
    auth_password: str = ""
    admin_down: bool = False
    vrf: str = ""


class Neighbor(ConfigModel):
    """A BGP peer, identified by its address (or interface when unnumbered)"""

    config: NeighborConfig
    timers: Timers = Field(default_factory=Timers)
    transport: Transport = Field(default_factory=Transport)
    afi_safis: Tuple[AfiSafi, ...] = ()
    apply_policy: ApplyPolicy = Field(default_factory=ApplyPolicy)
    ebgp_multihop: EbgpMultihop = Field(default_factory=EbgpMultihop)
    route_reflector: RouteReflector = Field(default_factory=RouteReflector)

    @property
    def key(self) -> str:
        return self.config.neighbor_address or self.config.neighbor_interface


class DynamicNeighborConfig(ConfigModel):
    prefix: str
    peer_group: str


class DynamicNeighbor(ConfigModel):
    config: DynamicNeighborConfig


# ---------------------------------------------------------------------------
# Defined sets
# ---------------------------------------------------------------------------

class Prefix(ConfigModel):
    ip_prefix: str
    masklength_range: str = ""


class PrefixSet(ConfigModel):
    prefix_set_name: str
    prefix_list: Tuple[Prefix, ...] = ()


class NeighborSet(ConfigModel):
    neighbor_set_name: str
    neighbor_info_list: Tuple[str, ...] = ()


class CommunitySet(ConfigModel):
    community_set_name: str
    community_list: Tuple[str, ...] = ()


class ExtCommunitySet(ConfigModel):
    ext_community_set_name: str
    ext_community_list: Tuple[str, ...] = ()


class LargeCommunitySet(ConfigModel):
    large_community_set_name: str
    large_community_list: Tuple[str, ...] = ()


class AsPathSet(ConfigModel):
    as_path_set_name: str
    as_path_list: Tuple[str, ...] = ()


class BgpDefinedSets(ConfigModel):
    community_sets: Tuple[CommunitySet, ...] = ()
    ext_community_sets: Tuple[ExtCommunitySet, ...] = ()
    large_community_sets: Tuple[LargeCommunitySet, ...] = ()
    as_path_sets: Tuple[AsPathSet, ...] = ()


class DefinedSets(ConfigModel):
    prefix_sets: Tuple[PrefixSet, ...] = ()
    neighbor_sets: Tuple[NeighborSet, ...] = ()
    bgp_defined_sets: BgpDefinedSets = Field(default_factory=BgpDefinedSets)


# ---------------------------------------------------------------------------
# Policy definitions
# ---------------------------------------------------------------------------

class MatchPrefixSet(ConfigModel):
    prefix_set: str
    match_set_options: str = "any"


class MatchNeighborSet(ConfigModel):
    neighbor_set: str
    match_set_options: str = "any"


class MatchCommunitySet(ConfigModel):
    community_set: str
    match_set_options: str = "any"


class MatchAsPathSet(ConfigModel):
    as_path_set: str
    match_set_options: str = "any"


class BgpConditions(ConfigModel):
    match_community_set: Optional[MatchCommunitySet] = None
    match_as_path_set: Optional[MatchAsPathSet] = None
    afi_safi_in: Tuple[str, ...] = ()
    next_hop_in_list: Tuple[str, ...] = ()
    route_type: str = ""


class Conditions(ConfigModel):
    match_prefix_set: Optional[MatchPrefixSet] = None
    match_neighbor_set: Optional[MatchNeighborSet] = None
    bgp_conditions: BgpConditions = Field(default_factory=BgpConditions)


class SetCommunityMethod(ConfigModel):
    communities_list: Tuple[str, ...] = ()


class SetCommunity(ConfigModel):
    options: str = "add"
    set_community_method: SetCommunityMethod = Field(default_factory=SetCommunityMethod)


class SetAsPathPrepend(ConfigModel):
    as_: str = Field("", alias="as")
    repeat_n: int = 1


class BgpActions(ConfigModel):
    set_med: str = ""
    set_local_pref: int = 0
    set_next_hop: str = ""
    set_community: Optional[SetCommunity] = None
    set_as_path_prepend: Optional[SetAsPathPrepend] = None


class Actions(ConfigModel):
    route_disposition: str = "none"
    bgp_actions: BgpActions = Field(default_factory=BgpActions)


class Statement(ConfigModel):
    name: str = ""
    conditions: Conditions = Field(default_factory=Conditions)
    actions: Actions = Field(default_factory=Actions)


class PolicyDefinition(ConfigModel):
    """Ordered statements; evaluation order is significant"""

    name: str
    statements: Tuple[Statement, ...] = ()


class RoutingPolicy(ConfigModel):
    """Defined sets and policy definitions projected out of a config set"""

    defined_sets: DefinedSets = Field(default_factory=DefinedSets)
    policy_definitions: Tuple[PolicyDefinition, ...] = ()


# ---------------------------------------------------------------------------
# Full snapshot
# ---------------------------------------------------------------------------

class BgpConfigSet(ConfigModel):
    """
    One complete parse of the configuration file

    The rpki, bmp, vrf, mrt, collector and dynamic neighbor sections are
    carried through untouched for the daemon; the diff engine never
    looks inside them.
    """

    global_: Global = Field(default_factory=Global, alias="global")
    neighbors: Tuple[Neighbor, ...] = ()
    peer_groups: Tuple[PeerGroup, ...] = ()
    rpki_servers: Tuple[FrozenMapping, ...] = ()
    bmp_servers: Tuple[FrozenMapping, ...] = ()
    vrfs: Tuple[FrozenMapping, ...] = ()
    mrt_dump: Tuple[FrozenMapping, ...] = ()
    collector: FrozenMapping = Field(default_factory=dict, validate_default=True)
    defined_sets: DefinedSets = Field(default_factory=DefinedSets)
    policy_definitions: Tuple[PolicyDefinition, ...] = ()
    dynamic_neighbors: Tuple[DynamicNeighbor, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the on-disk key layout"""
        return self.model_dump(by_alias=True, mode="json")


def config_set_to_routing_policy(config_set: BgpConfigSet) -> Optional[RoutingPolicy]:
    """
    Project the routing policy inputs out of a config set

    Returns None when the config set defines no sets and no policies.
    """
    if not config_set.policy_definitions and config_set.defined_sets.equal(DefinedSets()):
        return None
    return RoutingPolicy(
        defined_sets=config_set.defined_sets,
        policy_definitions=config_set.policy_definitions,
    )
