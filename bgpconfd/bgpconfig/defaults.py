"""
Default Value Population

Fills in everything the operator may leave out of the config file:
global port and address families, neighbor timers and transport,
peer-group inheritance, derived peer types and policy statement names.

Runs once per load, after schema validation. Returns a new config set;
the parsed one is never modified.
"""

import ipaddress
import logging
from typing import Dict, Iterable, Tuple

from .constants import (
    AFI_SAFI_IPV4_UNICAST,
    AFI_SAFI_IPV6_UNICAST,
    BGP_PORT,
    DEFAULT_CONNECT_RETRY,
    DEFAULT_GLOBAL_AFI_SAFIS,
    DEFAULT_HOLD_TIME,
    DEFAULT_IDLE_HOLD_TIME_AFTER_RESET,
    DEFAULT_LOCAL_ADDRESS_LIST,
    EBGP_DEFAULT_TTL,
    IBGP_DEFAULT_TTL,
    IPV4_ANY,
    IPV6_ANY,
    PEER_TYPE_EXTERNAL,
    PEER_TYPE_INTERNAL,
)
from .errors import ConfigDefaultsError
from .models import (
    AfiSafi,
    AfiSafiConfig,
    BgpConfigSet,
    ConfigModel,
    Global,
    Neighbor,
    PeerGroup,
    PolicyDefinition,
)

logger = logging.getLogger("BGPConfig.Defaults")


def set_default_config_values(config_set: BgpConfigSet) -> BgpConfigSet:
    """
    Populate defaults across a freshly parsed config set

    Args:
        config_set: Validated but not yet defaulted config set

    Returns:
        New config set with every default applied

    Raises:
        ConfigDefaultsError: Missing required values, dangling peer-group
            references or duplicate identities
    """
    global_ = _set_default_global_values(config_set.global_)

    _check_unique((pg.key for pg in config_set.peer_groups), "peer-group")
    peer_groups = {pg.key: pg for pg in config_set.peer_groups}

    neighbors = tuple(
        _set_default_neighbor_values(n, peer_groups, global_)
        for n in config_set.neighbors
    )
    _check_unique((n.key for n in neighbors), "neighbor")

    for dynamic in config_set.dynamic_neighbors:
        if dynamic.config.peer_group not in peer_groups:
            raise ConfigDefaultsError(
                f"dynamic neighbor {dynamic.config.prefix} refers to "
                f"unknown peer-group {dynamic.config.peer_group}"
            )

    policies = tuple(
        _set_default_policy_values(p) for p in config_set.policy_definitions
    )

    return config_set.model_copy(update={
        "global_": global_,
        "neighbors": neighbors,
        "policy_definitions": policies,
    })


def _check_unique(keys: Iterable[str], kind: str) -> None:
    seen = set()
    for key in keys:
        if key in seen:
            raise ConfigDefaultsError(f"duplicate {kind}: {key}")
        seen.add(key)


def _inherit(section: ConfigModel, template: ConfigModel) -> ConfigModel:
    """Copy template values into every field the section left unset"""
    fields = type(section).model_fields
    update = {
        name: getattr(template, name)
        for name in type(template).model_fields
        if name in fields and name not in section.model_fields_set
    }
    return section.model_copy(update=update)


def _set_default_global_values(global_: Global) -> Global:
    config = global_.config
    if config.as_ == 0:
        raise ConfigDefaultsError("global.config.as is required")
    if not config.router_id:
        raise ConfigDefaultsError("global.config.router-id is required")
    try:
        ipaddress.IPv4Address(config.router_id)
    except ValueError as e:
        raise ConfigDefaultsError(f"invalid router-id {config.router_id}") from e

    update = {}
    if config.port == 0:
        update["port"] = BGP_PORT
    if not config.local_address_list:
        update["local_address_list"] = DEFAULT_LOCAL_ADDRESS_LIST

    afi_safis = global_.afi_safis or tuple(
        AfiSafi(config=AfiSafiConfig(afi_safi_name=name))
        for name in DEFAULT_GLOBAL_AFI_SAFIS
    )

    return global_.model_copy(update={
        "config": config.model_copy(update=update),
        "afi_safis": afi_safis,
    })


def _address_family(neighbor: Neighbor) -> int:
    # Unnumbered (interface) peers come up over IPv6 link-local
    if not neighbor.config.neighbor_address:
        return 6
    try:
        return ipaddress.ip_address(neighbor.config.neighbor_address).version
    except ValueError as e:
        raise ConfigDefaultsError(
            f"invalid neighbor-address {neighbor.config.neighbor_address}"
        ) from e


def _apply_peer_group(neighbor: Neighbor, peer_group: PeerGroup) -> Neighbor:
    update = {
        "config": _inherit(neighbor.config, peer_group.config),
        "timers": neighbor.timers.model_copy(update={
            "config": _inherit(neighbor.timers.config, peer_group.timers.config),
        }),
        "transport": neighbor.transport.model_copy(update={
            "config": _inherit(neighbor.transport.config, peer_group.transport.config),
        }),
        "apply_policy": neighbor.apply_policy.model_copy(update={
            "config": _inherit(neighbor.apply_policy.config, peer_group.apply_policy.config),
        }),
        "ebgp_multihop": neighbor.ebgp_multihop.model_copy(update={
            "config": _inherit(neighbor.ebgp_multihop.config, peer_group.ebgp_multihop.config),
        }),
        "route_reflector": neighbor.route_reflector.model_copy(update={
            "config": _inherit(neighbor.route_reflector.config, peer_group.route_reflector.config),
        }),
    }
    if "afi_safis" not in neighbor.model_fields_set:
        update["afi_safis"] = peer_group.afi_safis
    return neighbor.model_copy(update=update)


def _set_default_neighbor_values(
    neighbor: Neighbor,
    peer_groups: Dict[str, PeerGroup],
    global_: Global
) -> Neighbor:
    if not neighbor.key:
        raise ConfigDefaultsError("neighbor-address or neighbor-interface is required")

    family = _address_family(neighbor)

    if neighbor.config.peer_group:
        peer_group = peer_groups.get(neighbor.config.peer_group)
        if peer_group is None:
            raise ConfigDefaultsError(
                f"neighbor {neighbor.key} refers to unknown peer-group "
                f"{neighbor.config.peer_group}"
            )
        neighbor = _apply_peer_group(neighbor, peer_group)

    config = neighbor.config
    if config.peer_as == 0:
        raise ConfigDefaultsError(f"neighbor {neighbor.key}: peer-as is required")

    local_as = config.local_as or global_.config.as_
    peer_type = config.peer_type or (
        PEER_TYPE_INTERNAL if config.peer_as == local_as else PEER_TYPE_EXTERNAL
    )
    config = config.model_copy(update={"local_as": local_as, "peer_type": peer_type})

    timers = neighbor.timers.config
    hold_time = timers.hold_time or DEFAULT_HOLD_TIME
    timers = timers.model_copy(update={
        "hold_time": hold_time,
        "keepalive_interval": timers.keepalive_interval or hold_time / 3,
        "connect_retry": timers.connect_retry or DEFAULT_CONNECT_RETRY,
        "idle_hold_time_after_reset": (
            timers.idle_hold_time_after_reset or DEFAULT_IDLE_HOLD_TIME_AFTER_RESET
        ),
    })

    transport = neighbor.transport.config
    transport = transport.model_copy(update={
        "remote_port": transport.remote_port or BGP_PORT,
        "local_address": transport.local_address or (IPV4_ANY if family == 4 else IPV6_ANY),
    })

    afi_safis = neighbor.afi_safis or (
        AfiSafi(config=AfiSafiConfig(
            afi_safi_name=AFI_SAFI_IPV4_UNICAST if family == 4 else AFI_SAFI_IPV6_UNICAST
        )),
    )

    multihop = neighbor.ebgp_multihop.config
    if multihop.multihop_ttl == 0:
        internal = peer_type == PEER_TYPE_INTERNAL
        ttl = IBGP_DEFAULT_TTL if internal or multihop.enabled else EBGP_DEFAULT_TTL
        multihop = multihop.model_copy(update={"multihop_ttl": ttl})

    return neighbor.model_copy(update={
        "config": config,
        "timers": neighbor.timers.model_copy(update={"config": timers}),
        "transport": neighbor.transport.model_copy(update={"config": transport}),
        "afi_safis": afi_safis,
        "ebgp_multihop": neighbor.ebgp_multihop.model_copy(update={"config": multihop}),
    })


def _set_default_policy_values(policy: PolicyDefinition) -> PolicyDefinition:
    statements: Tuple = tuple(
        s if s.name else s.model_copy(update={"name": f"{policy.name}_stmt{i}"})
        for i, s in enumerate(policy.statements)
    )
    return policy.model_copy(update={"statements": statements})
