"""
Config Diff Engine

Compares two config snapshots and reports what the daemon has to
reconcile:

- peer groups and neighbors as added / deleted / updated change sets,
  so sessions that did not change are never disturbed
- routing policy as a single "changed" flag, since policy is replaced
  as a whole

All functions are pure: they take immutable snapshots and return fresh
results, so they can be called from any task.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, Optional, Tuple, TypeVar

from .models import (
    BgpConfigSet,
    ConfigModel,
    Neighbor,
    PeerGroup,
    RoutingPolicy,
    config_set_to_routing_policy,
)

logger = logging.getLogger("BGPConfig.Diff")

T = TypeVar("T", bound=ConfigModel)


@dataclass(frozen=True)
class ChangeSet(Generic[T]):
    """
    Result of one entity diff

    Updated entries carry the value from the new snapshot.
    """
    added: Tuple[T, ...] = ()
    deleted: Tuple[T, ...] = ()
    updated: Tuple[T, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.deleted or self.updated)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": [e.model_dump(by_alias=True, mode="json") for e in self.added],
            "deleted": [e.model_dump(by_alias=True, mode="json") for e in self.deleted],
            "updated": [e.model_dump(by_alias=True, mode="json") for e in self.updated],
        }


def _diff_entities(
    current: Iterable[T],
    new: Iterable[T],
    key: Callable[[T], str],
    kind: str
) -> ChangeSet[T]:
    current_by_key = {key(e): e for e in current}
    new_entities = tuple(new)
    new_keys = {key(e) for e in new_entities}

    added = []
    updated = []
    for entity in new_entities:
        old = current_by_key.get(key(entity))
        if old is None:
            added.append(entity)
        elif not entity.equal(old):
            logger.debug(f"[Config] Current {kind} config: {old}")
            logger.debug(f"[Config] New {kind} config: {entity}")
            updated.append(entity)

    deleted = [e for k, e in current_by_key.items() if k not in new_keys]

    return ChangeSet(added=tuple(added), deleted=tuple(deleted), updated=tuple(updated))


def update_peer_group_config(
    current: BgpConfigSet,
    new: BgpConfigSet
) -> ChangeSet[PeerGroup]:
    """
    Diff peer groups by name

    Args:
        current: Snapshot the daemon is running with
        new: Freshly loaded snapshot

    Returns:
        Added and updated groups in new-snapshot order, deleted groups
        in current-snapshot order
    """
    return _diff_entities(
        current.peer_groups, new.peer_groups, lambda pg: pg.key, "peer-group"
    )


def update_neighbor_config(
    current: BgpConfigSet,
    new: BgpConfigSet
) -> ChangeSet[Neighbor]:
    """Diff neighbors by peer address, same ordering as peer groups"""
    return _diff_entities(
        current.neighbors, new.neighbors, lambda n: n.key, "neighbor"
    )


def check_policy_difference(
    current_policy: Optional[RoutingPolicy],
    new_policy: Optional[RoutingPolicy]
) -> bool:
    """
    Tell whether the routing policy has to be replaced

    Policy definition order is significant: the same definitions in a
    different order count as a change.
    """
    logger.debug(f"[Config] Current policy: {current_policy}")
    logger.debug(f"[Config] New policy: {new_policy}")

    if current_policy is None and new_policy is None:
        return False
    if current_policy is None or new_policy is None:
        return True
    return not current_policy.equal(new_policy)


@dataclass(frozen=True)
class ConfigChanges:
    """Everything that differs between two snapshots"""
    peer_groups: ChangeSet[PeerGroup] = field(default_factory=ChangeSet)
    neighbors: ChangeSet[Neighbor] = field(default_factory=ChangeSet)
    policy_changed: bool = False

    @property
    def has_changes(self) -> bool:
        return (
            self.peer_groups.has_changes
            or self.neighbors.has_changes
            or self.policy_changed
        )

    def summary(self) -> str:
        pg, nb = self.peer_groups, self.neighbors
        return (
            f"peer-groups +{len(pg.added)} -{len(pg.deleted)} ~{len(pg.updated)}, "
            f"neighbors +{len(nb.added)} -{len(nb.deleted)} ~{len(nb.updated)}, "
            f"policy {'changed' if self.policy_changed else 'unchanged'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "peer_groups": self.peer_groups.to_dict(),
            "neighbors": self.neighbors.to_dict(),
            "policy_changed": self.policy_changed,
            "has_changes": self.has_changes,
        }


def compute_changes(
    current: Optional[BgpConfigSet],
    new: BgpConfigSet
) -> ConfigChanges:
    """
    Diff every reconciled section at once

    With no current snapshot everything in the new one counts as added.
    """
    if current is None:
        current = BgpConfigSet()

    return ConfigChanges(
        peer_groups=update_peer_group_config(current, new),
        neighbors=update_neighbor_config(current, new),
        policy_changed=check_policy_difference(
            config_set_to_routing_policy(current), config_set_to_routing_policy(new)
        ),
    )
