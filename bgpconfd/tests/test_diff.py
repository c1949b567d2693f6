"""Tests for the config diff engine"""

import pytest

from bgpconfig.diff import (
    ChangeSet,
    check_policy_difference,
    compute_changes,
    update_neighbor_config,
    update_peer_group_config,
)
from bgpconfig.models import (
    Actions,
    BgpConfigSet,
    DefinedSets,
    Neighbor,
    NeighborConfig,
    PeerGroup,
    PeerGroupConfig,
    PolicyDefinition,
    Prefix,
    PrefixSet,
    RoutingPolicy,
    Statement,
)


def peer_group(name, asn):
    return PeerGroup(config=PeerGroupConfig(peer_group_name=name, peer_as=asn))


def neighbor(addr, asn=65001, description=""):
    return Neighbor(config=NeighborConfig(
        neighbor_address=addr, peer_as=asn, description=description
    ))


def snapshot(peer_groups=(), neighbors=()):
    return BgpConfigSet(peer_groups=tuple(peer_groups), neighbors=tuple(neighbors))


SNAPSHOTS = [
    snapshot(),
    snapshot([peer_group("A", 65001)], [neighbor("10.0.0.1")]),
    snapshot([peer_group("A", 65002), peer_group("B", 65003)],
             [neighbor("10.0.0.1", description="core"), neighbor("10.0.0.2")]),
    snapshot([peer_group("C", 65004)], [neighbor("10.0.0.3"), neighbor("2001:db8::1")]),
]


class TestPeerGroupDiff:
    """Tests for update_peer_group_config"""

    def test_scenario(self):
        """Test one update and one addition"""
        old = snapshot([peer_group("A", 65001)])
        new = snapshot([peer_group("A", 65002), peer_group("B", 65003)])

        changes = update_peer_group_config(old, new)

        assert changes.added == (peer_group("B", 65003),)
        assert changes.deleted == ()
        assert changes.updated == (peer_group("A", 65002),)

    def test_updated_carries_new_value(self):
        """Test updated entries come from the new snapshot"""
        old = snapshot([peer_group("A", 65001)])
        new = snapshot([peer_group("A", 65002)])

        changes = update_peer_group_config(old, new)

        assert changes.updated[0] is new.peer_groups[0]
        assert changes.added == ()
        assert changes.deleted == ()

    def test_deleted(self):
        """Test groups missing from the new snapshot are deleted"""
        old = snapshot([peer_group("A", 65001), peer_group("B", 65002)])
        new = snapshot([peer_group("B", 65002)])

        changes = update_peer_group_config(old, new)

        assert changes.deleted == (peer_group("A", 65001),)
        assert not changes.added
        assert not changes.updated

    @pytest.mark.parametrize("a", SNAPSHOTS)
    def test_no_op(self, a):
        """Test diffing a snapshot against itself yields nothing"""
        assert not update_peer_group_config(a, a).has_changes

    @pytest.mark.parametrize("a", SNAPSHOTS)
    @pytest.mark.parametrize("b", SNAPSHOTS)
    def test_anti_symmetric(self, a, b):
        """Test added and deleted swap when the arguments swap"""
        forward = update_peer_group_config(a, b)
        backward = update_peer_group_config(b, a)
        assert forward.added == backward.deleted
        assert forward.deleted == backward.added

    def test_equal_copies_are_unchanged(self):
        """Test separately built but equal groups are omitted"""
        old = snapshot([peer_group("A", 65001)])
        new = snapshot([peer_group("A", 65001)])
        assert update_peer_group_config(old, new) == ChangeSet()


class TestNeighborDiff:
    """Tests for update_neighbor_config"""

    def test_scenario(self):
        """Test a removed neighbor"""
        old = snapshot(neighbors=[neighbor("10.0.0.1"), neighbor("10.0.0.2")])
        new = snapshot(neighbors=[neighbor("10.0.0.1")])

        changes = update_neighbor_config(old, new)

        assert changes.added == ()
        assert changes.deleted == (neighbor("10.0.0.2"),)
        assert changes.updated == ()

    def test_keyed_by_address(self):
        """Test a changed field is an update, not a delete and add"""
        old = snapshot(neighbors=[neighbor("10.0.0.1", asn=65001)])
        new = snapshot(neighbors=[neighbor("10.0.0.1", asn=65009)])

        changes = update_neighbor_config(old, new)

        assert changes.updated == (neighbor("10.0.0.1", asn=65009),)
        assert not changes.added
        assert not changes.deleted

    def test_reorder_is_not_a_change(self):
        """Test neighbor list order doesn't matter"""
        old = snapshot(neighbors=[neighbor("10.0.0.1"), neighbor("10.0.0.2")])
        new = snapshot(neighbors=[neighbor("10.0.0.2"), neighbor("10.0.0.1")])
        assert not update_neighbor_config(old, new).has_changes

    def test_output_order(self):
        """Test added follows new order and deleted follows old order"""
        old = snapshot(neighbors=[neighbor("10.0.0.9"), neighbor("10.0.0.8")])
        new = snapshot(neighbors=[neighbor("10.0.0.2"), neighbor("10.0.0.1")])

        changes = update_neighbor_config(old, new)

        assert [n.key for n in changes.added] == ["10.0.0.2", "10.0.0.1"]
        assert [n.key for n in changes.deleted] == ["10.0.0.9", "10.0.0.8"]

    @pytest.mark.parametrize("a", SNAPSHOTS)
    @pytest.mark.parametrize("b", SNAPSHOTS)
    def test_anti_symmetric(self, a, b):
        """Test added and deleted swap when the arguments swap"""
        forward = update_neighbor_config(a, b)
        backward = update_neighbor_config(b, a)
        assert forward.added == backward.deleted
        assert forward.deleted == backward.added


class TestPolicyDifference:
    """Tests for check_policy_difference"""

    def policy(self, *names, prefix="192.0.2.0/24"):
        return RoutingPolicy(
            defined_sets=DefinedSets(prefix_sets=(
                PrefixSet(prefix_set_name="ps1", prefix_list=(Prefix(ip_prefix=prefix),)),
            )),
            policy_definitions=tuple(
                PolicyDefinition(name=n, statements=(
                    Statement(name=f"{n}_stmt0", actions=Actions(route_disposition="accept-route")),
                ))
                for n in names
            ),
        )

    def test_both_none(self):
        """Test no policy before or after"""
        assert check_policy_difference(None, None) is False

    def test_introduced(self):
        """Test a policy appearing"""
        assert check_policy_difference(None, self.policy("p1")) is True

    def test_removed(self):
        """Test a policy disappearing"""
        assert check_policy_difference(self.policy("p1"), None) is True

    def test_identical(self):
        """Test equal policies"""
        assert check_policy_difference(self.policy("p1", "p2"), self.policy("p1", "p2")) is False

    def test_order_changed(self):
        """Test reordered definitions count as a change"""
        assert check_policy_difference(self.policy("p1", "p2"), self.policy("p2", "p1")) is True

    def test_defined_set_changed(self):
        """Test a defined set edit counts as a change"""
        assert check_policy_difference(
            self.policy("p1"), self.policy("p1", prefix="198.51.100.0/24")
        ) is True


class TestComputeChanges:
    """Tests for compute_changes"""

    def test_initial(self):
        """Test everything is added when there is no current snapshot"""
        new = SNAPSHOTS[2]
        changes = compute_changes(None, new)
        assert changes.neighbors.added == new.neighbors
        assert changes.peer_groups.added == new.peer_groups
        assert changes.policy_changed is False

    def test_initial_with_policy(self):
        """Test a first snapshot carrying a policy reports it changed"""
        new = BgpConfigSet(policy_definitions=(PolicyDefinition(name="p1"),))
        changes = compute_changes(None, new)
        assert changes.policy_changed is True
        assert changes.has_changes

    def test_policy_removed(self):
        """Test dropping every policy counts as a change"""
        old = BgpConfigSet(policy_definitions=(PolicyDefinition(name="p1"),))
        assert compute_changes(old, BgpConfigSet()).policy_changed is True

    def test_no_policy_on_either_side(self):
        """Test two snapshots without policy report no policy change"""
        assert compute_changes(SNAPSHOTS[0], SNAPSHOTS[1]).policy_changed is False

    def test_no_changes(self):
        """Test an unchanged reload"""
        changes = compute_changes(SNAPSHOTS[1], SNAPSHOTS[1])
        assert not changes.has_changes
        assert changes.summary() == (
            "peer-groups +0 -0 ~0, neighbors +0 -0 ~0, policy unchanged"
        )

    def test_summary_and_dict(self):
        """Test summary and serialization"""
        changes = compute_changes(SNAPSHOTS[1], SNAPSHOTS[2])
        assert changes.has_changes
        assert changes.summary().startswith("peer-groups +1 -0 ~1, neighbors +1 -0 ~1")
        data = changes.to_dict()
        assert data["has_changes"] is True
        assert data["neighbors"]["added"][0]["config"]["neighbor-address"] == "10.0.0.2"
