"""
Tests for affinity group discovery and classification.
"""

from affinity_reconcile.engine.registry import GroupRegistry, classify_group
from affinity_reconcile.models.inventory import GroupKind, GroupRecord
from affinity_reconcile.naming import NamingConvention


class TestClassifyGroup:
    """Tests for classify_group."""

    def test_host_group(self):
        """Test that host member types classify as host-groups."""
        group = classify_group(GroupRecord("alpha-hosts", "host", ("esx1",)), NamingConvention())
        assert group.kind is GroupKind.HOST
        assert group.domain == "alpha"
        assert "esx1" in group

    def test_vm_group(self):
        """Test that vm member types classify as workload-groups."""
        group = classify_group(GroupRecord("beta-vms", "ClusterVmGroup", ()), NamingConvention())
        assert group.kind is GroupKind.WORKLOAD
        assert group.domain == "beta"

    def test_unknown_member_type(self):
        """Test that unknown member types are not classified."""
        assert classify_group(GroupRecord("x-rule", "rule", ()), NamingConvention()) is None

    def test_name_without_delimiter(self):
        """Test that the whole name is the domain when there is no delimiter."""
        group = classify_group(GroupRecord("gamma", "vm", ()), NamingConvention())
        assert group.domain == "gamma"


class TestGroupRegistry:
    """Tests for GroupRegistry."""

    def test_load_skips_unknown_groups(self, registry):
        """Test that groups with other member types are dropped."""
        names = {group.name for group in registry.groups}
        assert names == {"alpha-hosts", "beta-hosts", "alpha-vms", "beta-vms"}

    def test_host_and_workload_groups(self, registry):
        """Test the kind partitions."""
        assert {g.name for g in registry.host_groups} == {"alpha-hosts", "beta-hosts"}
        assert {g.name for g in registry.workload_groups} == {"alpha-vms", "beta-vms"}

    def test_known_domains(self, registry):
        """Test that known domains come from workload-groups."""
        assert registry.known_domains == frozenset({"alpha", "beta"})

    def test_group_for_workload(self, registry):
        """Test membership lookup."""
        assert registry.group_for_workload("web01").name == "alpha-vms"
        assert registry.domain_for_workload("db02") == "beta"

    def test_group_for_workload_none(self, registry):
        """Test that a workload in no group is a normal None outcome."""
        assert registry.group_for_workload("rogue01") is None
        assert registry.domain_for_workload("rogue01") is None

    def test_multiple_memberships_keep_first(self):
        """Test that an ill-formed double membership resolves to the first group."""
        naming = NamingConvention()
        groups = [
            classify_group(GroupRecord("alpha-vms", "vm", ("vm1",)), naming),
            classify_group(GroupRecord("beta-vms", "vm", ("vm1",)), naming),
        ]
        registry = GroupRegistry("prod", groups)
        assert registry.group_for_workload("vm1").name == "alpha-vms"

    def test_workload_group_for_domain(self, registry):
        """Test finding a domain's workload-group."""
        assert registry.workload_group_for_domain("beta").name == "beta-vms"
        assert registry.workload_group_for_domain("gamma") is None

    def test_empty_cluster(self, client):
        """Test a cluster with no groups."""
        registry = GroupRegistry.load(client, "empty")
        assert registry.groups == ()
        assert registry.known_domains == frozenset()
