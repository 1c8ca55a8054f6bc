"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest
import yaml

from affinity_reconcile.engine.registry import GroupRegistry
from affinity_reconcile.models.inventory import Disk, StorageKind, StorageLocation, Workload
from affinity_reconcile.platform.inventory import InventoryClient
from affinity_reconcile.workspace import Workspace


def build_inventory() -> dict:
    """
    Cluster "prod" with two domains, alpha and beta.

    alpha: 2 hosts, 5 grouped workloads. beta: 2 hosts, 3 grouped workloads.
    rogue01..rogue03 are in no workload-group.
    """
    return {
        "clusters": {
            "prod": {
                "hosts": ["esx-a1", "esx-a2", "esx-b1", "esx-b2"],
                "groups": [
                    {"name": "alpha-hosts", "type": "host", "members": ["esx-a1", "esx-a2"]},
                    {"name": "beta-hosts", "type": "host", "members": ["esx-b1", "esx-b2"]},
                    {
                        "name": "alpha-vms",
                        "type": "vm",
                        "members": ["web01", "web02", "web03", "web04", "web05"],
                    },
                    {"name": "beta-vms", "type": "vm", "members": ["db01", "db02", "db03"]},
                    {"name": "alpha-to-alpha", "type": "vm-host-rule", "members": []},
                ],
                "workloads": [
                    {"name": "web01", "config": "alpha_ds01", "disks": [{"key": 2000, "store": "alpha_ds01"}]},
                    {
                        "name": "web02",
                        "config": "beta_ds01",
                        "disks": [
                            {"key": 2000, "store": "alpha_ds01"},
                            {"key": 2001, "store": "beta_ds01"},
                        ],
                    },
                    {"name": "web03", "config": "shared_nfs01", "disks": [{"key": 2000, "store": "shared_nfs01"}]},
                    {"name": "web04", "config": "alpha_ds02"},
                    {"name": "web05", "config": "beta_ds02", "disks": [{"key": 2000, "store": "alpha_ds02"}]},
                    {"name": "db01", "config": "beta_ds01", "disks": [{"key": 2000, "store": "beta_ds01"}]},
                    {"name": "db02", "config": "beta_ds02", "disks": [{"key": 2000, "store": "beta_ds02"}]},
                    {"name": "db03", "config": "beta_ds01"},
                    {"name": "rogue01", "config": "gamma_ds01", "disks": [{"key": 2000, "store": "alpha_ds02"}]},
                    {
                        "name": "rogue02",
                        "config": "gamma_ds01",
                        "disks": [
                            {"key": 2000, "store": "shared_nfs01"},
                            {"key": 2001, "store": "alpha_ds01"},
                        ],
                    },
                    {"name": "rogue03", "config": "beta_ds01"},
                ],
            },
            "empty": {"hosts": [], "groups": [], "workloads": []},
        },
        "stores": [
            {"name": "alpha_ds01", "free_gb": 100},
            {"name": "alpha_ds02", "free_gb": 200},
            {"name": "alpha_ds03", "pool": "alpha_pod01", "free_gb": 500},
            {"name": "alpha_ds04", "pool": "alpha_pod01", "free_gb": 800},
            {"name": "beta_ds01", "free_gb": 300},
            {"name": "beta_ds02", "pool": "beta_pod01", "free_gb": 300},
            {"name": "gamma_ds01", "free_gb": 50},
            {"name": "shared_nfs01", "free_gb": 1000},
        ],
        "pools": [
            {"name": "alpha_pod01"},
            {"name": "beta_pod01"},
            {"name": "alpha_pod99"},
            {"name": "alpha_podlocked"},
        ],
        "reject": ["alpha_podlocked"],
    }


@pytest.fixture
def inventory_data():
    """Fresh inventory dict for each test."""
    return build_inventory()


@pytest.fixture
def client(inventory_data):
    """In-memory platform client over the standard inventory."""
    return InventoryClient({"provider": "inventory", "inventory": inventory_data})


@pytest.fixture
def registry(client):
    """Classified groups of the "prod" cluster."""
    return GroupRegistry.load(client, "prod")


@pytest.fixture
def make_workload():
    """Build a Workload from store names: config first, then disks."""

    def _make(name, config, *disk_stores, cluster="prod", pools=None):
        pools = pools or {}

        def location(store):
            return StorageLocation(store, StorageKind.STORE, pools.get(store))

        disks = tuple(Disk(2000 + i, location(store)) for i, store in enumerate(disk_stores))
        return Workload(name, cluster, location(config), disks)

    return _make


@pytest.fixture
def temp_workspace():
    """Create a temporary workspace for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        workspace = Workspace(Path(tmpdir))
        workspace.initialize()
        yield workspace


@pytest.fixture
def inventory_workspace(temp_workspace, inventory_data):
    """Workspace configured for the inventory provider with the standard inventory."""
    (temp_workspace.root / "inventory.yaml").write_text(yaml.safe_dump(inventory_data))

    config = dict(Workspace.DEFAULT_CONFIG)
    config["platform"] = {"provider": "inventory", "inventory_file": "inventory.yaml"}
    temp_workspace.config_file.write_text(yaml.safe_dump(config))
    return temp_workspace
