"""
In-memory platform client backed by a YAML inventory file.

Serves a static snapshot of clusters, groups, workloads and storage, and records
every mutation it is asked to perform instead of touching a live system. Used
for offline planning, demos and tests.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from affinity_reconcile.exceptions import (
    InvalidConfigError,
    LookupFailure,
    PlatformError,
    ResolutionFailure,
)
from affinity_reconcile.models.inventory import (
    Disk,
    GroupRecord,
    Host,
    Proposal,
    StorageKind,
    StorageLocation,
    TaskHandle,
    Workload,
)
from affinity_reconcile.models.results import RelocationRequest
from affinity_reconcile.platform.base import PlatformClient

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent.parent / "schema" / "inventory.schema.json"


class InventoryClient(PlatformClient):
    """
    Platform client that reads a YAML inventory and records mutations.

    The inventory comes from ``config["inventory"]`` (a dict) or from the file
    named by ``config["inventory_file"]``, resolved against ``base_dir``.

    Recorded mutations are available as ``submitted`` (relocation requests) and
    ``group_edits`` (``(cluster, group, member)`` tuples). Group edits are also
    applied to the in-memory groups so later reads observe them; relocations are
    left pending, as an asynchronous task would be.
    """

    name = "inventory"

    def __init__(self, config: dict):
        super().__init__(config)
        self.submitted: list[RelocationRequest] = []
        self.group_edits: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()
        self._task_counter = 0
        data = config.get("inventory")
        if data is None:
            data = self._load_file()
        validate_inventory(data)
        self._load(data)

    def _load_file(self) -> dict[str, Any]:
        inventory_file = self.config.get("inventory_file")
        if not inventory_file:
            raise InvalidConfigError("platform.inventory_file is required for the inventory provider")

        path = Path(inventory_file)
        if not path.is_absolute() and self.config.get("base_dir"):
            path = Path(self.config["base_dir"]) / path
        if not path.exists():
            raise InvalidConfigError(f"Inventory file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Inventory file is empty or not a mapping: {path}")
        return data

    def _load(self, data: dict[str, Any]) -> None:
        self._pools = {pool["name"] for pool in data.get("pools", [])}
        self._rejected = set(data.get("reject", []))
        self._stores: dict[str, StorageLocation] = {}
        self._free_gb: dict[str, float] = {}
        for store in data.get("stores", []):
            self._stores[store["name"]] = StorageLocation(store["name"], StorageKind.STORE, store.get("pool"))
            self._free_gb[store["name"]] = float(store.get("free_gb", 0))

        self._clusters: dict[str, dict[str, Any]] = {}
        for cluster_name, cluster in (data.get("clusters") or {}).items():
            hosts = [Host(name, cluster_name) for name in cluster.get("hosts", [])]
            groups = [
                {
                    "name": group["name"],
                    "type": group["type"],
                    "members": list(group.get("members", [])),
                }
                for group in cluster.get("groups", [])
            ]
            workloads = [self._build_workload(cluster_name, entry) for entry in cluster.get("workloads", [])]
            self._clusters[cluster_name] = {"hosts": hosts, "groups": groups, "workloads": workloads}

    def _location(self, name: str) -> StorageLocation:
        # Stores referenced by a workload but not listed are standalone stores.
        if name not in self._stores:
            self._stores[name] = StorageLocation(name, StorageKind.STORE)
            self._free_gb.setdefault(name, 0.0)
        return self._stores[name]

    def _build_workload(self, cluster: str, entry: dict[str, Any]) -> Workload:
        disks = tuple(
            Disk(key=disk["key"], location=self._location(disk["store"]), label=disk.get("label", ""))
            for disk in entry.get("disks", [])
        )
        return Workload(
            name=entry["name"],
            cluster=cluster,
            config_location=self._location(entry["config"]),
            disks=disks,
        )

    def _cluster(self, name: str) -> dict[str, Any]:
        if name not in self._clusters:
            raise LookupFailure("cluster", name)
        return self._clusters[name]

    def _next_task(self, workload: str, description: str) -> TaskHandle:
        self._task_counter += 1
        return TaskHandle(f"task-{self._task_counter}", workload, description)

    def is_available(self) -> bool:
        return True

    def get_cluster(self, name: str) -> str:
        self._cluster(name)
        return name

    def list_hosts(self, cluster: str) -> list[Host]:
        return list(self._cluster(cluster)["hosts"])

    def list_workloads(self, cluster: str) -> list[Workload]:
        return list(self._cluster(cluster)["workloads"])

    def get_workload(self, cluster: str, name: str) -> Workload:
        for workload in self._cluster(cluster)["workloads"]:
            if workload.name == name:
                return workload
        raise LookupFailure("workload", name)

    def list_groups(self, cluster: str) -> list[GroupRecord]:
        with self._lock:
            return [
                GroupRecord(group["name"], group["type"], tuple(group["members"]))
                for group in self._cluster(cluster)["groups"]
            ]

    def find_store(self, name: str) -> StorageLocation:
        if name not in self._stores:
            raise LookupFailure("store", name)
        return self._stores[name]

    def recommend(self, workload: Workload, pool_name: str, operation_type: str) -> list[Proposal]:
        if pool_name not in self._pools:
            raise LookupFailure("storage pool", pool_name)
        if pool_name in self._rejected:
            raise ResolutionFailure(workload.name, pool_name, f"{operation_type} rejected by platform")

        members = [store for store in self._stores.values() if store.pool == pool_name]
        members.sort(key=lambda store: self._free_gb.get(store.name, 0.0), reverse=True)
        return [
            Proposal((store.name,), reason=f"free_gb={self._free_gb.get(store.name, 0.0):g}")
            for store in members
        ]

    def submit_relocation(self, request: RelocationRequest) -> TaskHandle:
        with self._lock:
            self.submitted.append(request)
            task = self._next_task(request.workload.name, f"Relocate {request.workload.name}")
        logger.info(f"Recorded relocation {task.task_id} for {request.workload.name}")
        return task

    def edit_group(self, cluster: str, group_name: str, add_member: str) -> TaskHandle:
        with self._lock:
            for group in self._cluster(cluster)["groups"]:
                if group["name"] == group_name:
                    break
            else:
                raise LookupFailure("group", group_name)

            if add_member in group["members"]:
                raise PlatformError(f"{add_member} is already a member of {group_name}")
            group["members"].append(add_member)
            self.group_edits.append((cluster, group_name, add_member))
            task = self._next_task(add_member, f"Add {add_member} to {group_name}")
        logger.info(f"Recorded group edit {task.task_id}: {add_member} -> {group_name}")
        return task


def validate_inventory(data: dict[str, Any]) -> None:
    """Validate inventory data against the bundled JSON schema."""
    schema = json.loads(SCHEMA_FILE.read_text())
    try:
        validate(instance=data, schema=schema)
    except ValidationError as e:
        raise InvalidConfigError(
            f"Inventory validation failed: {e.message} "
            f"(path: {'.'.join(str(p) for p in e.path)})"
        ) from e
