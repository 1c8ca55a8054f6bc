"""Result dataclasses produced by the engine.

All results are computed fresh per invocation and never persisted by the
engine itself. Each one converts to plain data with ``to_dict`` so the CLI can
render or export it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from affinity_reconcile.models.inventory import StorageLocation, TaskHandle, Workload


@dataclass(frozen=True)
class DomainBalance:
    """Balance figures for one affinity domain.

    ``deviation_percent`` is None when the domain's target is zero.
    """

    domain: str
    host_count: int
    workload_count: int
    target: int
    deviation_percent: float | None

    @property
    def status(self) -> str:
        if self.deviation_percent is None:
            return "N/A"
        return f"{self.deviation_percent:+.1f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "host_count": self.host_count,
            "workload_count": self.workload_count,
            "target": self.target,
            "deviation_percent": self.deviation_percent,
            "status": self.status,
        }


@dataclass(frozen=True)
class BalanceReport:
    """Per-domain balance plus global totals for one cluster."""

    cluster: str
    domains: tuple[DomainBalance, ...]
    total_hosts: int
    total_workloads: int
    per_host_target: float

    def get(self, domain: str) -> DomainBalance | None:
        for entry in self.domains:
            if entry.domain == domain:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster": self.cluster,
            "total_hosts": self.total_hosts,
            "total_workloads": self.total_workloads,
            "per_host_target": self.per_host_target,
            "domains": [entry.to_dict() for entry in self.domains],
        }


class ItemKind(Enum):
    CONFIG = "config"
    DISK = "disk"


@dataclass(frozen=True)
class ItemRef:
    """Identifies the configuration file or one disk of a workload."""

    kind: ItemKind
    disk_key: int | None = None

    @classmethod
    def config(cls) -> "ItemRef":
        return cls(ItemKind.CONFIG)

    @classmethod
    def disk(cls, key: int) -> "ItemRef":
        return cls(ItemKind.DISK, key)

    def __str__(self) -> str:
        if self.kind is ItemKind.CONFIG:
            return "Config"
        return f"Disk({self.disk_key})"


@dataclass(frozen=True)
class MismatchFinding:
    """Storage for one item sits in a different known domain than assigned."""

    workload: str
    item: ItemRef
    actual_location: str
    actual_domain: str
    assigned_domain: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "workload": self.workload,
            "item": str(self.item),
            "actual_location": self.actual_location,
            "actual_domain": self.actual_domain,
            "assigned_domain": self.assigned_domain,
        }


@dataclass(frozen=True)
class MismatchReport:
    """Outcome of evaluating one workload.

    ``assigned_domain`` is None for a workload in no workload-group; such a
    workload is left to the rogue assigner and has no findings.
    """

    workload: str
    assigned_domain: str | None
    findings: tuple[MismatchFinding, ...] = ()
    error: str | None = None

    @property
    def unassigned(self) -> bool:
        return self.assigned_domain is None and self.error is None

    @property
    def has_mismatch(self) -> bool:
        return bool(self.findings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "workload": self.workload,
            "assigned_domain": self.assigned_domain,
            "findings": [finding.to_dict() for finding in self.findings],
            "error": self.error,
        }


@dataclass(frozen=True)
class PlanItem:
    """Source and destination for one item. ``destination`` None means unchanged."""

    item: ItemRef
    source: str
    destination: str | None = None

    @property
    def changed(self) -> bool:
        return self.destination is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": str(self.item),
            "source": self.source,
            "destination": self.destination if self.changed else "unchanged",
        }


@dataclass(frozen=True)
class RelocationPlan:
    """Per-item relocation plan for one workload: config first, then disks in order."""

    workload: str
    assigned_domain: str
    config: PlanItem
    disks: tuple[PlanItem, ...] = ()

    @property
    def items(self) -> tuple[PlanItem, ...]:
        return (self.config,) + self.disks

    @property
    def changed_items(self) -> tuple[PlanItem, ...]:
        return tuple(item for item in self.items if item.changed)

    @property
    def is_empty(self) -> bool:
        return not self.changed_items

    def to_dict(self) -> dict[str, Any]:
        return {
            "workload": self.workload,
            "assigned_domain": self.assigned_domain,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class DiskDestination:
    disk_key: int
    location: StorageLocation


@dataclass(frozen=True)
class RelocationRequest:
    """Composite relocation: config destination plus one destination per disk."""

    workload: Workload
    config_destination: StorageLocation
    disk_destinations: tuple[DiskDestination, ...] = ()


class OutcomeStatus(Enum):
    SUBMITTED = "submitted"
    SKIPPED = "skipped"
    FAILED = "failed"
    PLANNED = "planned"
    UNCLASSIFIABLE = "unclassifiable"

    def __str__(self) -> str:
        return self.value


def _error_dict(error: Exception | None) -> dict[str, str] | None:
    if error is None:
        return None
    message = getattr(error, "message", str(error))
    return {"type": type(error).__name__, "message": message}


@dataclass(frozen=True)
class RelocationOutcome:
    """What happened to one workload's relocation plan."""

    workload: str
    status: OutcomeStatus
    plan: RelocationPlan | None = None
    task: TaskHandle | None = None
    error: Exception | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "workload": self.workload,
            "status": self.status.value,
            "plan": self.plan.to_dict() if self.plan else None,
            "task_id": self.task.task_id if self.task else None,
            "error": _error_dict(self.error),
        }


@dataclass(frozen=True)
class RogueResult:
    """Classification (and optional group assignment) of one rogue workload."""

    workload: str
    status: OutcomeStatus
    domain: str | None = None
    group: str | None = None
    source_location: str | None = None
    inspected: tuple[str, ...] = field(default_factory=tuple)
    task: TaskHandle | None = None
    error: Exception | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "workload": self.workload,
            "status": self.status.value,
            "domain": self.domain,
            "group": self.group,
            "source_location": self.source_location,
            "inspected": list(self.inspected),
            "task_id": self.task.task_id if self.task else None,
            "error": _error_dict(self.error),
        }
