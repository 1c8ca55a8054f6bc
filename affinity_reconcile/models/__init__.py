"""
Data models.

This package contains the inventory snapshots read from the platform and the
structured results produced by the engine.

Modules:
- inventory: Host, Workload, Disk, StorageLocation, affinity groups, task handles
- results: balance reports, mismatch findings, relocation plans and outcomes
"""

from affinity_reconcile.models.inventory import (
    AffinityGroup,
    Disk,
    GroupKind,
    GroupRecord,
    Host,
    Proposal,
    StorageKind,
    StorageLocation,
    TaskHandle,
    Workload,
)
from affinity_reconcile.models.results import (
    BalanceReport,
    DiskDestination,
    DomainBalance,
    ItemKind,
    ItemRef,
    MismatchFinding,
    MismatchReport,
    OutcomeStatus,
    PlanItem,
    RelocationOutcome,
    RelocationPlan,
    RelocationRequest,
    RogueResult,
)

__all__ = [
    "AffinityGroup",
    "BalanceReport",
    "Disk",
    "DiskDestination",
    "DomainBalance",
    "GroupKind",
    "GroupRecord",
    "Host",
    "ItemKind",
    "ItemRef",
    "MismatchFinding",
    "MismatchReport",
    "OutcomeStatus",
    "PlanItem",
    "Proposal",
    "RelocationOutcome",
    "RelocationPlan",
    "RelocationRequest",
    "RogueResult",
    "StorageKind",
    "StorageLocation",
    "TaskHandle",
    "Workload",
]
