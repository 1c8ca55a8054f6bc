"""
Affinity placement and balance reconciliation engine.

Modules:
- registry: GroupRegistry, affinity group discovery and classification
- balance: proportional balance report per domain
- placement: PlacementResolver, store/pool name to concrete store
- mismatch: MismatchDetector, storage outside the assigned domain
- remediation: RemediationPlanner and RemediationExecutor
- rogue: RogueAssigner, default group for ungrouped workloads
"""

from affinity_reconcile.engine.balance import calculate_balance
from affinity_reconcile.engine.mismatch import MismatchDetector
from affinity_reconcile.engine.placement import PlacementResolver
from affinity_reconcile.engine.registry import GroupRegistry
from affinity_reconcile.engine.remediation import RemediationExecutor, RemediationPlanner
from affinity_reconcile.engine.rogue import RogueAssigner

__all__ = [
    "GroupRegistry",
    "MismatchDetector",
    "PlacementResolver",
    "RemediationExecutor",
    "RemediationPlanner",
    "RogueAssigner",
    "calculate_balance",
]
