"""
Detect workloads whose storage sits in another domain than their group.

A workload's assigned domain comes from its workload-group. Each of its storage
locations (configuration first, then disks in order) is reduced to its
outermost container and classified by name. Only locations that classify into
a different *known* domain are reported; storage that follows no domain's
naming is shared or unaffiliated and never flagged.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from affinity_reconcile.engine.registry import GroupRegistry
from affinity_reconcile.exceptions import AffinityReconcileError
from affinity_reconcile.models.inventory import StorageLocation, Workload
from affinity_reconcile.models.results import ItemRef, MismatchFinding, MismatchReport
from affinity_reconcile.naming import NamingConvention

logger = logging.getLogger(__name__)


def storage_items(workload: Workload) -> list[tuple[ItemRef, StorageLocation]]:
    """Configuration location followed by each disk's location, in disk order."""
    items = [(ItemRef.config(), workload.config_location)]
    items.extend((ItemRef.disk(disk.key), disk.location) for disk in workload.disks)
    return items


class MismatchDetector:
    """Compares assigned domains with storage domains for one cluster's registry."""

    def __init__(self, registry: GroupRegistry, naming: NamingConvention | None = None):
        self.registry = registry
        self.naming = naming or NamingConvention()

    def location_domain(self, location: StorageLocation) -> str:
        return self.naming.storage_domain(location.container_name)

    def detect(self, workload: Workload) -> MismatchReport:
        """
        Evaluate one workload.

        Returns a report with ``assigned_domain`` None (and no findings) when
        the workload is in no workload-group.
        """
        assigned = self.registry.domain_for_workload(workload.name)
        if assigned is None:
            return MismatchReport(workload.name, None)

        known = self.registry.known_domains
        findings = []
        for item, location in storage_items(workload):
            actual = self.location_domain(location)
            if actual != assigned and actual in known:
                findings.append(
                    MismatchFinding(
                        workload=workload.name,
                        item=item,
                        actual_location=location.container_name,
                        actual_domain=actual,
                        assigned_domain=assigned,
                    )
                )
        if findings:
            logger.info(f"{workload.name}: {len(findings)} item(s) outside domain {assigned}")
        return MismatchReport(workload.name, assigned, tuple(findings))

    def _detect_safely(self, workload: Workload) -> MismatchReport:
        try:
            return self.detect(workload)
        except AffinityReconcileError as e:
            logger.warning(f"Cannot evaluate {workload.name}: {e.message}")
            return MismatchReport(workload.name, None, error=e.message)

    def scan(self, workloads: list[Workload], max_workers: int = 1) -> list[MismatchReport]:
        """
        Evaluate many workloads, in parallel when ``max_workers`` > 1.

        Reports come back in input order. A workload that fails records its
        error and the rest of the batch continues.
        """
        if max_workers <= 1 or len(workloads) <= 1:
            return [self._detect_safely(workload) for workload in workloads]

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(self._detect_safely, workloads))
