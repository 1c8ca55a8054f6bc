"""
Default group assignment for rogue workloads.

A rogue workload is in no workload-group. Its domain is guessed from where its
storage lives: the configuration location first, then the first disk. The first
of those that classifies into a known domain wins, and the workload is added to
that domain's workload-group. Nothing further is inspected, and a workload that
already has a group is never touched.
"""

import logging
import threading
from dataclasses import replace

from affinity_reconcile.engine.registry import GroupRegistry
from affinity_reconcile.exceptions import AffinityReconcileError, Unclassifiable
from affinity_reconcile.models.inventory import StorageLocation, Workload
from affinity_reconcile.models.results import OutcomeStatus, RogueResult
from affinity_reconcile.naming import NamingConvention
from affinity_reconcile.platform.base import PlatformClient

logger = logging.getLogger(__name__)


def inference_candidates(workload: Workload) -> list[StorageLocation]:
    """Configuration location, then the first disk's location when there is one."""
    candidates = [workload.config_location]
    if workload.disks:
        candidates.append(workload.disks[0].location)
    return candidates


class RogueAssigner:
    """Classifies rogue workloads and adds them to their inferred domain's group."""

    def __init__(
        self,
        client: PlatformClient,
        registry: GroupRegistry,
        naming: NamingConvention | None = None,
    ):
        self.client = client
        self.registry = registry
        self.naming = naming or NamingConvention()
        # One configuration edit in flight per cluster.
        self._edit_lock = threading.Lock()
        # Workloads this assigner has already added to a group.
        self._assigned: set[str] = set()

    def is_rogue(self, workload: Workload) -> bool:
        if workload.name in self._assigned:
            return False
        return self.registry.group_for_workload(workload.name) is None

    def infer_domain(self, workload: Workload) -> tuple[str, str]:
        """
        Infer a workload's domain from its storage.

        Returns:
            ``(domain, location_name)`` for the first candidate in a known domain

        Raises:
            Unclassifiable: If no candidate location is in a known domain
        """
        known = self.registry.known_domains
        inspected = []
        for location in inference_candidates(workload):
            name = location.container_name
            inspected.append(name)
            domain = self.naming.storage_domain(name)
            if domain in known:
                return domain, name
        raise Unclassifiable(workload.name, inspected)

    def classify(self, workload: Workload) -> RogueResult:
        """Classify one rogue workload without changing anything."""
        inspected = tuple(location.container_name for location in inference_candidates(workload))
        try:
            domain, source = self.infer_domain(workload)
        except Unclassifiable as e:
            logger.warning(e.message)
            return RogueResult(workload.name, OutcomeStatus.UNCLASSIFIABLE, inspected=inspected, error=e)

        group = self.registry.workload_group_for_domain(domain)
        return RogueResult(
            workload.name,
            OutcomeStatus.PLANNED,
            domain=domain,
            group=group.name if group else None,
            source_location=source,
            inspected=inspected,
        )

    def assign(self, workloads: list[Workload], apply: bool = True) -> list[RogueResult]:
        """
        Classify every rogue workload and, when ``apply`` is set, submit the edits.

        Workloads that already have a workload-group, or that this assigner
        has already added to one, are left out of the results. Edits are
        submitted one at a time.
        """
        results = []
        for workload in workloads:
            if not self.is_rogue(workload):
                continue

            result = self.classify(workload)
            if result.status is not OutcomeStatus.PLANNED or not apply:
                results.append(result)
                continue

            group = self.registry.workload_group_for_domain(result.domain)
            if workload.name in group:
                continue

            try:
                with self._edit_lock:
                    if workload.name in self._assigned:
                        continue
                    task = self.client.edit_group(self.registry.cluster, group.name, workload.name)
                    self._assigned.add(workload.name)
            except AffinityReconcileError as e:
                logger.error(f"Adding {workload.name} to {group.name} failed: {e.message}")
                results.append(replace(result, status=OutcomeStatus.FAILED, error=e))
                continue

            logger.info(f"Added {workload.name} to {group.name} ({task.task_id})")
            results.append(replace(result, status=OutcomeStatus.SUBMITTED, task=task))
        return results
