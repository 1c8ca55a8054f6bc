"""
Plan and submit storage relocations that fix domain mismatches.

The planner rewrites the domain prefix of each mismatched location's name to
the assigned domain (``beta_ds01`` -> ``alpha_ds01``) and leaves every other
item unchanged. The executor resolves each rewritten name through the
PlacementResolver and submits one composite relocation per workload. If any
item cannot be resolved, nothing is submitted for that workload.
"""

import logging
import threading

from affinity_reconcile.engine.placement import PlacementResolver
from affinity_reconcile.exceptions import (
    AffinityReconcileError,
    InvalidPlanShape,
    RelocationInFlightError,
)
from affinity_reconcile.models.inventory import TaskHandle, Workload
from affinity_reconcile.models.results import (
    DiskDestination,
    ItemRef,
    MismatchReport,
    OutcomeStatus,
    PlanItem,
    RelocationOutcome,
    RelocationPlan,
    RelocationRequest,
)
from affinity_reconcile.naming import NamingConvention
from affinity_reconcile.platform.base import PlatformClient

logger = logging.getLogger(__name__)


def validate_plan_shape(plan: RelocationPlan, workload: Workload) -> None:
    """
    Check that the plan has exactly one disk entry per workload disk.

    Raises:
        InvalidPlanShape: On any count mismatch
    """
    if len(plan.disks) != workload.disk_count:
        raise InvalidPlanShape(workload.name, workload.disk_count, len(plan.disks))


class RemediationPlanner:
    """Builds RelocationPlans from mismatch reports."""

    def __init__(self, naming: NamingConvention | None = None):
        self.naming = naming or NamingConvention()

    def plan(self, workload: Workload, report: MismatchReport) -> RelocationPlan:
        """
        Build the relocation plan for one workload.

        Args:
            workload: Workload the report was computed for
            report: MismatchDetector output for that workload

        Returns:
            RelocationPlan with the config item first and one item per disk

        Raises:
            ValueError: If the report is for another workload or has no assigned domain
        """
        if report.workload != workload.name:
            raise ValueError(f"Report for {report.workload} given with workload {workload.name}")
        if report.assigned_domain is None:
            raise ValueError(f"{workload.name} has no assigned domain to relocate into")

        assigned = report.assigned_domain
        by_item = {finding.item: finding for finding in report.findings}

        def item_plan(item: ItemRef, source: str) -> PlanItem:
            finding = by_item.get(item)
            if finding is None:
                return PlanItem(item, source)
            destination = self.naming.retarget_storage(finding.actual_location, assigned)
            return PlanItem(item, finding.actual_location, destination)

        plan = RelocationPlan(
            workload=workload.name,
            assigned_domain=assigned,
            config=item_plan(ItemRef.config(), workload.config_location.container_name),
            disks=tuple(
                item_plan(ItemRef.disk(disk.key), disk.location.container_name)
                for disk in workload.disks
            ),
        )
        validate_plan_shape(plan, workload)
        return plan

    def plan_all(
        self, workloads: list[Workload], reports: list[MismatchReport]
    ) -> list[tuple[Workload, RelocationPlan]]:
        """Plans for every workload whose report has findings, in input order."""
        by_name = {workload.name: workload for workload in workloads}
        plans = []
        for report in reports:
            if not report.has_mismatch or report.workload not in by_name:
                continue
            workload = by_name[report.workload]
            plans.append((workload, self.plan(workload, report)))
        return plans


class RemediationExecutor:
    """
    Resolves plan destinations and submits relocation tasks.

    Tasks are submitted and not awaited. The executor refuses a second
    relocation for a workload whose earlier task it submitted until
    ``mark_complete`` is called for it.
    """

    def __init__(self, client: PlatformClient, resolver: PlacementResolver):
        self.client = client
        self.resolver = resolver
        self._lock = threading.Lock()
        self._in_flight: dict[str, TaskHandle] = {}

    def build_request(self, workload: Workload, plan: RelocationPlan) -> RelocationRequest:
        """
        Resolve every changed item and assemble the composite request.

        Unchanged items keep their current store.

        Raises:
            InvalidPlanShape: If the plan's disk count differs from the workload's
            ResolutionFailure: If any destination cannot be resolved
        """
        validate_plan_shape(plan, workload)

        def destination(plan_item: PlanItem, current):
            if not plan_item.changed:
                return current
            return self.resolver.resolve(workload, plan_item.destination)

        config_destination = destination(plan.config, workload.config_location)
        disk_destinations = tuple(
            DiskDestination(disk.key, destination(plan_item, disk.location))
            for disk, plan_item in zip(workload.disks, plan.disks)
        )
        return RelocationRequest(workload, config_destination, disk_destinations)

    def execute(self, workload: Workload, plan: RelocationPlan) -> TaskHandle | None:
        """
        Submit the plan as one asynchronous relocation.

        Returns:
            The task handle, or None when the plan changes nothing

        Raises:
            InvalidPlanShape: If the plan's disk count differs from the workload's
            ResolutionFailure: If any destination cannot be resolved (nothing submitted)
            RelocationInFlightError: If this executor already has a task for the workload
        """
        validate_plan_shape(plan, workload)
        if plan.is_empty:
            logger.debug(f"Nothing to relocate for {workload.name}")
            return None

        # Held from the check until the submission returns or fails.
        reservation = TaskHandle("pending", workload.name, "Submission in progress")
        with self._lock:
            pending = self._in_flight.get(workload.name)
            if pending is not None:
                raise RelocationInFlightError(workload.name, pending.task_id)
            self._in_flight[workload.name] = reservation

        try:
            request = self.build_request(workload, plan)
            task = self.client.submit_relocation(request)
        except Exception:
            with self._lock:
                self._in_flight.pop(workload.name, None)
            raise

        with self._lock:
            self._in_flight[workload.name] = task
        logger.info(
            f"Submitted relocation {task.task_id} for {workload.name} "
            f"({len(plan.changed_items)} item(s) into {plan.assigned_domain})"
        )
        return task

    def mark_complete(self, workload_name: str) -> None:
        """Forget the in-flight task for a workload once the caller saw it finish."""
        with self._lock:
            self._in_flight.pop(workload_name, None)

    def execute_all(self, plans: list[tuple[Workload, RelocationPlan]]) -> list[RelocationOutcome]:
        """
        Execute many plans; one workload's failure never stops the others.
        """
        outcomes = []
        for workload, plan in plans:
            try:
                task = self.execute(workload, plan)
            except AffinityReconcileError as e:
                logger.error(f"Relocation of {workload.name} not submitted: {e.message}")
                outcomes.append(RelocationOutcome(workload.name, OutcomeStatus.FAILED, plan, error=e))
                continue

            status = OutcomeStatus.SKIPPED if task is None else OutcomeStatus.SUBMITTED
            outcomes.append(RelocationOutcome(workload.name, status, plan, task=task))
        return outcomes
