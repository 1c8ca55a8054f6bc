"""
Rich table rendering for balance reports, findings, plans and outcomes.
"""

from rich.table import Table

from affinity_reconcile.models.results import (
    BalanceReport,
    MismatchReport,
    OutcomeStatus,
    RelocationOutcome,
    RelocationPlan,
    RogueResult,
)

STATUS_STYLES = {
    OutcomeStatus.SUBMITTED: "green",
    OutcomeStatus.PLANNED: "cyan",
    OutcomeStatus.SKIPPED: "dim",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.UNCLASSIFIABLE: "yellow",
}


def _status(status: OutcomeStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def _error_text(error) -> str:
    if error is None:
        return ""
    return getattr(error, "message", str(error))


def balance_table(report: BalanceReport) -> Table:
    table = Table(title=f"Domain balance: {report.cluster}")
    table.add_column("Domain", style="cyan")
    table.add_column("Hosts", justify="right")
    table.add_column("Workloads", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Deviation", justify="right")

    for entry in report.domains:
        deviation = entry.status
        if entry.deviation_percent is not None and entry.deviation_percent > 0:
            deviation = f"[yellow]{deviation}[/yellow]"
        table.add_row(
            entry.domain,
            str(entry.host_count),
            str(entry.workload_count),
            str(entry.target),
            deviation,
        )

    table.add_section()
    table.add_row(
        "[bold]Total[/bold]",
        str(report.total_hosts),
        str(report.total_workloads),
        f"{report.per_host_target:.2f}/host",
        "",
    )
    return table


def mismatch_table(reports: list[MismatchReport]) -> Table:
    table = Table(title="Storage outside assigned domain")
    table.add_column("Workload", style="cyan")
    table.add_column("Item")
    table.add_column("Location")
    table.add_column("Assigned domain")

    for report in reports:
        if report.error:
            table.add_row(report.workload, "-", f"[red]{report.error}[/red]", "-")
        for finding in report.findings:
            table.add_row(
                finding.workload,
                str(finding.item),
                finding.actual_location,
                finding.assigned_domain,
            )
    return table


def plan_table(plans: list[RelocationPlan]) -> Table:
    table = Table(title="Relocation plans")
    table.add_column("Workload", style="cyan")
    table.add_column("Item")
    table.add_column("Source")
    table.add_column("Destination")

    for plan in plans:
        for item in plan.items:
            destination = item.destination if item.changed else "[dim]unchanged[/dim]"
            table.add_row(plan.workload, str(item.item), item.source, destination)
    return table


def outcome_table(outcomes: list[RelocationOutcome]) -> Table:
    table = Table(title="Relocation tasks")
    table.add_column("Workload", style="cyan")
    table.add_column("Status")
    table.add_column("Task")
    table.add_column("Detail")

    for outcome in outcomes:
        table.add_row(
            outcome.workload,
            _status(outcome.status),
            outcome.task.task_id if outcome.task else "",
            _error_text(outcome.error),
        )
    return table


def rogue_table(results: list[RogueResult]) -> Table:
    table = Table(title="Workloads without a workload-group")
    table.add_column("Workload", style="cyan")
    table.add_column("Status")
    table.add_column("Domain")
    table.add_column("Group")
    table.add_column("Inferred from")
    table.add_column("Task")

    for result in results:
        table.add_row(
            result.workload,
            _status(result.status),
            result.domain or "-",
            result.group or "-",
            result.source_location or ", ".join(result.inspected),
            result.task.task_id if result.task else "",
        )
    return table
