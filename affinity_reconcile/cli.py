"""
CLI entry point for affinity-reconcile.
"""

import fnmatch
import logging
from contextlib import contextmanager
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console

from affinity_reconcile.engine import (
    GroupRegistry,
    MismatchDetector,
    PlacementResolver,
    RemediationExecutor,
    RemediationPlanner,
    RogueAssigner,
    calculate_balance,
)
from affinity_reconcile.exceptions import (
    AffinityReconcileError,
    DivisionUndefined,
    format_error_for_cli,
)
from affinity_reconcile.models.inventory import Workload
from affinity_reconcile.models.results import OutcomeStatus
from affinity_reconcile.naming import NamingConvention
from affinity_reconcile.platform import PlatformClient, get_client
from affinity_reconcile.report.export import export_run
from affinity_reconcile.report.tables import (
    balance_table,
    mismatch_table,
    outcome_table,
    plan_table,
    rogue_table,
)
from affinity_reconcile.util.log import setup_logging
from affinity_reconcile.util.progress import show_summary, status_counts, track_items
from affinity_reconcile.workspace import Workspace

app = typer.Typer(
    name="affinity-reconcile",
    help="Affinity domain balance, storage mismatch detection and relocation",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
WILDCARDS = set("*?[")


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AffinityReconcileError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("Unexpected error")
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            console.print("\n[yellow]This may be a bug. Re-run with --verbose for details.[/yellow]")
            raise typer.Exit(1)

    return wrapper


class Session:
    """Workspace, configuration and platform client for one command."""

    def __init__(self, workspace: Workspace, config: dict, client: PlatformClient, cluster: str):
        self.workspace = workspace
        self.config = config
        self.client = client
        self.cluster = cluster
        self.naming = NamingConvention.from_config(config)
        remediation = config.get("remediation", {}) or {}
        self.max_workers = int(remediation.get("max_workers", DEFAULT_MAX_WORKERS))
        self.operation_type = remediation.get("operation_type", "relocate")

    def registry(self) -> GroupRegistry:
        return GroupRegistry.load(self.client, self.cluster, self.naming)

    def workloads(self, pattern: str | None) -> list[Workload]:
        """
        Resolve the workload selection once, at the command boundary.

        A pattern without wildcards names exactly one workload and fails if it
        does not exist.
        """
        if pattern and not WILDCARDS & set(pattern):
            return [self.client.get_workload(self.cluster, pattern)]
        workloads = self.client.list_workloads(self.cluster)
        if pattern:
            workloads = [w for w in workloads if fnmatch.fnmatchcase(w.name, pattern)]
        return workloads

    def export(self, command: str, results) -> None:
        path = export_run(self.workspace, command, self.cluster, results)
        console.print(f"[green]✓ Results saved to {path.relative_to(self.workspace.root)}[/green]")


@contextmanager
def open_session(cluster: str):
    """Load the workspace in the current directory and connect to the platform."""
    workspace = Workspace(Path.cwd()).require()
    config = workspace.load_config()
    client = get_client(config, base_dir=workspace.root)
    with client:
        yield Session(workspace, config, client, client.get_cluster(cluster))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Reconcile workload placement with affinity domains."""
    setup_logging(verbose)


@app.command()
@handle_errors
def init(
    workspace_dir: str = typer.Argument(..., help="Workspace directory to initialize"),
):
    """Initialize a new affinity-reconcile workspace."""
    console.print(f"[bold blue]Initializing workspace:[/bold blue] {workspace_dir}")

    workspace = Workspace(Path(workspace_dir))
    workspace.initialize()

    console.print(f"[green]✓ Wrote configuration to {Workspace.CONFIG_NAME}[/green]")
    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"  cd {workspace_dir}")
    console.print(f"  # Edit {Workspace.CONFIG_NAME} (platform host, username)")
    console.print("  export AFFINITY_RECONCILE_PASSWORD=<password>")
    console.print("  affinity-reconcile balance --cluster <cluster>")


@app.command()
@handle_errors
def balance(
    cluster: str = typer.Option(..., "--cluster", "-c", help="Cluster name"),
    export: bool = typer.Option(False, "--export", help="Save results under runs/"),
):
    """Show how evenly workloads are spread across affinity domains."""
    with open_session(cluster) as session:
        registry = session.registry()
        try:
            report = calculate_balance(registry)
        except DivisionUndefined as e:
            console.print(f"[yellow]No data for {session.cluster}:[/yellow] {e.reason}")
            return

        console.print(balance_table(report))
        if export:
            session.export("balance", report)


@app.command()
@handle_errors
def mismatches(
    cluster: str = typer.Option(..., "--cluster", "-c", help="Cluster name"),
    workload: str = typer.Option(None, "--workload", "-w", help="Workload name or pattern"),
    export: bool = typer.Option(False, "--export", help="Save results under runs/"),
):
    """List workloads whose storage is in another domain than their group."""
    with open_session(cluster) as session:
        detector = MismatchDetector(session.registry(), session.naming)
        reports = detector.scan(session.workloads(workload), session.max_workers)

        flagged = [report for report in reports if report.has_mismatch or report.error]
        unassigned = sum(1 for report in reports if report.unassigned)

        if flagged:
            console.print(mismatch_table(flagged))
        else:
            console.print("[green]✓ No storage mismatches found[/green]")

        if unassigned:
            console.print(
                f"[yellow]⚠ {unassigned} workload(s) have no workload-group "
                f"(see: affinity-reconcile rogue --cluster {session.cluster})[/yellow]"
            )

        if export:
            session.export("mismatches", reports)


@app.command()
@handle_errors
def remediate(
    cluster: str = typer.Option(..., "--cluster", "-c", help="Cluster name"),
    workload: str = typer.Option(None, "--workload", "-w", help="Workload name or pattern"),
    execute: bool = typer.Option(False, "--execute", help="Submit relocation tasks"),
    export: bool = typer.Option(False, "--export", help="Save results under runs/"),
):
    """Plan (and with --execute, submit) relocations that fix mismatches."""
    with open_session(cluster) as session:
        workloads = session.workloads(workload)
        detector = MismatchDetector(session.registry(), session.naming)
        reports = detector.scan(workloads, session.max_workers)

        plans = RemediationPlanner(session.naming).plan_all(workloads, reports)
        if not plans:
            console.print("[green]✓ Nothing to relocate[/green]")
            return

        console.print(plan_table([plan for _, plan in plans]))

        if not execute:
            console.print("\n[dim]Dry run. Re-run with --execute to submit relocation tasks.[/dim]")
            if export:
                session.export("remediate", [plan for _, plan in plans])
            return

        resolver = PlacementResolver(session.client, session.operation_type)
        executor = RemediationExecutor(session.client, resolver)
        outcomes = []
        for entry in track_items("Submitting relocations", plans):
            outcomes.extend(executor.execute_all([entry]))

        console.print(outcome_table(outcomes))
        show_summary("Relocations", status_counts(outcomes), out=console)
        if export:
            session.export("remediate", outcomes)

        if any(outcome.status is OutcomeStatus.FAILED for outcome in outcomes):
            raise typer.Exit(1)


@app.command()
@handle_errors
def rogue(
    cluster: str = typer.Option(..., "--cluster", "-c", help="Cluster name"),
    apply: bool = typer.Option(False, "--apply", help="Add classified workloads to their group"),
    export: bool = typer.Option(False, "--export", help="Save results under runs/"),
):
    """Classify workloads that are in no workload-group."""
    with open_session(cluster) as session:
        assigner = RogueAssigner(session.client, session.registry(), session.naming)
        results = assigner.assign(session.workloads(None), apply=apply)

        if not results:
            console.print("[green]✓ Every workload has a workload-group[/green]")
            return

        console.print(rogue_table(results))
        show_summary("Rogue workloads", status_counts(results), out=console)
        if not apply:
            console.print("\n[dim]Dry run. Re-run with --apply to edit group membership.[/dim]")

        if export:
            session.export("rogue", results)


if __name__ == "__main__":
    app()
