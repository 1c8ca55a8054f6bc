"""
Tests for result export and table rendering.
"""

import json

from rich.console import Console

from affinity_reconcile.engine import MismatchDetector, calculate_balance
from affinity_reconcile.models.results import (
    ItemRef,
    OutcomeStatus,
    PlanItem,
    RelocationPlan,
    RogueResult,
)
from affinity_reconcile.report.export import export_run, to_records
from affinity_reconcile.report.tables import balance_table, mismatch_table, plan_table
from affinity_reconcile.util.progress import status_counts


def render(table) -> str:
    console = Console(width=200, record=True)
    console.print(table)
    return console.export_text()


class TestExport:
    def test_to_records(self, registry):
        report = calculate_balance(registry)

        records = to_records([report])

        assert records[0]["cluster"] == "prod"
        assert to_records({"plain": 1}) == {"plain": 1}

    def test_export_run(self, temp_workspace, registry):
        """Test that results land under runs/ as JSON"""
        path = export_run(temp_workspace, "balance", "prod", calculate_balance(registry))

        assert path.name == "balance.json"
        assert path.parent.parent == temp_workspace.runs_dir
        data = json.loads(path.read_text())
        assert data["command"] == "balance"
        assert data["cluster"] == "prod"
        assert data["results"]["total_hosts"] == 4


class TestTables:
    def test_balance_table(self, registry):
        text = render(balance_table(calculate_balance(registry)))

        assert "alpha" in text
        assert "+25.0%" in text
        assert "-25.0%" in text

    def test_mismatch_table(self, client, registry):
        reports = MismatchDetector(registry).scan([client.get_workload("prod", "web02")])

        text = render(mismatch_table(reports))

        assert "web02" in text
        assert "beta_ds01" in text
        assert "Disk(2001)" in text

    def test_plan_table_marks_unchanged(self):
        plan = RelocationPlan(
            "web02",
            "alpha",
            PlanItem(ItemRef.config(), "beta_ds01", "alpha_ds01"),
            (PlanItem(ItemRef.disk(2000), "alpha_ds01"),),
        )

        text = render(plan_table([plan]))

        assert "alpha_ds01" in text
        assert "unchanged" in text


def test_status_counts_preserve_order():
    results = [
        RogueResult("rogue01", OutcomeStatus.PLANNED),
        RogueResult("rogue02", OutcomeStatus.UNCLASSIFIABLE),
        RogueResult("rogue03", OutcomeStatus.PLANNED),
    ]
    assert status_counts(results) == {"planned": 2, "unclassifiable": 1}
