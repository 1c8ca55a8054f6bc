"""
Export engine results as JSON run records.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from affinity_reconcile.util.files import write_json
from affinity_reconcile.workspace import Workspace

logger = logging.getLogger(__name__)


def to_records(results: Any) -> Any:
    """Convert a result object, or a list of them, to plain data."""
    if isinstance(results, (list, tuple)):
        return [to_records(item) for item in results]
    if hasattr(results, "to_dict"):
        return results.to_dict()
    return results


def export_run(workspace: Workspace, command: str, cluster: str, results: Any) -> Path:
    """
    Write ``results`` to ``runs/<timestamp>/<command>.json``.

    Args:
        workspace: Initialized workspace
        command: CLI command that produced the results
        cluster: Cluster the results describe
        results: Result object or list of result objects

    Returns:
        Path of the written file
    """
    run_dir = workspace.new_run_dir()
    output_file = run_dir / f"{command}.json"
    write_json(
        output_file,
        {
            "command": command,
            "cluster": cluster,
            "timestamp": datetime.now().isoformat(),
            "results": to_records(results),
        },
    )
    logger.info(f"Exported {command} results to {output_file}")
    return output_file
