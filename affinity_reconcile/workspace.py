"""
Workspace management for affinity-reconcile.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from affinity_reconcile.exceptions import InvalidConfigError, WorkspaceNotFoundError

SCHEMA_DIR = Path(__file__).parent / "schema"


class Workspace:
    """Manages the affinity-reconcile workspace structure and configuration."""

    CONFIG_NAME = "affinity-reconcile.yaml"

    REQUIRED_DIRS = [
        "runs",
    ]

    DEFAULT_CONFIG = {
        "platform": {
            "provider": "vsphere",
            "host": "vcenter.example.com",
            "username": "administrator@vsphere.local",
            "password_env": "AFFINITY_RECONCILE_PASSWORD",
            "verify_ssl": True,
            "inventory_file": "inventory.yaml",
        },
        "naming": {
            "group_delimiter": "-",
            "storage_delimiter": "_",
        },
        "remediation": {
            "operation_type": "relocate",
            "max_workers": 4,
        },
    }

    def __init__(self, root: Path):
        self.root = Path(root)
        self.config_file = self.root / self.CONFIG_NAME
        self._config_cache: dict[str, Any] | None = None

    @property
    def runs_dir(self) -> Path:
        return self.root / "runs"

    def initialize(self) -> None:
        """Initialize workspace directory structure and config."""
        for dir_path in self.REQUIRED_DIRS:
            (self.root / dir_path).mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)

    def require(self) -> "Workspace":
        """Return self, or raise if the workspace has not been initialized."""
        if not self.config_file.exists():
            raise WorkspaceNotFoundError(str(self.root))
        return self

    def load_config(self) -> dict[str, Any]:
        """Load and validate workspace configuration (cached after the first call)."""
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_file.exists():
            raise WorkspaceNotFoundError(str(self.root))

        with open(self.config_file) as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"YAML parse error: {e}") from e

        if config is None:
            raise InvalidConfigError(f"Config file is empty: {self.config_file}")

        if not isinstance(config, dict):
            raise InvalidConfigError(f"expected a mapping, got {type(config).__name__}")

        self._validate_config_schema(config)
        self._config_cache = config
        return config

    def _validate_config_schema(self, config: dict) -> None:
        """Validate config against JSON schema."""
        schema_file = SCHEMA_DIR / "config.schema.json"
        schema = json.loads(schema_file.read_text())
        try:
            validate(instance=config, schema=schema)
        except ValidationError as e:
            raise InvalidConfigError(
                f"{e.message} (path: {'.'.join(str(p) for p in e.path)})"
            ) from e

    def new_run_dir(self) -> Path:
        """Create and return a timestamped directory under runs/."""
        timestamp = datetime.now().isoformat()
        run_dir = self.runs_dir / timestamp.replace(":", "-").split(".")[0]
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir
