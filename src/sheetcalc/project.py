"""Project-level configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from sheetcalc.formulas.errors import SheetLoadError

CONFIG_FILENAME = "sheetcalc.yaml"

DEFAULT_CONFIG = {
    "strict_parentheses": True,
    "logging_enabled": True,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
    "sheet_columns": 26,
    "sheet_rows": 100,
}


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Load project configuration from ``sheetcalc.yaml``, with defaults.

    Args:
        project_dir: Root of the sheetcalc project.

    Returns:
        Merged configuration dict.  Keys not in ``DEFAULT_CONFIG`` are kept.

    Raises:
        SheetLoadError: If the file is not valid YAML or not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = project_dir / CONFIG_FILENAME
    if config_path.exists():
        try:
            user_config = yaml.safe_load(config_path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise SheetLoadError(str(exc), source=str(config_path)) from exc
        if not isinstance(user_config, dict):
            raise SheetLoadError("config must be a mapping", source=str(config_path))
        config.update(user_config)
    return config
