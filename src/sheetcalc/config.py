"""Sheet configuration loaded from ``sheetcalc.yaml``, with defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "sheetcalc.yaml"

DEFAULT_CONFIG = {
    "undo_limit": 50,
    "min_columns": 10,  # floor for the grid's column count
    "default_rows": 5,
    "default_column_width": 100,
    "min_column_width": 40,
    "frozen_rows": 1,
    "frozen_columns": 0,
    "currency_symbol": "$",
    "csv_delimiter": ",",
    "logging_fsync": False,
}

DEFAULT_CONFIG_YAML = """\
# sheetcalc configuration
undo_limit: 50
currency_symbol: "$"
csv_delimiter: ","

view:
  column_width: 100
  min_column_width: 40
  frozen_rows: 1
  frozen_columns: 0
"""


class ConfigError(ValueError):
    """Raised when ``sheetcalc.yaml`` is not a mapping."""


def _flatten_view_block(user_config: dict[str, Any]) -> dict[str, Any]:
    """Flatten a nested ``view:`` block into flat config keys.

    Supports::

        view:
          column_width: 120
          min_column_width: 30
          frozen_rows: 2
          frozen_columns: 1

    Flat keys given alongside the block win.
    """
    view = user_config.pop("view", None)
    if not isinstance(view, dict):
        return user_config

    mapping = {
        "column_width": "default_column_width",
        "min_column_width": "min_column_width",
        "frozen_rows": "frozen_rows",
        "frozen_columns": "frozen_columns",
    }
    for short_key, flat_key in mapping.items():
        if short_key in view:
            user_config.setdefault(flat_key, view[short_key])
    return user_config


def load_config(directory: Path) -> dict[str, Any]:
    """Load configuration from ``sheetcalc.yaml`` in *directory*.

    Unknown keys are kept in the result but nothing reads them.

    Args:
        directory: Directory holding the sheet document.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If the file parses to something other than a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = Path(directory) / CONFIG_FILENAME
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ConfigError(
                f"{config_path} must contain a mapping, got {type(user_config).__name__}"
            )
        config.update(_flatten_view_block(user_config))
    return config


def write_default_config(directory: Path) -> Path:
    """Write the commented default ``sheetcalc.yaml`` unless one exists."""
    config_path = Path(directory) / CONFIG_FILENAME
    if not config_path.exists():
        config_path.write_text(DEFAULT_CONFIG_YAML)
    return config_path
