"""YAML configuration loader layered under environment-based Settings.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is resolved in layers (later layers win):
#
#   1. Field defaults in src/config/settings.py
#   2. config/config.yaml  -- tuning checked into the repo
#   3. .env file           -- local developer overrides (not committed)
#   4. Environment vars    -- set by the deployment
#
# config.yaml is grouped into sections for readability:
#   ingestion: {chunk_size: 500, chunk_overlap: 80}
# Section names are dropped when mapping onto Settings fields, so every
# key inside a section must be a Settings field name.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings
from src.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml") -> dict:
    """Load the YAML config file, returning ``{}`` when it does not exist."""
    config_path = Path(path)
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        # safe_load only: the file is data, never code.
        return yaml.safe_load(f) or {}


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Build :class:`Settings` with YAML values beneath env/.env values.

    Fields explicitly provided by the environment (or .env) keep their
    value; YAML fills in everything else.

    Raises
    ------
    ConfigurationError
        If the YAML file names a key that is not a Settings field.
    """
    settings = Settings()
    yaml_values = _flatten(load_config(path))

    unknown = sorted(set(yaml_values) - set(Settings.model_fields))
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys in {path}: {', '.join(unknown)}")

    overrides = {
        key: value
        for key, value in yaml_values.items()
        if key not in settings.model_fields_set
    }
    if not overrides:
        return settings
    # Re-validate so YAML strings/ints are coerced to the field types.
    return Settings.model_validate({**settings.model_dump(), **overrides})


def _flatten(config: dict[str, Any]) -> dict[str, Any]:
    """Collapse one level of sections into a flat field-name mapping."""
    flat: dict[str, Any] = {}
    for key, value in config.items():
        if isinstance(value, dict):
            flat.update(value)
        else:
            flat[key] = value
    return flat
