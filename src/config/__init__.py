"""Configuration module -- exports Settings and the YAML-aware loaders."""

from src.config.loader import load_config, load_settings
from src.config.settings import Settings

__all__ = ["Settings", "load_config", "load_settings"]
