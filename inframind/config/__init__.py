"""Configuration module — exports Settings and the YAML loader helpers."""

from inframind.config.loader import apply_config, load_config
from inframind.config.settings import Settings

__all__ = ["Settings", "apply_config", "load_config"]
