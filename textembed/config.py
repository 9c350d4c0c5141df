"""
Settings
=========
Reads ``configs/settings.yaml`` and maps it onto ``InitOptions``.

The settings file looks like::

    embedding:
      model: BGESmallENV15          # enum name or Hub repository id
      max_length: 512
      batch_size: 256
      cache_dir: .textembed_cache
      show_download_progress: true
    openvino:
      devices: [CPU]                # ordered execution providers

Every key is optional; anything left out keeps the library default.
Command-line flags override these values.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from textembed.embeddings.models import parse_model
from textembed.embeddings.text_embedding import DEFAULT_BATCH_SIZE, InitOptions

logger = logging.getLogger(__name__)

# Path to the project settings file
SETTINGS_PATH = Path(__file__).resolve().parent.parent / "configs" / "settings.yaml"


def load_settings(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load settings from a YAML file (``configs/settings.yaml`` by default).

    Returns:
        The parsed YAML as a dict, or an empty dict if the file is missing
        or unreadable.
    """
    settings_path = Path(path) if path else SETTINGS_PATH
    if not settings_path.exists():
        logger.warning("Settings file not found: %s", settings_path)
        return {}
    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            settings = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to read settings %s: %s", settings_path, exc)
        return {}
    if not isinstance(settings, dict):
        logger.warning("Settings file %s is not a mapping, ignoring it", settings_path)
        return {}
    return settings


def embedding_options_from_settings(settings: Dict[str, Any]) -> InitOptions:
    """Build ``InitOptions`` from the ``embedding`` and ``openvino`` sections."""
    embedding = settings.get("embedding") or {}
    ov_settings = settings.get("openvino") or {}
    options = InitOptions()

    if "model" in embedding:
        options.model_name = parse_model(embedding["model"])
    if "max_length" in embedding:
        options.max_length = int(embedding["max_length"])
    if "cache_dir" in embedding:
        options.cache_dir = Path(embedding["cache_dir"])
    if "show_download_progress" in embedding:
        options.show_download_progress = bool(embedding["show_download_progress"])

    devices = ov_settings.get("devices")
    if isinstance(devices, str):
        devices = [devices]
    if devices:
        options.execution_providers = [str(d) for d in devices]
    return options


def batch_size_from_settings(settings: Dict[str, Any]) -> int:
    embedding = settings.get("embedding") or {}
    return int(embedding.get("batch_size", DEFAULT_BATCH_SIZE))
