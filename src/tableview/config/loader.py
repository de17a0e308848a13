"""
View Configuration Files.

A view is configured by one YAML document, optionally overlaid by a
profile. Profiles live in a ``profiles/`` directory beside the document
they modify:

    views/
        people.yaml
        profiles/
            strict.yaml

Overlay rules:
    - Mappings merge key by key, recursively
    - ``columns`` entries merge by ``field``; unknown fields are appended
    - Any other value in the profile replaces the base value
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from tableview.config.models import ViewConfig

logger = logging.getLogger(__name__)

PROFILE_DIR = "profiles"


class ConfigError(ValueError):
    """A configuration document is not a YAML mapping."""


def read_document(path: Path) -> Dict[str, Any]:
    """
    Read one YAML document. An empty file is an empty mapping.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the document is not a mapping
    """
    with open(path, encoding="utf-8") as f:
        document = yaml.safe_load(f)
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(
            f"{path} must contain a mapping, got {type(document).__name__}"
        )
    return document


def overlay(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with a profile's changes applied; neither input is modified."""
    merged = dict(base)
    for key, value in changes.items():
        current = merged.get(key)
        if key == "columns" and isinstance(current, list) and isinstance(value, list):
            merged[key] = _overlay_columns(current, value)
        elif isinstance(current, dict) and isinstance(value, dict):
            merged[key] = overlay(current, value)
        else:
            merged[key] = value
    return merged


def _overlay_columns(
    base: List[Dict[str, Any]], changes: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    columns = [dict(column) for column in base]
    position = {column.get("field"): i for i, column in enumerate(columns)}
    for column in changes:
        field = column.get("field")
        if field in position:
            columns[position[field]].update(column)
        else:
            position[field] = len(columns)
            columns.append(dict(column))
    return columns


class ConfigLoader:
    """
    Reads view configuration documents and validates them into ViewConfig.

    Usage:
        loader = ConfigLoader(base_path=Path("views"))
        config = loader.load("people.yaml", profile="strict")
    """

    def __init__(self, base_path: Optional[Path] = None) -> None:
        """
        Args:
            base_path: Directory that relative document paths start from;
                defaults to the working directory
        """
        self._base_path = Path(base_path) if base_path is not None else Path(".")

    def load(
        self,
        config_path: Union[str, Path],
        profile: Optional[str] = None,
    ) -> ViewConfig:
        """
        Load a view configuration, applying a profile if named.

        Args:
            config_path: YAML document, absolute or relative to base_path
            profile: Name of a document in the ``profiles/`` directory
                beside config_path

        Returns:
            Validated ViewConfig

        Raises:
            FileNotFoundError: If the document or the profile is missing
            ConfigError: If a document is not a mapping
            ValidationError: If the merged configuration is invalid
        """
        path = self.resolve(config_path)
        document = read_document(path)

        if profile:
            profile_path = self.profile_path(path, profile)
            document = overlay(document, read_document(profile_path))
            logger.debug(f"Applied profile {profile_path} to {path}")

        config = self.load_from_dict(document)
        logger.debug(
            f"Loaded view configuration from {path}: {len(config.columns)} columns"
        )
        return config

    def load_from_dict(self, config_dict: Dict[str, Any]) -> ViewConfig:
        """Validate configuration given as a dictionary."""
        return ViewConfig.model_validate(config_dict)

    def resolve(self, config_path: Union[str, Path]) -> Path:
        path = Path(config_path)
        return path if path.is_absolute() else self._base_path / path

    @staticmethod
    def profile_path(config_path: Path, profile: str) -> Path:
        """
        Location of a profile for the given document.

        Raises:
            FileNotFoundError: If the profile does not exist
        """
        path = config_path.parent / PROFILE_DIR / f"{profile}.yaml"
        if not path.is_file():
            raise FileNotFoundError(f"Profile not found: {profile} (looked for {path})")
        return path


def load_config(
    config_path: Union[str, Path],
    profile: Optional[str] = None,
    base_path: Optional[Path] = None,
) -> ViewConfig:
    """
    Load a view configuration file.

    Args:
        config_path: YAML document
        profile: Optional profile name
        base_path: Directory relative paths start from

    Returns:
        Validated ViewConfig
    """
    return ConfigLoader(base_path=base_path).load(config_path, profile)
