"""Project configuration loading.

Each project is described by one YAML file (``<name>.yaml``) holding its
register column mappings, status vocabulary, certificate categories and,
optionally, its apartment inventory. Files are data only: conditional
status logic is expressed as ``status_mapping.rules``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from doctrack.config import get_config
from doctrack.models import ProjectConfig, compile_regex_patterns

logger = logging.getLogger(__name__)

_SUFFIXES = (".yaml", ".yml")


class ConfigurationError(Exception):
    """Project configuration file is invalid or missing."""

    pass


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise ConfigurationError(f"Project config not found: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e


def validate_project_config(config: ProjectConfig) -> list[str]:
    """Cross-field checks pydantic cannot express on a single model.

    Returns:
        List of problems (empty when the configuration is consistent)
    """
    problems: list[str] = []

    mapping = config.status_mapping
    if mapping is not None:
        declared = set(mapping.categories)
        for name in mapping.display_order:
            if name not in declared:
                problems.append(f"status_mapping.display_order names undeclared category '{name}'")

        # A rule result must resolve to a category, either by name or listed status
        known_statuses = declared | {s for c in mapping.categories.values() for s in c.statuses}
        for rule in mapping.rules:
            if rule.status not in known_statuses:
                problems.append(f"status rule result '{rule.status}' is not a declared status")
        if mapping.rules and mapping.rules_default not in known_statuses:
            problems.append(f"status rules_default '{mapping.rules_default}' is not a declared status")

    if config.tracking is not None:
        for name, category in config.tracking.categories.items():
            if not category.has_patterns:
                problems.append(f"tracking category '{name}' has no detection patterns")

        for section, detection in (
            ("phase_detection", config.tracking.phase_detection),
            ("block_detection", config.tracking.block_detection),
        ):
            if detection is None:
                continue
            for pattern in detection.doc_title_patterns + detection.patterns:
                try:
                    compile_regex_patterns((pattern,))
                except re.error as e:
                    problems.append(f"tracking.{section} pattern '{pattern}' is not a valid regex: {e}")

    return problems


def load_project_config(path: Path | str) -> ProjectConfig:
    """Load and validate one project configuration file.

    An ``accommodation_file`` key is resolved relative to the project file
    and loaded as the apartment inventory (YAML or JSON).

    Args:
        path: Path to the project YAML file

    Returns:
        Frozen ProjectConfig

    Raises:
        ConfigurationError: If the file is missing, malformed or inconsistent
    """
    path = Path(path)
    data = _read_yaml(path)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")

    inventory_file = data.pop("accommodation_file", None)
    if inventory_file and "accommodation" not in data:
        data["accommodation"] = _read_yaml(path.parent / inventory_file)

    data.setdefault("title", path.stem)

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid project config {path}: {e}") from e

    problems = validate_project_config(config)
    if problems:
        raise ConfigurationError(f"Invalid project config {path}: " + "; ".join(problems))

    logger.info(f"Loaded project '{config.title}' from {path}")
    return config


def find_project_file(name: str, config_dir: Path | None = None) -> Path:
    """Locate ``<name>.yaml`` (or ``.yml``) in the configuration directory."""
    config_dir = config_dir or get_config().paths.config_dir
    for suffix in _SUFFIXES:
        candidate = config_dir / f"{name}{suffix}"
        if candidate.exists():
            return candidate
    raise ConfigurationError(f"No configuration for project '{name}' in {config_dir}")


def load_project(name: str, config_dir: Path | None = None) -> ProjectConfig:
    """Load a project configuration by name.

    Example:
        >>> project = load_project("greenwich_peninsula")
        >>> project.title
        'Greenwich Peninsula'
    """
    return load_project_config(find_project_file(name, config_dir))


def list_projects(config_dir: Path | None = None) -> list[str]:
    """Names of every project configuration in the directory, sorted."""
    config_dir = config_dir or get_config().paths.config_dir
    if not config_dir.exists():
        logger.warning(f"Project config directory does not exist: {config_dir}")
        return []
    return sorted(p.stem for p in config_dir.iterdir() if p.suffix in _SUFFIXES)
