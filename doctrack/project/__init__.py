"""Project configuration loading."""

from doctrack.project.loader import (
    ConfigurationError,
    list_projects,
    load_project,
    load_project_config,
)

__all__ = ["ConfigurationError", "load_project", "load_project_config", "list_projects"]
