"""DocTrack application configuration.

Loads settings from environment variables (and a ``.env`` file) with
defaults suitable for running from a checkout. Project-specific settings
(column names, categories, status vocabularies) live in YAML files under
the configuration directory, see ``doctrack.project.loader``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_REPO_ROOT = Path(__file__).parent.parent


@dataclass
class PathsConfig:
    """Filesystem locations for project configs, register exports and reports."""

    config_dir: Path = _REPO_ROOT / "config" / "projects"
    input_dir: Path = Path("input")
    output_dir: Path = Path("output")


@dataclass
class ReportConfig:
    """Spreadsheet report rendering options."""

    progress_bar_width: int = 20
    include_uncategorized: bool = True
    include_rejected: bool = True


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    paths: PathsConfig = field(default_factory=PathsConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - DOCTRACK_CONFIG_DIR: Directory of project YAML files
        - DOCTRACK_INPUT_DIR / DOCTRACK_OUTPUT_DIR: Register exports and reports
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")
        - REPORT_PROGRESS_BAR_WIDTH: Characters in text progress bars

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        defaults = PathsConfig()
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            paths=PathsConfig(
                config_dir=Path(os.getenv("DOCTRACK_CONFIG_DIR", str(defaults.config_dir))),
                input_dir=Path(os.getenv("DOCTRACK_INPUT_DIR", str(defaults.input_dir))),
                output_dir=Path(os.getenv("DOCTRACK_OUTPUT_DIR", str(defaults.output_dir))),
            ),
            report=ReportConfig(
                progress_bar_width=int(os.getenv("REPORT_PROGRESS_BAR_WIDTH", "20")),
                include_uncategorized=os.getenv("REPORT_INCLUDE_UNCATEGORIZED", "true").lower()
                == "true",
                include_rejected=os.getenv("REPORT_INCLUDE_REJECTED", "true").lower() == "true",
            ),
        )

    @property
    def json_logs(self) -> bool:
        return self.log_format.lower() == "json"


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Forget the cached configuration (tests change the environment)."""
    global _config
    _config = None
