"""Canonical cleaning of register values."""

from doctrack.canonical.revision import clean_revision, clean_revision_column

__all__ = ["clean_revision", "clean_revision_column"]
