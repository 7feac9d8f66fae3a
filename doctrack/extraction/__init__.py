"""Identifier extraction from document titles, references and paths."""

from doctrack.extraction.identifiers import (
    block_from_path,
    extract_apartment_number,
    extract_block,
    extract_phase,
    is_block_folder,
    is_landlord_folder,
)

__all__ = [
    "block_from_path",
    "extract_apartment_number",
    "extract_block",
    "extract_phase",
    "is_block_folder",
    "is_landlord_folder",
]
