"""Apartment, phase and block identifier extraction from document metadata.

Register titles are authored inconsistently, so apartment numbers are found
with an ordered regex cascade over title + reference + path:

1. ``PLOT <n>`` (matches the Unit Ref numbering of accommodation schedules)
2. ``UNIT <n>``
3. ``APT <n>``
4. ``FLAT <n>`` (often a postal address, hence lowest)
5. Path gate: landlord/communal folders are rejected, and only documents
   inside a ``Block - <A-G>`` folder continue
6. Communal/non-apartment exclusion keywords reject the document
7. ``FA CERT PLOT <n>``

Nothing is ever guessed: no match returns None.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import pandas as pd

from doctrack.models import DetectionConfig, compile_regex_patterns

_DIRECT_PATTERNS = (
    re.compile(r"PLOT\s+(?:NO[.:]?\s*|NUMBER\s+)?(\d{1,4})"),
    re.compile(r"UNIT\s+(\d{1,4})"),
    re.compile(r"APT\s+(\d{1,4})"),
    re.compile(r"FLAT\s+(\d{1,4})"),
)

_FA_CERT_PLOT = re.compile(r"FA\s+CERT\s+PLOT\s+(\d{1,4})")

_LANDLORD_FOLDER = re.compile(r"[\\/]Landlords[\\/]", re.IGNORECASE)
_BLOCK_FOLDER = re.compile(r"[\\/]Block\s*-\s*([A-G])[\\/]", re.IGNORECASE)

# Matched against the upper-cased search text
_EXCLUSION_PATTERNS = tuple(
    re.compile(p)
    for p in (
        r"BLOCK\s+[A-G]\s*[-&]\s*[A-G]",  # multi-block, e.g. Block A-B, Block F&G
        r"COMMUNAL",
        r"CAR\s*PARK",
        r"LIFT",
        r"LEVEL\s+[0-9]+",
        r"SCHEMATIC",
        r"TECHNICAL\s+SUBMITTAL",
        r"DESIGN\s+CERTIFICATE",
        r"FIRE\s+CURTAIN",
        r"FIRE\s+DAMPER",
        r"CAUSE\s+&\s+EFFECT",
    )
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def is_landlord_folder(path: Any) -> bool:
    """True when the path sits in a landlord/communal certificate folder."""
    return _LANDLORD_FOLDER.search(_text(path)) is not None


def is_block_folder(path: Any) -> bool:
    """True when the path contains a ``Block - <A-G>`` folder segment."""
    return _BLOCK_FOLDER.search(_text(path)) is not None


def block_from_path(path: Any) -> str | None:
    """Block letter of the ``Block - X`` folder in a path, upper-cased."""
    match = _BLOCK_FOLDER.search(_text(path))
    return match.group(1).upper() if match else None


def extract_apartment_number(title: Any, reference: Any = "", path: Any = "") -> int | None:
    """Extract an apartment/plot number from document metadata.

    Args:
        title: Document title
        reference: Document reference code
        path: Document folder path

    Returns:
        Apartment number, or None when no trustworthy identifier exists
    """
    title, reference, path = _text(title), _text(reference), _text(path)
    search_text = f"{title} {reference} {path}".upper()

    for pattern in _DIRECT_PATTERNS:
        match = pattern.search(search_text)
        if match:
            return int(match.group(1))

    if is_landlord_folder(path):
        return None
    if not is_block_folder(path):
        return None

    for pattern in _EXCLUSION_PATTERNS:
        if pattern.search(search_text):
            return None

    match = _FA_CERT_PLOT.search(search_text)
    if match:
        return int(match.group(1))

    return None


def _detect(
    title: Any,
    reference: Any,
    path: Any,
    detection: DetectionConfig | Mapping[str, Any] | None,
) -> str | None:
    if not detection:
        return None
    if not isinstance(detection, DetectionConfig):
        detection = DetectionConfig.model_validate(detection)

    title = _text(title)
    search_text = f"{title} {_text(reference)} {_text(path)}"

    # Titles name phases/blocks most precisely, so they are tried first
    for pattern in compile_regex_patterns(detection.doc_title_patterns):
        match = pattern.search(title)
        if match:
            return match.group(1) if match.groups() else match.group(0)

    for pattern in compile_regex_patterns(detection.patterns):
        match = pattern.search(search_text)
        if match:
            return match.group(1) if match.groups() else match.group(0)

    return None


def extract_phase(
    title: Any,
    reference: Any,
    path: Any,
    phase_config: DetectionConfig | Mapping[str, Any] | None,
) -> str | None:
    """Extract the construction phase using project detection patterns.

    Title-only patterns are tried before the general patterns, which run
    over title + reference + path. Capture group 1 is returned when the
    pattern defines one, otherwise the whole match.
    """
    return _detect(title, reference, path, phase_config)


def extract_block(
    title: Any,
    reference: Any,
    path: Any,
    block_config: DetectionConfig | Mapping[str, Any] | None,
) -> str | None:
    """Extract the building block, upper-cased. Same rules as extract_phase."""
    block = _detect(title, reference, path, block_config)
    return block.upper() if block else None
