"""DocTrack pydantic models for project configuration and apartment inventory.

All configuration models are frozen: they are built once when a project is
loaded and passed explicitly into every classification/aggregation call.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Canonical register columns (project column names are mapped onto these on load)
TITLE_COLUMN = "Doc Title"
REFERENCE_COLUMN = "Doc Ref"
PATH_COLUMN = "Doc Path"
REVISION_COLUMN = "Rev"
STATUS_COLUMN = "Status"
FILE_TYPE_COLUMNS = ("File Type", "OVL - File Type", "Form")

# Columns added by the classifier
CATEGORY_COLUMN = "category"
APARTMENT_COLUMN = "apartment_number"
PHASE_COLUMN = "phase"
BLOCK_COLUMN = "block"
EXTRACTED_BLOCK_COLUMN = "extracted_block"

OTHER_STATUS = "Other"
UNMAPPED_STATUS = "Unmapped"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class CategoryPrecedence(str, Enum):
    """How the classifier resolves a row matching several categories."""

    FIRST_MATCH = "first_match"  # first category in declared order keeps the row
    LAST_MATCH = "last_match"  # later categories overwrite earlier assignments


@lru_cache(maxsize=512)
def compile_substring_patterns(
    patterns: tuple[str, ...], word_bounded: bool = False
) -> re.Pattern[str] | None:
    """Compile literal patterns into one case-insensitive alternation.

    Args:
        patterns: Literal substrings (escaped before compiling)
        word_bounded: Wrap each pattern in ``\\b`` anchors

    Returns:
        Compiled pattern, or None when no non-empty pattern was given
    """
    parts = [re.escape(p) for p in patterns if p]
    if not parts:
        return None
    if word_bounded:
        parts = [rf"\b{p}\b" for p in parts]
    return re.compile("|".join(parts), re.IGNORECASE)


@lru_cache(maxsize=512)
def compile_regex_patterns(patterns: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    """Compile a list of project regexes (case-insensitive), keeping order."""
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns if p)


class CategoryConfig(_Frozen):
    """Detection patterns for one document category.

    Attributes:
        title_patterns: Case-insensitive substrings searched in the title
        reference_patterns: Codes searched as whole words in the reference
        path_patterns: Case-insensitive substrings searched in the path
        max_count: Cap used only when no apartment inventory is supplied
        display_name: Label used by reports
    """

    title_patterns: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("title_patterns", "patterns")
    )
    reference_patterns: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("reference_patterns", "doc_ref_patterns"),
    )
    path_patterns: tuple[str, ...] = ()
    max_count: int | None = None
    display_name: str | None = None

    @property
    def title_regex(self) -> re.Pattern[str] | None:
        return compile_substring_patterns(self.title_patterns)

    @property
    def reference_regex(self) -> re.Pattern[str] | None:
        return compile_substring_patterns(self.reference_patterns, word_bounded=True)

    @property
    def path_regex(self) -> re.Pattern[str] | None:
        return compile_substring_patterns(self.path_patterns)

    @property
    def has_patterns(self) -> bool:
        return bool(self.title_patterns or self.reference_patterns or self.path_patterns)


class DetectionConfig(_Frozen):
    """Regex lists used to find a phase or block in document metadata."""

    doc_title_patterns: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()


class PhaseDefinition(_Frozen):
    """Phase as declared in project configuration (no inventory)."""

    display_name: str | None = None
    blocks: tuple[str, ...] = ()
    apartment_count: int = 0


class TrackingConfig(_Frozen):
    """Certificate tracking section of a project configuration."""

    phases: dict[str, PhaseDefinition] = Field(default_factory=dict)
    phase_detection: DetectionConfig | None = None
    block_detection: DetectionConfig | None = None
    categories: dict[str, CategoryConfig] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("categories", "apartment_certificates"),
    )
    precedence: CategoryPrecedence = CategoryPrecedence.FIRST_MATCH

    @field_validator("phases", mode="before")
    @classmethod
    def stringify_phase_ids(cls, v: Any) -> Any:
        return _stringify_keys(v)


class StatusCategory(_Frozen):
    """Canonical status bucket and the raw statuses that belong to it."""

    display_name: str | None = None
    color: str | None = None
    statuses: tuple[str, ...] = ()
    description: str | None = None


class StatusRule(_Frozen):
    """Declarative row-level status rule.

    Attributes:
        match: Column -> expected value. ``""`` requires an empty cell,
            ``"*"`` requires any non-empty cell, anything else is compared
            case-insensitively after stripping.
        status: Status value written when every condition holds
        priority: Lower number is evaluated first
    """

    match: dict[str, str]
    status: str
    priority: int = 100

    def matches(self, row: Any) -> bool:
        for column, expected in self.match.items():
            actual = _cell_text(row, column)
            if expected == "*":
                if not actual:
                    return False
            elif expected.strip().lower() != actual.lower():
                return False
        return True


class StatusMapping(_Frozen):
    """Per-project status vocabulary normalization."""

    categories: dict[str, StatusCategory] = Field(default_factory=dict)
    display_order: tuple[str, ...] = ()
    rules: tuple[StatusRule, ...] = ()
    rules_default: str = OTHER_STATUS
    track_unmapped: bool = False
    rejected_categories: tuple[str, ...] = ("Status C",)

    @field_validator("rules")
    @classmethod
    def sort_rules(cls, v: tuple[StatusRule, ...]) -> tuple[StatusRule, ...]:
        return tuple(sorted(v, key=lambda r: r.priority))


class BlockInventory(_Frozen):
    apartment_count: int = 0
    apartments: tuple[int, ...] = ()
    floors: tuple[int | str, ...] = ()


class PhaseInventory(_Frozen):
    apartment_count: int = 0
    apartments: tuple[int, ...] = ()
    blocks: dict[str, BlockInventory] = Field(default_factory=dict)


class ApartmentRecord(_Frozen):
    phase: str | None = None
    block: str | None = None
    floor: int | str | None = None
    type: str | None = None
    bedrooms: int | None = None
    tenure: str | None = None

    @field_validator("phase", mode="before")
    @classmethod
    def stringify_phase(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) else v


class AccommodationData(_Frozen):
    """Authoritative apartment inventory, read-only at aggregation time."""

    total_apartments: int | None = None
    phases: dict[str, PhaseInventory] = Field(default_factory=dict)
    apartments: dict[int, ApartmentRecord] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("apartments", "apartment_lookup"),
    )
    last_updated: str | None = None
    source_file: str | None = None

    @field_validator("phases", mode="before")
    @classmethod
    def stringify_phase_ids(cls, v: Any) -> Any:
        return _stringify_keys(v)

    def all_apartments(self) -> list[int]:
        """Every apartment identifier listed in the inventory, sorted."""
        found: set[int] = set(self.apartments)
        for phase in self.phases.values():
            found.update(phase.apartments)
            for block in phase.blocks.values():
                found.update(block.apartments)
        return sorted(found)


class DocumentTypeFilter(_Frozen):
    """Rules selecting one document type (certificates, drawings, ...)."""

    enabled: bool = False
    file_type_column: str = "File Type"
    file_types: tuple[str, ...] = ()
    exact: bool = False
    doc_ref_column: str = REFERENCE_COLUMN
    doc_ref_patterns: tuple[str, ...] = ()


class RowFilter(_Frozen):
    """Keep only rows whose search columns contain a marker string."""

    contains: str
    search_columns: tuple[str, ...] = (TITLE_COLUMN,)
    case_sensitive: bool = False


class ProjectConfig(_Frozen):
    """Complete declarative configuration of one project."""

    title: str
    column_mappings: dict[str, str] = Field(default_factory=dict)
    excel_settings: dict[str, Any] = Field(default_factory=dict)
    csv_settings: dict[str, Any] = Field(default_factory=dict)
    row_filter: RowFilter | None = None
    empty_revision: str | None = None
    status_mapping: StatusMapping | None = None
    tracking: TrackingConfig | None = None
    accommodation: AccommodationData | None = None
    certificates: DocumentTypeFilter = Field(default_factory=DocumentTypeFilter)
    technical_submittals: DocumentTypeFilter = Field(default_factory=DocumentTypeFilter)
    drawings: DocumentTypeFilter = Field(default_factory=lambda: DocumentTypeFilter(exact=True))


def _cell_text(row: Any, column: str) -> str:
    if hasattr(row, "get"):
        value = row.get(column)
    else:
        value = getattr(row, column, None)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def _stringify_keys(value: Any) -> Any:
    # YAML reads an unquoted phase id such as 18.02 as a float
    if isinstance(value, dict):
        return {str(k): v for k, v in value.items()}
    return value
