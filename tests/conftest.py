"""Pytest configuration and fixtures for DocTrack tests.

Provides small register snapshots and project configurations.
"""

from __future__ import annotations

import pandas as pd
import pytest

from doctrack.models import AccommodationData, ProjectConfig, StatusMapping, TrackingConfig

BLOCK_B = r"P:\GP\18.02\Certificates\Block - B\Elect Certs"
BLOCK_A = r"P:\GP\18.02\Certificates\Block - A\Fire"
LANDLORDS = r"P:\GP\18.02\Certificates\Landlords"


@pytest.fixture
def status_mapping() -> StatusMapping:
    """Greenwich-style status vocabulary without an Other bucket."""
    return StatusMapping.model_validate(
        {
            "categories": {
                "Status A": {"display_name": "Status A", "color": "25E82C", "statuses": ["A - Proceed"]},
                "Status B": {"display_name": "Status B", "color": "EDDDA1", "statuses": ["B - Comments"]},
                "Status C": {"display_name": "Status C", "color": "ED1111", "statuses": ["C-Rejected"]},
            },
            "display_order": ["Status A", "Status B", "Status C"],
        }
    )


@pytest.fixture
def tracking_config() -> TrackingConfig:
    """Tracking config with two categories and phase/block detection."""
    return TrackingConfig.model_validate(
        {
            "phases": {
                "18.02": {"display_name": "Phase 18.02", "blocks": ["A", "B"], "apartment_count": 10},
            },
            "phase_detection": {"patterns": [r"18\.02", r"18\.03"]},
            "block_detection": {"patterns": [r"\bBlock\s*-\s*([A-G])\b"]},
            "apartment_certificates": {
                "electrical": {"patterns": ["Electrical Cert"], "max_count": 10, "display_name": "Electrical"},
                "fire_alarm": {"patterns": ["FA Cert"], "max_count": 10, "display_name": "Fire Alarm"},
            },
        }
    )


@pytest.fixture
def inventory() -> AccommodationData:
    """Ten apartments in phase 18.02: block A 1-6, block B 7-10."""
    return AccommodationData.model_validate(
        {
            "total_apartments": 10,
            "phases": {
                "18.02": {
                    "apartment_count": 10,
                    "apartments": list(range(1, 11)),
                    "blocks": {
                        "A": {"apartment_count": 6, "apartments": [1, 2, 3, 4, 5, 6]},
                        "B": {"apartment_count": 4, "apartments": [7, 8, 9, 10]},
                    },
                }
            },
        }
    )


@pytest.fixture
def certificate_rows() -> pd.DataFrame:
    """Certificate register snapshot in canonical columns."""
    return pd.DataFrame(
        [
            {"Doc Title": "Plot 7 Electrical Cert", "Doc Ref": "GP-CE-001", "Doc Path": BLOCK_B, "Rev": "C01", "Status": "A - Proceed"},
            {"Doc Title": "Plot 7 Electrical Cert rev", "Doc Ref": "GP-CE-002", "Doc Path": BLOCK_B, "Rev": "C02", "Status": "A - Proceed"},
            {"Doc Title": "Plot 8 Electrical Cert", "Doc Ref": "GP-CE-003", "Doc Path": BLOCK_B, "Rev": "С01", "Status": "C-Rejected"},
            {"Doc Title": "FA CERT PLOT 2", "Doc Ref": "GP-CE-004", "Doc Path": BLOCK_A, "Rev": "P01", "Status": "B - Comments"},
            {"Doc Title": "Landlord Fire Cert", "Doc Ref": "GP-CE-005", "Doc Path": LANDLORDS, "Rev": "P01", "Status": "A - Proceed"},
            {"Doc Title": "Misnamed certificate", "Doc Ref": "GP-CE-006", "Doc Path": BLOCK_A, "Rev": "P01", "Status": "Withdrawn"},
        ]
    )


@pytest.fixture
def project_config(status_mapping: StatusMapping, tracking_config: TrackingConfig, inventory: AccommodationData) -> ProjectConfig:
    """Complete project configuration built from the fixtures above."""
    return ProjectConfig(
        title="Test Project",
        status_mapping=status_mapping,
        tracking=tracking_config,
        accommodation=inventory,
        certificates={"enabled": True, "file_types": ["CE - Certificate (CE)"], "doc_ref_patterns": ["CE"]},
        technical_submittals={"enabled": True, "file_types": ["TS - Technical submission (TS)"]},
        drawings={"enabled": True, "exact": True, "file_types": ["DR - Drawing (DR)"]},
    )
