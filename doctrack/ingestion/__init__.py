"""Register ingestion for DocTrack.

Handles importing CSV/XLSX document register exports.
"""

from doctrack.ingestion.registers import (
    RegisterFormatError,
    discover_registers,
    load_register,
    snapshot_timestamp,
    sort_snapshots,
)

__all__ = ["load_register", "discover_registers", "snapshot_timestamp", "RegisterFormatError", "sort_snapshots"]
