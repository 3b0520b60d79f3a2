"""
Error taxonomy for VPC Endpoint Inventory.

ConnectivityError and FatalError abort the run. RegionScanError and
WriteError are recovered by the scanner and the writer loop respectively.
"""

from typing import Optional


class InventoryError(Exception):
    """Base class for inventory errors."""


class ConnectivityError(InventoryError):
    """The provider cannot be reached or the credentials are invalid."""


class RegionScanError(InventoryError):
    """A listing call failed inside a single region."""

    def __init__(self, region: str, message: str):
        super().__init__(f"{region}: {message}")
        self.region = region


class WriteError(InventoryError):
    """A report writer could not produce its file."""

    def __init__(self, path: str, message: str, kind: Optional[str] = None):
        super().__init__(f"Failed to write {path}: {message}")
        self.path = path
        self.kind = kind


class FatalError(InventoryError):
    """Any other unhandled error during orchestration."""
