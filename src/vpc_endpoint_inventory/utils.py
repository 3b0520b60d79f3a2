#!/usr/bin/env python3
"""
Utilities Module for VPC Endpoint Inventory

Provides common helpers used across the package:
- Logging setup
- Progress indicator
- Tag helpers
- Timestamp and duration formatting
"""

import sys
import time
import logging
from typing import List, Dict, Optional
from datetime import datetime

from .base import TIMESTAMP_FORMAT


# =============================================================================
# Logging
# =============================================================================

logger = logging.getLogger('vpc_endpoint_inventory')


def setup_logging(verbose: bool = False, log_file: Optional[str] = None, name: str = 'vpc_endpoint_inventory'):
    """
    Configure logging based on verbosity level.

    Args:
        verbose: Enable debug-level logging
        log_file: Optional file path for logging
        name: Logger name
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log = logging.getLogger(name)
    log.setLevel(level)

    # Remove existing handlers
    log.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)
        log.info(f"Logging to file: {log_file}")

    return log


# =============================================================================
# Progress Indicators
# =============================================================================

class ProgressIndicator:
    """
    Progress indicator with visual progress bar.

    Features:
    - Visual progress bar with percentage
    - Elapsed time tracking
    - Per-item status tracking
    """

    def __init__(self, total: int, description: str = "Progress", quiet: bool = False):
        """
        Initialize progress indicator.

        Args:
            total: Total number of items
            description: Description prefix
            quiet: Suppress output
        """
        self.total = total
        self.description = description
        self.quiet = quiet
        self.completed = 0
        self.start_time = time.time()
        self.item_status: Dict[str, str] = {}

    def update(self, item: str, status: str = "done"):
        """
        Update progress after completing an item.

        Args:
            item: Item identifier (e.g., region name)
            status: Status string (e.g., "done", "error")
        """
        self.completed += 1
        self.item_status[item] = status
        if not self.quiet:
            self._print_progress(item)

    def _print_progress(self, item: str):
        """Print progress bar to stderr."""
        pct = (self.completed / self.total) * 100 if self.total > 0 else 0
        elapsed = time.time() - self.start_time

        bar_len = 30
        filled = int(bar_len * self.completed / self.total) if self.total > 0 else 0
        bar = '█' * filled + '░' * (bar_len - filled)

        sys.stderr.write(f"\r  [{bar}] {self.completed}/{self.total} ({pct:.0f}%) - {item} ({elapsed:.1f}s)")
        sys.stderr.flush()

        if self.completed == self.total:
            sys.stderr.write("\n")

    def finish(self):
        """Finalize progress indicator."""
        elapsed = time.time() - self.start_time
        if not self.quiet:
            sys.stderr.write(f"\r{' ' * 80}\r")  # Clear line
            print(f"  ✓ {self.description}: {self.completed}/{self.total} in {elapsed:.1f}s", file=sys.stderr)

    def get_elapsed(self) -> float:
        """Get elapsed time in seconds."""
        return time.time() - self.start_time


# =============================================================================
# Tag Utilities
# =============================================================================

def tags_to_dict(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Convert an AWS tag list ([{"Key": k, "Value": v}]) to a dict."""
    result = {}
    for tag in tags or []:
        key = tag.get('Key')
        if key is not None:
            result[key] = tag.get('Value', '')
    return result


def extract_name_from_tags(tags: Optional[List[Dict[str, str]]], name_key: str = "Name") -> Optional[str]:
    """Extract the Name tag value; the key match is exact and case-sensitive."""
    for tag in tags or []:
        if tag.get('Key') == name_key:
            return tag.get('Value', '')
    return None


# =============================================================================
# Formatting Utilities
# =============================================================================

def report_timestamp(dt: Optional[datetime] = None) -> str:
    """Format a datetime for report file names (YYYYMMDD-HHMMSS)."""
    if dt is None:
        dt = datetime.now()
    return dt.strftime(TIMESTAMP_FORMAT)


def format_timestamp(dt: Optional[datetime] = None) -> str:
    """Format datetime to ISO 8601 string."""
    if dt is None:
        dt = datetime.now()
    return dt.isoformat()


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds/60:.1f}m"
    else:
        return f"{seconds/3600:.1f}h"


def parse_csv_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated CLI value into a list of non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]
