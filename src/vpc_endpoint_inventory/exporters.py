#!/usr/bin/env python3
"""
Exporters Module for VPC Endpoint Inventory

Provides export functionality for different output formats:
- CSV export (endpoints, VPCs, policy records, scan summary)
- JSON export
- HTML report generation

All exporters follow a common interface; export_reports runs every selected
exporter once and isolates failures so one broken writer does not stop the
others.
"""

import csv
import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional

from .base import (
    VERSION, ENDPOINTS_REPORT, POLICIES_REPORT, SUMMARY_REPORT, VPCS_REPORT,
    OutputFormat, ScanConfig, ScanContext,
)
from .exceptions import WriteError
from .flatten import (
    ENDPOINT_COLUMNS, POLICY_COLUMNS, VPC_COLUMNS,
    flatten_endpoint, flatten_policy_record, flatten_vpc,
)
from .utils import format_timestamp, logger, report_timestamp


class BaseExporter(ABC):
    """Abstract base class for all exporters."""

    kind = ENDPOINTS_REPORT

    def export(self, context: ScanContext, output_path: str) -> None:
        """
        Export the scan to the specified path.

        Parent directories are created and an existing file is overwritten.

        Raises:
            WriteError: if the file cannot be written or serialized
        """
        try:
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            self._write(context, output_path)
        except WriteError:
            raise
        except (OSError, TypeError, ValueError) as e:
            raise WriteError(output_path, str(e), kind=self.kind) from e

    @abstractmethod
    def _write(self, context: ScanContext, output_path: str) -> None:
        """Write the file."""
        pass

    @abstractmethod
    def get_extension(self) -> str:
        """Get the file extension for this format."""
        pass


class CSVExporter(BaseExporter):
    """Export one row per endpoint in fixed column order."""

    def _write(self, context: ScanContext, output_path: str) -> None:
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=ENDPOINT_COLUMNS)
            writer.writeheader()
            for endpoint in context.endpoints:
                writer.writerow(flatten_endpoint(endpoint))

    def get_extension(self) -> str:
        return ".csv"


class VpcCSVExporter(CSVExporter):
    """Export one row per scanned VPC with its endpoint count."""

    kind = VPCS_REPORT

    def _write(self, context: ScanContext, output_path: str) -> None:
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=VPC_COLUMNS)
            writer.writeheader()
            writer.writerows(vpc_rows(context))


class PolicyCSVExporter(CSVExporter):
    """Export policy and DNS configuration records."""

    kind = POLICIES_REPORT

    def _write(self, context: ScanContext, output_path: str) -> None:
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=POLICY_COLUMNS)
            writer.writeheader()
            for record in context.policy_records:
                writer.writerow(flatten_policy_record(record))


class SummaryCSVExporter(CSVExporter):
    """Export the scan summary as metric/value rows."""

    kind = SUMMARY_REPORT

    def _write(self, context: ScanContext, output_path: str) -> None:
        summary = context.summary
        if summary is None:
            raise WriteError(output_path, "scan summary not available", kind=self.kind)

        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(["metric", "value"])
            writer.writerow(["account_id", summary.account_id or ""])
            writer.writerow(["scan_started", format_timestamp(summary.started_at)])
            writer.writerow(["duration_seconds", f"{summary.duration_seconds:.1f}"])
            writer.writerow(["total_regions", summary.total_regions])
            writer.writerow(["total_vpcs_with_endpoints", summary.total_vpcs])
            writer.writerow(["total_endpoints", summary.total_endpoints])
            writer.writerow(["total_policy_records", summary.total_policy_records])
            writer.writerow(["failed_regions", "; ".join(summary.failed_regions)])
            for key, value in summary.parameters.items():
                if isinstance(value, list):
                    value = "; ".join(value)
                writer.writerow([f"param_{key}", value])


class JSONExporter(BaseExporter):
    """Export the full scan to JSON, grouped by region and VPC."""

    def __init__(self, indent: int = 2, sort_keys: bool = False):
        """
        Initialize JSON exporter.

        Args:
            indent: Indentation level for pretty-printing
            sort_keys: Whether to sort keys alphabetically
        """
        self.indent = indent
        self.sort_keys = sort_keys

    def _write(self, context: ScanContext, output_path: str) -> None:
        data = build_report_data(context)
        # Serialize first so a failure does not leave a truncated file behind
        text = self.to_string(data)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(text)

    def get_extension(self) -> str:
        return ".json"

    def to_string(self, data: Dict[str, Any]) -> str:
        """Convert data to JSON string."""
        return json.dumps(data, indent=self.indent, sort_keys=self.sort_keys, default=str)


class HTMLExporter(BaseExporter):
    """Export a styled HTML report."""

    def __init__(self, include_policies: bool = True):
        self.include_policies = include_policies

    def _write(self, context: ScanContext, output_path: str) -> None:
        from .html_report import generate_html_report
        generate_html_report(context, output_path, include_policies=self.include_policies)

    def get_extension(self) -> str:
        return ".html"


def build_report_data(context: ScanContext) -> Dict[str, Any]:
    """
    Build the structured report: summary, regions → VPCs → endpoints, policies.
    """
    by_vpc = context.endpoints_by_vpc()
    regions: Dict[str, Any] = {}

    for vpc_id, vpc in context.vpcs.items():
        endpoints = by_vpc.get(vpc_id, [])
        region_data = regions.setdefault(vpc.region, {"vpcs": {}})
        vpc_data = vpc.to_dict()
        vpc_data["endpoint_count"] = len(endpoints)
        vpc_data["endpoints"] = [e.to_dict() for e in endpoints]
        region_data["vpcs"][vpc_id] = vpc_data

    # Endpoints whose VPC was not recorded still appear in the report
    for vpc_id, endpoints in by_vpc.items():
        if vpc_id in context.vpcs:
            continue
        region = endpoints[0].region
        region_data = regions.setdefault(region, {"vpcs": {}})
        region_data["vpcs"][vpc_id] = {
            "vpc_id": vpc_id,
            "region": region,
            "endpoint_count": len(endpoints),
            "endpoints": [e.to_dict() for e in endpoints],
        }

    return {
        "version": VERSION,
        "generated_at": datetime.now().isoformat(),
        "summary": context.summary.to_dict() if context.summary else None,
        "regions": regions,
        "policies": [r.to_dict() for r in context.policy_records],
    }


def vpc_rows(context: ScanContext) -> List[Dict[str, str]]:
    """Flat VPC rows with endpoint counts, in scan order."""
    by_vpc = context.endpoints_by_vpc()
    return [flatten_vpc(vpc, len(by_vpc.get(vpc_id, []))) for vpc_id, vpc in context.vpcs.items()]


def report_path(output_dir: str, kind: str, extension: str, timestamp: str) -> str:
    """Build <output_dir>/<kind>_<timestamp><extension>."""
    return str(Path(output_dir) / f"{kind}_{timestamp}{extension}")


def get_exporters(config: ScanConfig) -> List[BaseExporter]:
    """
    Factory function returning the exporters selected by the configuration.
    """
    exporters: List[BaseExporter] = []
    for fmt in config.formats:
        if fmt is OutputFormat.CSV:
            exporters.append(CSVExporter())
            exporters.append(VpcCSVExporter())
            if config.include_policy_details:
                exporters.append(PolicyCSVExporter())
            if config.include_summary:
                exporters.append(SummaryCSVExporter())
        elif fmt is OutputFormat.JSON:
            exporters.append(JSONExporter())
        elif fmt is OutputFormat.HTML:
            exporters.append(HTMLExporter(include_policies=config.include_policy_details))
    return exporters


def export_reports(
    context: ScanContext,
    config: ScanConfig,
    timestamp: Optional[str] = None
) -> Dict[str, str]:
    """
    Write every selected report.

    Args:
        context: Completed scan
        config: Run parameters (output directory and formats)
        timestamp: File name timestamp (defaults to now)

    Returns:
        Mapping of "<kind><extension>" to the path written, for the
        reports that succeeded
    """
    timestamp = timestamp or report_timestamp()
    written: Dict[str, str] = {}

    for exporter in get_exporters(config):
        path = report_path(config.output_dir, exporter.kind, exporter.get_extension(), timestamp)
        try:
            exporter.export(context, path)
        except WriteError as e:
            logger.error(str(e))
            continue
        written[f"{exporter.kind}{exporter.get_extension()}"] = path
        logger.info(f"Report saved: {path}")

    return written
