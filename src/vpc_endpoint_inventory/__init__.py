"""
AWS VPC Endpoint Inventory

Enumerates VPC endpoints across every region and VPC of an AWS account and
writes flat reports.

Features:
- Region discovery with GovCloud exclusion
- VPC, endpoint type and service name filters
- Resource policy and private DNS detail records
- Multiple export formats (CSV, JSON, HTML)

Example:
    >>> import boto3
    >>> from vpc_endpoint_inventory import EndpointClient, EndpointScanner, ScanConfig, export_reports
    >>> config = ScanConfig(regions=["us-east-1"])
    >>> context = EndpointScanner(EndpointClient(boto3.Session()), config).run()
    >>> export_reports(context, config)
"""

# Import version from base module for single source of truth
from vpc_endpoint_inventory.base import VERSION

__version__ = VERSION

from vpc_endpoint_inventory.base import (
    ExitCode,
    EndpointType,
    PolicyType,
    OutputFormat,
    VpcInfo,
    EndpointInfo,
    PolicyRecord,
    ScanConfig,
    ScanSummary,
    ScanContext,
)
from vpc_endpoint_inventory.exceptions import (
    InventoryError,
    ConnectivityError,
    RegionScanError,
    WriteError,
    FatalError,
)
from vpc_endpoint_inventory.client import EndpointClient
from vpc_endpoint_inventory.flatten import (
    include,
    flatten_endpoint,
    flatten_vpc,
    derive_policy_records,
    join_list_field,
    split_list_field,
)
from vpc_endpoint_inventory.scanner import EndpointScanner
from vpc_endpoint_inventory.utils import setup_logging, logger
from vpc_endpoint_inventory.exporters import (
    CSVExporter,
    JSONExporter,
    HTMLExporter,
    get_exporters,
    export_reports,
)
from vpc_endpoint_inventory.html_report import generate_html_report

__all__ = [
    # Version
    "__version__",

    # Enums
    "ExitCode",
    "EndpointType",
    "PolicyType",
    "OutputFormat",

    # Data models
    "VpcInfo",
    "EndpointInfo",
    "PolicyRecord",
    "ScanConfig",
    "ScanSummary",
    "ScanContext",

    # Errors
    "InventoryError",
    "ConnectivityError",
    "RegionScanError",
    "WriteError",
    "FatalError",

    # Pipeline
    "EndpointClient",
    "EndpointScanner",
    "include",
    "flatten_endpoint",
    "flatten_vpc",
    "derive_policy_records",
    "join_list_field",
    "split_list_field",

    # Utilities
    "setup_logging",
    "logger",

    # Exporters
    "CSVExporter",
    "JSONExporter",
    "HTMLExporter",
    "get_exporters",
    "export_reports",
    "generate_html_report",
]
