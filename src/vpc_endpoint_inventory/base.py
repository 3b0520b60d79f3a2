#!/usr/bin/env python3
"""
Base Module for VPC Endpoint Inventory

Provides the constants, enumerations and data models shared by the client,
the scanner and the report writers.

Provider records are decoded into these types once, at the client boundary.
Absent values are kept as None or empty containers here; report sentinels
such as "N/A" are only produced by the flattener.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any
from datetime import datetime
from enum import Enum


# =============================================================================
# Constants
# =============================================================================

VERSION = "1.0.0"

# Home region used for STS and describe_regions calls
DEFAULT_HOME_REGION = "us-east-1"

DEFAULT_OUTPUT_DIR = "./vpc_endpoint_reports"

# Government and isolated partitions are never scanned
EXCLUDED_REGION_PREFIXES = ("us-gov-", "us-iso")

# Single delimiter for every list-valued report column
LIST_DELIMITER = "; "

# Report sentinels
NOT_AVAILABLE = "N/A"
NO_TAGS = "None"

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

# Report kinds, used as file name prefixes
ENDPOINTS_REPORT = "vpc_endpoints"
POLICIES_REPORT = "endpoint_policies"
SUMMARY_REPORT = "scan_summary"
VPCS_REPORT = "vpcs"


# Exit codes
class ExitCode(Enum):
    """Process exit codes."""
    SUCCESS = 0
    ERROR = 1          # Connectivity failure or unhandled error
    INTERRUPTED = 130  # Ctrl+C (128 + SIGINT)


class EndpointType(Enum):
    """Known VPC endpoint types."""
    GATEWAY = "Gateway"
    INTERFACE = "Interface"
    UNKNOWN = "Unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "EndpointType":
        for member in cls:
            if member is not cls.UNKNOWN and member.value == value:
                return member
        return cls.UNKNOWN


class PolicyType(Enum):
    """Kinds of policy records derived from an endpoint."""
    RESOURCE_POLICY = "ResourcePolicy"
    DNS_CONFIGURATION = "DnsConfiguration"
    UNKNOWN = "Unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "PolicyType":
        for member in cls:
            if member is not cls.UNKNOWN and member.value == value:
                return member
        return cls.UNKNOWN


class OutputFormat(Enum):
    """Supported report formats."""
    CSV = "csv"
    JSON = "json"
    HTML = "html"

    @classmethod
    def parse(cls, values: List[str]) -> List["OutputFormat"]:
        """
        Parse format names, expanding "all" to every format.

        Raises:
            ValueError: for an unrecognised format name
        """
        formats: List[OutputFormat] = []
        for value in values:
            value = value.strip().lower()
            if not value:
                continue
            if value == "all":
                candidates = list(cls)
            else:
                candidates = [cls(value)]
            for fmt in candidates:
                if fmt not in formats:
                    formats.append(fmt)
        return formats


DEFAULT_ENDPOINT_TYPES = [EndpointType.GATEWAY.value, EndpointType.INTERFACE.value]


# =============================================================================
# Data Models
# =============================================================================

@dataclass
class VpcInfo:
    """A VPC as returned by describe_vpcs."""
    vpc_id: str
    region: str
    name: Optional[str] = None
    cidr_block: Optional[str] = None
    state: Optional[str] = None
    is_default: bool = False
    tags: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EndpointInfo:
    """Snapshot of a single VPC endpoint at fetch time."""
    endpoint_id: str
    service_name: str
    vpc_id: str
    region: str
    vpc_endpoint_type: Optional[str] = None  # raw provider value
    name: Optional[str] = None
    vpc_name: Optional[str] = None
    state: Optional[str] = None
    creation_timestamp: Optional[datetime] = None
    private_dns_enabled: bool = False
    policy_document: Optional[str] = None
    route_table_ids: List[str] = field(default_factory=list)
    subnet_ids: List[str] = field(default_factory=list)
    network_interface_ids: List[str] = field(default_factory=list)
    security_group_ids: List[str] = field(default_factory=list)
    dns_entries: List[str] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def endpoint_type(self) -> EndpointType:
        return EndpointType.from_value(self.vpc_endpoint_type)

    @property
    def policy_present(self) -> bool:
        return bool(self.policy_document and self.policy_document.strip())

    @property
    def dns_entry_count(self) -> int:
        return len(self.dns_entries)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["creation_timestamp"] = (
            self.creation_timestamp.isoformat() if self.creation_timestamp else None
        )
        result["policy_present"] = self.policy_present
        result["dns_entry_count"] = self.dns_entry_count
        return result


@dataclass
class PolicyRecord:
    """Policy or DNS configuration detail derived from an endpoint."""
    endpoint_id: str
    vpc_id: str
    service_name: str
    policy_type: PolicyType
    policy_text: str
    summary: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint_id": self.endpoint_id,
            "vpc_id": self.vpc_id,
            "service_name": self.service_name,
            "policy_type": self.policy_type.value,
            "policy_text": self.policy_text,
            "summary": self.summary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ScanConfig:
    """Run parameters for a scan and its reports."""
    output_dir: str = DEFAULT_OUTPUT_DIR
    formats: List[OutputFormat] = field(default_factory=lambda: list(OutputFormat))
    regions: List[str] = field(default_factory=list)
    vpc_ids: List[str] = field(default_factory=list)
    endpoint_types: List[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINT_TYPES))
    service_names: List[str] = field(default_factory=list)
    include_default_vpcs: bool = True
    include_policy_details: bool = True
    include_summary: bool = True
    quiet: bool = False

    def parameters(self) -> Dict[str, Any]:
        """Run parameters as recorded in the scan summary."""
        return {
            "regions": list(self.regions) or "all",
            "vpc_ids": list(self.vpc_ids) or "all",
            "endpoint_types": list(self.endpoint_types) or "all",
            "service_names": list(self.service_names) or "all",
            "include_default_vpcs": self.include_default_vpcs,
            "include_policy_details": self.include_policy_details,
            "output_formats": [f.value for f in self.formats],
        }


@dataclass
class ScanSummary:
    """Aggregate counters and run parameters, computed once per run."""
    total_regions: int
    total_vpcs: int  # VPCs with at least one endpoint
    total_endpoints: int
    total_policy_records: int = 0
    failed_regions: List[str] = field(default_factory=list)
    account_id: Optional[str] = None
    started_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["started_at"] = self.started_at.isoformat() if self.started_at else None
        return result


@dataclass
class ScanContext:
    """
    Single-owner run state for one scan.

    Created by the scanner, mutated only by it while the scan runs, and
    handed to the report writers once the scan is complete.
    """
    account_id: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    regions_scanned: int = 0
    vpcs_with_endpoints: int = 0
    endpoints: List[EndpointInfo] = field(default_factory=list)
    vpcs: Dict[str, VpcInfo] = field(default_factory=dict)
    policy_records: List[PolicyRecord] = field(default_factory=list)
    failed_regions: List[str] = field(default_factory=list)
    summary: Optional[ScanSummary] = None

    @property
    def total_endpoints(self) -> int:
        return len(self.endpoints)

    def endpoints_by_vpc(self) -> Dict[str, List[EndpointInfo]]:
        """Group endpoints by VPC id, preserving scan order."""
        grouped: Dict[str, List[EndpointInfo]] = {}
        for endpoint in self.endpoints:
            grouped.setdefault(endpoint.vpc_id, []).append(endpoint)
        return grouped
