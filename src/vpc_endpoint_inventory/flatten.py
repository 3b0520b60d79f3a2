"""
Record flattening and inclusion filtering.

- flatten_endpoint / flatten_vpc turn typed records into flat string rows
  for tabular and HTML reports.
- include decides whether an endpoint passes the type and service allow-lists.
- derive_policy_records extracts resource policy and DNS configuration detail.

Default-value policy for flat rows:
- a missing scalar field renders as "N/A"
- an empty list renders as "N/A"
- an endpoint without tags renders its Tags column as "None"
- list values are joined with "; "
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from .base import (
    LIST_DELIMITER, NOT_AVAILABLE, NO_TAGS,
    EndpointInfo, PolicyRecord, PolicyType, VpcInfo,
)


ENDPOINT_COLUMNS = [
    "EndpointId",
    "EndpointName",
    "ServiceName",
    "VpcId",
    "EndpointType",
    "State",
    "Region",
    "CreatedAt",
    "PrivateDnsEnabled",
    "PolicyPresent",
    "RouteTableIds",
    "SubnetIds",
    "NetworkInterfaceIds",
    "DnsEntryCount",
    "Tags",
]

VPC_COLUMNS = [
    "VpcId",
    "VpcName",
    "CidrBlock",
    "State",
    "IsDefault",
    "Region",
    "EndpointCount",
    "Tags",
]

POLICY_COLUMNS = [
    "EndpointId",
    "VpcId",
    "ServiceName",
    "PolicyType",
    "Summary",
    "CreatedAt",
    "PolicyText",
]


# --- Rendering helpers ------------------------------------------------------

def _text(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def join_list_field(values: Sequence[str]) -> str:
    """Join a list field for a flat row; an empty list renders as "N/A"."""
    if not values:
        return NOT_AVAILABLE
    return LIST_DELIMITER.join(values)


def split_list_field(value: str) -> List[str]:
    """Inverse of join_list_field."""
    if not value or value == NOT_AVAILABLE:
        return []
    return value.split(LIST_DELIMITER)


def format_tags(tags: Dict[str, str]) -> str:
    """Render tags as "key=value" pairs sorted by key; no tags renders as "None"."""
    if not tags:
        return NO_TAGS
    return LIST_DELIMITER.join(f"{key}={tags[key]}" for key in sorted(tags))


# --- Inclusion filter -------------------------------------------------------

def include(endpoint: EndpointInfo,
            type_allow_list: Optional[Sequence[str]] = None,
            service_allow_list: Optional[Sequence[str]] = None) -> bool:
    """
    Return True if the endpoint passes both allow-lists.

    An empty or unset list means no restriction. Matching is exact; the
    endpoint type is compared using the raw provider value, so unrecognised
    types only match an allow-list that names them.
    """
    if type_allow_list and endpoint.vpc_endpoint_type not in type_allow_list:
        return False
    if service_allow_list and endpoint.service_name not in service_allow_list:
        return False
    return True


# --- Flatteners -------------------------------------------------------------

def flatten_endpoint(endpoint: EndpointInfo,
                     type_filter: Optional[Sequence[str]] = None,
                     service_filter: Optional[Sequence[str]] = None) -> Optional[Dict[str, str]]:
    """
    Flatten an endpoint into a row keyed by ENDPOINT_COLUMNS.

    Returns None when the endpoint is rejected by the inclusion filter.
    """
    if not include(endpoint, type_filter, service_filter):
        return None

    return {
        "EndpointId": _text(endpoint.endpoint_id),
        "EndpointName": _text(endpoint.name),
        "ServiceName": _text(endpoint.service_name),
        "VpcId": _text(endpoint.vpc_id),
        "EndpointType": _text(endpoint.vpc_endpoint_type),
        "State": _text(endpoint.state),
        "Region": _text(endpoint.region),
        "CreatedAt": _text(endpoint.creation_timestamp),
        "PrivateDnsEnabled": str(endpoint.private_dns_enabled),
        "PolicyPresent": str(endpoint.policy_present),
        "RouteTableIds": join_list_field(endpoint.route_table_ids),
        "SubnetIds": join_list_field(endpoint.subnet_ids),
        "NetworkInterfaceIds": join_list_field(endpoint.network_interface_ids),
        "DnsEntryCount": str(endpoint.dns_entry_count),
        "Tags": format_tags(endpoint.tags),
    }


def flatten_vpc(vpc: VpcInfo, endpoint_count: int = 0) -> Dict[str, str]:
    """Flatten a VPC into a row keyed by VPC_COLUMNS."""
    return {
        "VpcId": _text(vpc.vpc_id),
        "VpcName": _text(vpc.name),
        "CidrBlock": _text(vpc.cidr_block),
        "State": _text(vpc.state),
        "IsDefault": str(vpc.is_default),
        "Region": _text(vpc.region),
        "EndpointCount": str(endpoint_count),
        "Tags": format_tags(vpc.tags),
    }


def flatten_policy_record(record: PolicyRecord) -> Dict[str, str]:
    """Flatten a policy record into a row keyed by POLICY_COLUMNS."""
    return {
        "EndpointId": _text(record.endpoint_id),
        "VpcId": _text(record.vpc_id),
        "ServiceName": _text(record.service_name),
        "PolicyType": record.policy_type.value,
        "Summary": _text(record.summary),
        "CreatedAt": _text(record.created_at),
        "PolicyText": _text(record.policy_text),
    }


# --- Policy records ---------------------------------------------------------

def _has_wildcard_principal(principal: Any) -> bool:
    if principal == "*":
        return True
    if isinstance(principal, dict):
        aws = principal.get("AWS")
        return aws == "*" or (isinstance(aws, list) and "*" in aws)
    return False


def summarize_policy(policy_text: str) -> str:
    """
    Summarise a resource policy document.

    Reports the statement count, the effects used, and whether any Allow
    statement grants access to a wildcard principal.
    """
    try:
        policy = json.loads(policy_text)
    except (TypeError, ValueError):
        return "Unparseable policy document"
    if not isinstance(policy, dict):
        return "Unparseable policy document"

    statements = policy.get("Statement", [])
    if isinstance(statements, dict):
        statements = [statements]
    elif not isinstance(statements, list):
        statements = []

    effects = []
    wildcard = False
    for stmt in statements:
        if not isinstance(stmt, dict):
            continue
        effect = stmt.get("Effect", "Unknown")
        if effect not in effects:
            effects.append(effect)
        if effect == "Allow" and _has_wildcard_principal(stmt.get("Principal")):
            wildcard = True

    summary = f"{len(statements)} statement(s)"
    if effects:
        summary += f"; effects: {', '.join(effects)}"
    if wildcard:
        summary += "; allows any principal (*)"
    return summary


def derive_policy_records(endpoint: EndpointInfo) -> List[PolicyRecord]:
    """
    Derive policy records from an endpoint.

    One ResourcePolicy record when a non-empty policy document is attached,
    one DnsConfiguration record when private DNS is enabled.
    """
    records = []
    if endpoint.policy_present:
        records.append(PolicyRecord(
            endpoint_id=endpoint.endpoint_id,
            vpc_id=endpoint.vpc_id,
            service_name=endpoint.service_name,
            policy_type=PolicyType.RESOURCE_POLICY,
            policy_text=endpoint.policy_document,
            summary=summarize_policy(endpoint.policy_document),
            created_at=endpoint.creation_timestamp,
        ))
    if endpoint.private_dns_enabled:
        records.append(PolicyRecord(
            endpoint_id=endpoint.endpoint_id,
            vpc_id=endpoint.vpc_id,
            service_name=endpoint.service_name,
            policy_type=PolicyType.DNS_CONFIGURATION,
            policy_text=join_list_field(endpoint.dns_entries),
            summary=f"Private DNS enabled with {endpoint.dns_entry_count} DNS entries",
            created_at=endpoint.creation_timestamp,
        ))
    return records
