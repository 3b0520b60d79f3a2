"""
AWS Resource Client

Read-only access to the EC2 and STS control-plane calls the inventory needs:
regions, VPCs and VPC endpoints. Provider records are decoded into the typed
models from base.py here and nowhere else.

Example:
    >>> session = boto3.Session(profile_name="my-profile")
    >>> client = EndpointClient(session)
    >>> client.check_connectivity()
    >>> for region in client.list_regions():
    ...     print(region, len(client.list_endpoints(region)))
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, ProfileNotFound

from .base import DEFAULT_HOME_REGION, EXCLUDED_REGION_PREFIXES, EndpointInfo, VpcInfo
from .exceptions import ConnectivityError, RegionScanError
from .utils import extract_name_from_tags, logger, tags_to_dict


def is_excluded_region(region: str) -> bool:
    """True for government-cloud and isolated partition regions."""
    return region.startswith(EXCLUDED_REGION_PREFIXES)


def decode_vpc(raw: Dict[str, Any], region: str) -> VpcInfo:
    """Decode a describe_vpcs record."""
    tags = raw.get('Tags', [])
    return VpcInfo(
        vpc_id=raw['VpcId'],
        region=region,
        name=extract_name_from_tags(tags),
        cidr_block=raw.get('CidrBlock'),
        state=raw.get('State'),
        is_default=bool(raw.get('IsDefault', False)),
        tags=tags_to_dict(tags),
    )


def decode_endpoint(raw: Dict[str, Any], region: str, vpc_name: Optional[str] = None) -> EndpointInfo:
    """Decode a describe_vpc_endpoints record."""
    tags = raw.get('Tags', [])
    created = raw.get('CreationTimestamp')
    if isinstance(created, str):
        try:
            created = datetime.fromisoformat(created.replace('Z', '+00:00'))
        except ValueError:
            logger.debug(f"Unparseable CreationTimestamp {created!r} on {raw.get('VpcEndpointId')}")
            created = None

    return EndpointInfo(
        endpoint_id=raw['VpcEndpointId'],
        service_name=raw.get('ServiceName', ''),
        vpc_id=raw.get('VpcId', ''),
        region=region,
        vpc_endpoint_type=raw.get('VpcEndpointType'),
        name=extract_name_from_tags(tags),
        vpc_name=vpc_name,
        state=raw.get('State'),
        creation_timestamp=created,
        private_dns_enabled=bool(raw.get('PrivateDnsEnabled', False)),
        policy_document=raw.get('PolicyDocument'),
        route_table_ids=list(raw.get('RouteTableIds', [])),
        subnet_ids=list(raw.get('SubnetIds', [])),
        network_interface_ids=list(raw.get('NetworkInterfaceIds', [])),
        security_group_ids=[g['GroupId'] for g in raw.get('Groups', []) if g.get('GroupId')],
        dns_entries=[d['DnsName'] for d in raw.get('DnsEntries', []) if d.get('DnsName')],
        tags=tags_to_dict(tags),
    )


class EndpointClient:
    """
    Lists regions, VPCs and VPC endpoints for one AWS account.

    Attributes:
        session: Boto3 session with credentials
        home_region: Region used for STS and describe_regions
    """

    def __init__(self, session: boto3.Session, home_region: str = DEFAULT_HOME_REGION):
        self.session = session
        self.home_region = home_region
        self._clients: Dict[str, Any] = {}

    def _ec2(self, region: str):
        if region not in self._clients:
            self._clients[region] = self.session.client('ec2', region_name=region)
        return self._clients[region]

    def check_connectivity(self) -> str:
        """
        Verify credentials with a lightweight identity call.

        Returns:
            The AWS account id

        Raises:
            ConnectivityError: if the provider cannot be reached or rejects the credentials
        """
        try:
            sts = self.session.client('sts', region_name=self.home_region)
            identity = sts.get_caller_identity()
        except NoCredentialsError:
            raise ConnectivityError(
                "No AWS credentials found. Configure credentials via AWS CLI, environment variables, or IAM role."
            )
        except ProfileNotFound as e:
            raise ConnectivityError(f"AWS profile not found: {e}")
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code == 'ExpiredToken':
                raise ConnectivityError("AWS session token has expired. Please refresh your credentials.")
            elif error_code == 'InvalidClientTokenId':
                raise ConnectivityError("Invalid AWS access key. Please check your credentials.")
            raise ConnectivityError(f"AWS authentication failed: {e}")
        except BotoCoreError as e:
            raise ConnectivityError(f"Failed to reach AWS: {e}")

        logger.debug(f"Authenticated as: {identity.get('Arn')}")
        return identity['Account']

    def list_regions(self) -> List[str]:
        """
        List enabled regions, excluding government-cloud partitions.

        Raises:
            ConnectivityError: if the region list cannot be fetched
        """
        try:
            response = self._ec2(self.home_region).describe_regions(AllRegions=False)
        except (ClientError, BotoCoreError) as e:
            raise ConnectivityError(f"Failed to list regions: {e}")

        regions = sorted(r['RegionName'] for r in response.get('Regions', []))
        excluded = [r for r in regions if is_excluded_region(r)]
        if excluded:
            logger.debug(f"Excluding regions: {', '.join(excluded)}")
        return [r for r in regions if not is_excluded_region(r)]

    def list_vpcs(self, region: str, vpc_ids: Optional[List[str]] = None) -> List[VpcInfo]:
        """
        List VPCs in a region, optionally restricted to the given ids.

        Raises:
            RegionScanError: if the describe call fails
        """
        # A vpc-id filter, unlike VpcIds, does not fail for ids that live in other regions
        kwargs: Dict[str, Any] = {}
        if vpc_ids:
            kwargs['Filters'] = [{'Name': 'vpc-id', 'Values': list(vpc_ids)}]
        try:
            vpcs = self._ec2(region).describe_vpcs(**kwargs).get('Vpcs', [])
        except (ClientError, BotoCoreError) as e:
            raise RegionScanError(region, f"describe_vpcs failed: {e}")
        return [decode_vpc(vpc, region) for vpc in vpcs]

    def list_endpoints(self, region: str, vpc_id: Optional[str] = None,
                       endpoint_types: Optional[List[str]] = None,
                       vpc_name: Optional[str] = None) -> List[EndpointInfo]:
        """
        List VPC endpoints in a region.

        Args:
            region: AWS region code
            vpc_id: Only endpoints in this VPC
            endpoint_types: Only endpoints of these types (provider-side filter)
            vpc_name: Name of the owning VPC, recorded on each endpoint

        Raises:
            RegionScanError: if the describe call fails
        """
        filters = []
        if vpc_id:
            filters.append({'Name': 'vpc-id', 'Values': [vpc_id]})
        if endpoint_types:
            filters.append({'Name': 'vpc-endpoint-type', 'Values': list(endpoint_types)})

        kwargs: Dict[str, Any] = {'Filters': filters} if filters else {}
        try:
            endpoints = self._ec2(region).describe_vpc_endpoints(**kwargs).get('VpcEndpoints', [])
        except (ClientError, BotoCoreError) as e:
            raise RegionScanError(region, f"describe_vpc_endpoints failed: {e}")
        return [decode_endpoint(raw, region, vpc_name) for raw in endpoints]
