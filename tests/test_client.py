"""
Tests for the AWS resource client
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from vpc_endpoint_inventory.client import (
    EndpointClient,
    decode_endpoint,
    decode_vpc,
    is_excluded_region,
)
from vpc_endpoint_inventory.exceptions import ConnectivityError, RegionScanError


RAW_INTERFACE_ENDPOINT = {
    "VpcEndpointId": "vpce-0aaa",
    "VpcEndpointType": "Interface",
    "VpcId": "vpc-123",
    "ServiceName": "com.amazonaws.us-east-1.ssm",
    "State": "available",
    "PolicyDocument": '{"Statement": [{"Effect": "Allow", "Principal": "*", "Action": "*"}]}',
    "RouteTableIds": [],
    "SubnetIds": ["subnet-a", "subnet-b"],
    "Groups": [{"GroupId": "sg-1", "GroupName": "default"}],
    "PrivateDnsEnabled": True,
    "NetworkInterfaceIds": ["eni-1", "eni-2"],
    "DnsEntries": [
        {"DnsName": "vpce-0aaa.ssm.us-east-1.vpce.amazonaws.com", "HostedZoneId": "Z1"},
        {"DnsName": "ssm.us-east-1.amazonaws.com", "HostedZoneId": "Z2"},
    ],
    "CreationTimestamp": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    "Tags": [{"Key": "Name", "Value": "ssm-endpoint"}, {"Key": "team", "Value": "net"}],
}


def client_error(code: str, operation: str = "DescribeVpcs") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def make_client():
    session = Mock()
    ec2 = Mock()
    sts = Mock()
    session.client.side_effect = lambda service, **kwargs: sts if service == "sts" else ec2
    return EndpointClient(session), ec2, sts


class TestDecoding:
    """Test decoding of provider records into typed models."""

    def test_decode_full_endpoint(self):
        endpoint = decode_endpoint(RAW_INTERFACE_ENDPOINT, "us-east-1")
        assert endpoint.endpoint_id == "vpce-0aaa"
        assert endpoint.name == "ssm-endpoint"
        assert endpoint.vpc_endpoint_type == "Interface"
        assert endpoint.subnet_ids == ["subnet-a", "subnet-b"]
        assert endpoint.network_interface_ids == ["eni-1", "eni-2"]
        assert endpoint.security_group_ids == ["sg-1"]
        assert endpoint.dns_entry_count == 2
        assert endpoint.private_dns_enabled is True
        assert endpoint.policy_present is True
        assert endpoint.tags == {"Name": "ssm-endpoint", "team": "net"}
        assert endpoint.creation_timestamp.year == 2024

    def test_decode_minimal_endpoint(self):
        endpoint = decode_endpoint({"VpcEndpointId": "vpce-min"}, "eu-west-1")
        assert endpoint.name is None
        assert endpoint.tags == {}
        assert endpoint.route_table_ids == []
        assert endpoint.creation_timestamp is None
        assert endpoint.policy_present is False

    def test_decode_string_timestamp(self):
        raw = {"VpcEndpointId": "vpce-1", "CreationTimestamp": "2023-07-01T10:00:00Z"}
        endpoint = decode_endpoint(raw, "us-east-1")
        assert endpoint.creation_timestamp == datetime(2023, 7, 1, 10, 0, tzinfo=timezone.utc)

    def test_name_tag_match_is_case_sensitive(self):
        raw = {"VpcEndpointId": "vpce-1", "Tags": [{"Key": "name", "Value": "lower"}]}
        assert decode_endpoint(raw, "us-east-1").name is None

    def test_decode_vpc(self):
        raw = {
            "VpcId": "vpc-123",
            "CidrBlock": "10.0.0.0/16",
            "State": "available",
            "IsDefault": True,
            "Tags": [{"Key": "Name", "Value": "main"}],
        }
        vpc = decode_vpc(raw, "us-east-1")
        assert vpc.name == "main"
        assert vpc.is_default is True
        assert vpc.cidr_block == "10.0.0.0/16"


class TestConnectivity:
    """Test the connectivity probe."""

    def test_valid_credentials(self):
        client, _, sts = make_client()
        sts.get_caller_identity.return_value = {
            "Account": "123456789012",
            "Arn": "arn:aws:iam::123456789012:user/test",
        }
        assert client.check_connectivity() == "123456789012"

    def test_no_credentials(self):
        client, _, sts = make_client()
        sts.get_caller_identity.side_effect = NoCredentialsError()
        with pytest.raises(ConnectivityError, match="No AWS credentials"):
            client.check_connectivity()

    def test_expired_token(self):
        client, _, sts = make_client()
        sts.get_caller_identity.side_effect = client_error("ExpiredToken", "GetCallerIdentity")
        with pytest.raises(ConnectivityError, match="expired"):
            client.check_connectivity()

    def test_endpoint_unreachable(self):
        client, _, sts = make_client()
        sts.get_caller_identity.side_effect = EndpointConnectionError(endpoint_url="https://sts.amazonaws.com")
        with pytest.raises(ConnectivityError):
            client.check_connectivity()


class TestListing:
    """Test region, VPC and endpoint listing."""

    def test_regions_exclude_govcloud(self):
        client, ec2, _ = make_client()
        ec2.describe_regions.return_value = {"Regions": [
            {"RegionName": "us-west-2"},
            {"RegionName": "us-gov-west-1"},
            {"RegionName": "us-east-1"},
            {"RegionName": "us-gov-east-1"},
        ]}
        assert client.list_regions() == ["us-east-1", "us-west-2"]

    def test_region_listing_failure_is_connectivity_error(self):
        client, ec2, _ = make_client()
        ec2.describe_regions.side_effect = client_error("UnauthorizedOperation", "DescribeRegions")
        with pytest.raises(ConnectivityError):
            client.list_regions()

    def test_is_excluded_region(self):
        assert is_excluded_region("us-gov-west-1")
        assert is_excluded_region("us-isob-east-1")
        assert not is_excluded_region("us-east-1")

    def test_list_vpcs_with_filter(self):
        client, ec2, _ = make_client()
        ec2.describe_vpcs.return_value = {"Vpcs": [{"VpcId": "vpc-1", "IsDefault": False}]}
        vpcs = client.list_vpcs("us-east-1", ["vpc-1"])
        assert [v.vpc_id for v in vpcs] == ["vpc-1"]
        ec2.describe_vpcs.assert_called_once_with(Filters=[{"Name": "vpc-id", "Values": ["vpc-1"]}])

    def test_list_vpcs_unfiltered(self):
        client, ec2, _ = make_client()
        ec2.describe_vpcs.return_value = {"Vpcs": []}
        assert client.list_vpcs("us-east-1") == []
        ec2.describe_vpcs.assert_called_once_with()

    def test_list_vpcs_failure_is_region_error(self):
        client, ec2, _ = make_client()
        ec2.describe_vpcs.side_effect = client_error("AuthFailure")
        with pytest.raises(RegionScanError) as exc_info:
            client.list_vpcs("ap-east-1")
        assert exc_info.value.region == "ap-east-1"

    def test_list_endpoints_filters(self):
        client, ec2, _ = make_client()
        ec2.describe_vpc_endpoints.return_value = {"VpcEndpoints": [RAW_INTERFACE_ENDPOINT]}
        endpoints = client.list_endpoints("us-east-1", "vpc-123", ["Interface"])
        assert endpoints[0].region == "us-east-1"
        ec2.describe_vpc_endpoints.assert_called_once_with(Filters=[
            {"Name": "vpc-id", "Values": ["vpc-123"]},
            {"Name": "vpc-endpoint-type", "Values": ["Interface"]},
        ])

    def test_list_endpoints_records_vpc_name(self):
        client, ec2, _ = make_client()
        ec2.describe_vpc_endpoints.return_value = {"VpcEndpoints": [RAW_INTERFACE_ENDPOINT]}
        endpoints = client.list_endpoints("us-east-1", "vpc-123", vpc_name="main")
        assert endpoints[0].vpc_name == "main"
        assert client.list_endpoints("us-east-1", "vpc-123")[0].vpc_name is None

    def test_list_endpoints_failure_is_region_error(self):
        client, ec2, _ = make_client()
        ec2.describe_vpc_endpoints.side_effect = client_error("RequestLimitExceeded", "DescribeVpcEndpoints")
        with pytest.raises(RegionScanError):
            client.list_endpoints("us-east-1", "vpc-123")

    def test_ec2_client_reused_per_region(self):
        client, ec2, _ = make_client()
        ec2.describe_vpcs.return_value = {"Vpcs": []}
        client.list_vpcs("us-east-1")
        client.list_vpcs("us-east-1")
        client.list_vpcs("eu-west-1")
        regions = [c.kwargs["region_name"] for c in client.session.client.call_args_list]
        assert regions == ["us-east-1", "eu-west-1"]
