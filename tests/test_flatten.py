"""
Tests for record flattening, inclusion filtering and policy derivation
"""

import json
from datetime import datetime, timezone

import pytest

from vpc_endpoint_inventory.base import EndpointInfo, EndpointType, PolicyType, VpcInfo
from vpc_endpoint_inventory.flatten import (
    ENDPOINT_COLUMNS,
    derive_policy_records,
    flatten_endpoint,
    flatten_vpc,
    format_tags,
    include,
    join_list_field,
    split_list_field,
    summarize_policy,
)


def make_endpoint(**overrides) -> EndpointInfo:
    values = dict(
        endpoint_id="vpce-0123456789abcdef0",
        service_name="com.amazonaws.us-east-1.s3",
        vpc_id="vpc-123",
        region="us-east-1",
        vpc_endpoint_type="Gateway",
        state="available",
    )
    values.update(overrides)
    return EndpointInfo(**values)


PUBLIC_POLICY = json.dumps({
    "Version": "2008-10-17",
    "Statement": [
        {"Effect": "Allow", "Principal": "*", "Action": "*", "Resource": "*"}
    ],
})


class TestFlattenEndpoint:
    """Test flat row rendering and default-value policy."""

    def test_no_tags_renders_sentinels(self):
        row = flatten_endpoint(make_endpoint())
        assert row["EndpointName"] == "N/A"
        assert row["Tags"] == "None"

    def test_name_tag_is_used_verbatim(self):
        endpoint = make_endpoint(name="  S3 Gateway ", tags={"Name": "  S3 Gateway ", "env": "prod"})
        row = flatten_endpoint(endpoint)
        assert row["EndpointName"] == "  S3 Gateway "
        assert row["Tags"] == "Name=  S3 Gateway ; env=prod"

    def test_columns_in_fixed_order(self):
        row = flatten_endpoint(make_endpoint(vpc_name="main"))
        assert list(row.keys()) == ENDPOINT_COLUMNS == [
            "EndpointId", "EndpointName", "ServiceName", "VpcId", "EndpointType",
            "State", "Region", "CreatedAt", "PrivateDnsEnabled", "PolicyPresent",
            "RouteTableIds", "SubnetIds", "NetworkInterfaceIds", "DnsEntryCount", "Tags",
        ]

    def test_missing_fields_render_na(self):
        row = flatten_endpoint(make_endpoint(state=None, vpc_endpoint_type=None))
        assert row["State"] == "N/A"
        assert row["EndpointType"] == "N/A"
        assert row["CreatedAt"] == "N/A"
        assert row["RouteTableIds"] == "N/A"

    def test_list_fields_joined(self):
        endpoint = make_endpoint(
            route_table_ids=["rtb-1", "rtb-2"],
            subnet_ids=["subnet-a"],
            network_interface_ids=["eni-1", "eni-2", "eni-3"],
            dns_entries=["a.example", "b.example"],
        )
        row = flatten_endpoint(endpoint)
        assert row["RouteTableIds"] == "rtb-1; rtb-2"
        assert row["SubnetIds"] == "subnet-a"
        assert row["NetworkInterfaceIds"] == "eni-1; eni-2; eni-3"
        assert row["DnsEntryCount"] == "2"

    def test_vpc_name_not_in_endpoint_row(self):
        row = flatten_endpoint(make_endpoint(vpc_name="main"))
        assert "VpcName" not in row
        assert "main" not in row.values()

    def test_created_at_is_iso_formatted(self):
        created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        row = flatten_endpoint(make_endpoint(creation_timestamp=created))
        assert row["CreatedAt"] == "2024-05-01T12:30:00+00:00"

    def test_policy_present_flag(self):
        assert flatten_endpoint(make_endpoint(policy_document=PUBLIC_POLICY))["PolicyPresent"] == "True"
        assert flatten_endpoint(make_endpoint(policy_document="   "))["PolicyPresent"] == "False"
        assert flatten_endpoint(make_endpoint())["PolicyPresent"] == "False"

    def test_unknown_type_passed_through(self):
        endpoint = make_endpoint(vpc_endpoint_type="GatewayLoadBalancer")
        assert endpoint.endpoint_type is EndpointType.UNKNOWN
        assert flatten_endpoint(endpoint)["EndpointType"] == "GatewayLoadBalancer"

    def test_rejected_endpoint_returns_none(self):
        endpoint = make_endpoint(vpc_endpoint_type="Interface")
        assert flatten_endpoint(endpoint, type_filter=["Gateway"]) is None
        assert flatten_endpoint(endpoint, type_filter=["Interface"]) is not None


class TestIncludeFilter:
    """Test the allow-list inclusion filter."""

    @pytest.mark.parametrize("endpoint_type", ["Gateway", "Interface", "GatewayLoadBalancer", None])
    def test_no_filters_accept_everything(self, endpoint_type):
        endpoint = make_endpoint(vpc_endpoint_type=endpoint_type)
        assert include(endpoint, None, None)
        assert include(endpoint, [], [])

    def test_type_not_in_allow_list_rejected(self):
        endpoint = make_endpoint(vpc_endpoint_type="Interface")
        assert not include(endpoint, ["Gateway"], None)

    def test_unknown_type_rejected_by_restricted_list(self):
        endpoint = make_endpoint(vpc_endpoint_type="GatewayLoadBalancer")
        assert not include(endpoint, ["Gateway", "Interface"])

    def test_service_allow_list(self):
        endpoint = make_endpoint()
        assert include(endpoint, None, ["com.amazonaws.us-east-1.s3"])
        assert not include(endpoint, None, ["com.amazonaws.us-east-1.dynamodb"])

    def test_no_partial_matching(self):
        endpoint = make_endpoint()
        assert not include(endpoint, None, ["s3"])
        assert not include(endpoint, ["gateway"], None)

    def test_both_lists_must_match(self):
        endpoint = make_endpoint()
        assert include(endpoint, ["Gateway"], ["com.amazonaws.us-east-1.s3"])
        assert not include(endpoint, ["Interface"], ["com.amazonaws.us-east-1.s3"])


class TestListFields:
    """Test list joining and splitting."""

    @pytest.mark.parametrize("values", [
        [],
        ["rtb-1"],
        ["subnet-b", "subnet-a", "subnet-c"],
    ])
    def test_split_reverses_join(self, values):
        assert split_list_field(join_list_field(values)) == values

    def test_empty_list_renders_na(self):
        assert join_list_field([]) == "N/A"

    def test_format_tags_sorted(self):
        assert format_tags({"b": "2", "a": "1"}) == "a=1; b=2"
        assert format_tags({}) == "None"


class TestFlattenVpc:
    """Test VPC rows."""

    def test_vpc_row(self):
        vpc = VpcInfo(vpc_id="vpc-123", region="us-east-1", name="main",
                      cidr_block="10.0.0.0/16", state="available", is_default=True)
        row = flatten_vpc(vpc, endpoint_count=3)
        assert row["VpcName"] == "main"
        assert row["IsDefault"] == "True"
        assert row["EndpointCount"] == "3"
        assert row["Tags"] == "None"

    def test_unnamed_vpc(self):
        row = flatten_vpc(VpcInfo(vpc_id="vpc-9", region="eu-west-1"))
        assert row["VpcName"] == "N/A"
        assert row["CidrBlock"] == "N/A"


class TestPolicyRecords:
    """Test policy record derivation."""

    def test_policy_and_private_dns_give_two_records(self):
        endpoint = make_endpoint(
            vpc_endpoint_type="Interface",
            service_name="com.amazonaws.us-east-1.ssm",
            policy_document=PUBLIC_POLICY,
            private_dns_enabled=True,
            dns_entries=["ssm.us-east-1.amazonaws.com", "vpce-1.ssm.us-east-1.vpce.amazonaws.com"],
        )
        records = derive_policy_records(endpoint)
        assert [r.policy_type for r in records] == [
            PolicyType.RESOURCE_POLICY,
            PolicyType.DNS_CONFIGURATION,
        ]
        assert records[0].policy_text == PUBLIC_POLICY
        assert "2 DNS entries" in records[1].summary
        assert all(r.endpoint_id == endpoint.endpoint_id for r in records)

    def test_no_policy_no_dns(self):
        assert derive_policy_records(make_endpoint()) == []

    def test_dns_only(self):
        records = derive_policy_records(make_endpoint(private_dns_enabled=True))
        assert len(records) == 1
        assert records[0].policy_type is PolicyType.DNS_CONFIGURATION

    def test_summary_flags_wildcard_principal(self):
        summary = summarize_policy(PUBLIC_POLICY)
        assert summary.startswith("1 statement(s)")
        assert "Allow" in summary
        assert "any principal" in summary

    def test_summary_restricted_principal(self):
        policy = json.dumps({"Statement": [
            {"Effect": "Allow", "Principal": {"AWS": "arn:aws:iam::123456789012:root"}, "Action": "s3:GetObject"},
            {"Effect": "Deny", "Principal": "*", "Action": "s3:DeleteObject"},
        ]})
        summary = summarize_policy(policy)
        assert summary == "2 statement(s); effects: Allow, Deny"

    def test_summary_unparseable(self):
        assert summarize_policy("{not json") == "Unparseable policy document"

    @pytest.mark.parametrize("policy", [
        '{"Statement": null}',
        '{"Statement": "x"}',
        '{"Statement": 42}',
    ])
    def test_summary_malformed_statement(self, policy):
        assert summarize_policy(policy) == "0 statement(s)"

    def test_malformed_statement_still_yields_record(self):
        records = derive_policy_records(make_endpoint(policy_document='{"Statement": null}'))
        assert len(records) == 1
        assert records[0].summary == "0 statement(s)"

    def test_policy_type_unknown_fallback(self):
        assert PolicyType.from_value("ResourcePolicy") is PolicyType.RESOURCE_POLICY
        assert PolicyType.from_value("SomethingNew") is PolicyType.UNKNOWN
