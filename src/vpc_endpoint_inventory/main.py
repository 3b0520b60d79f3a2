#!/usr/bin/env python3
"""
AWS VPC Endpoint Inventory

Enumerates VPC endpoints across all regions and VPCs of an AWS account and
writes CSV, JSON and HTML reports.

Usage:
    All regions, all formats:    python main.py
    Specific regions:            python main.py --regions us-east-1,us-west-2
    Gateway endpoints as CSV:    python main.py --endpoint-types Gateway --format csv
"""
import argparse
import sys
import time
from typing import List, Optional

import boto3
from botocore.exceptions import ProfileNotFound

from .base import (
    VERSION, DEFAULT_HOME_REGION, DEFAULT_OUTPUT_DIR, DEFAULT_ENDPOINT_TYPES,
    ExitCode, OutputFormat, ScanConfig,
)
from .client import EndpointClient
from .exceptions import ConnectivityError, FatalError
from .exporters import export_reports
from .scanner import EndpointScanner
from .utils import format_duration, logger, parse_csv_list, setup_logging


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="AWS VPC Endpoint Inventory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Inventory every region, all report formats:
    vpc-endpoint-inventory

  Specific regions:
    vpc-endpoint-inventory --regions us-east-1,us-west-2

  Only S3 gateway endpoints, CSV only:
    vpc-endpoint-inventory --endpoint-types Gateway --service-names com.amazonaws.us-east-1.s3 --format csv

  Use specific AWS profile:
    vpc-endpoint-inventory --profile my-profile

AWS Authentication Priority:
  1. Explicit credentials (--access-key, --secret-key)
  2. AWS profile (--profile)
  3. Default credential chain (environment variables, ~/.aws/credentials, IAM role)
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help=f"Directory for report files (default: {DEFAULT_OUTPUT_DIR})")
    parser.add_argument("--format", dest="formats", action="append",
                        help="Output format: csv, json, html or all; repeat or comma-separate (default: all)")
    parser.add_argument("--regions", help="Comma-separated regions (default: all enabled non-GovCloud regions)")
    parser.add_argument("--vpc-ids", help="Comma-separated VPC ids (default: all VPCs)")
    parser.add_argument("--endpoint-types", default=",".join(DEFAULT_ENDPOINT_TYPES),
                        help=f"Comma-separated endpoint types (default: {','.join(DEFAULT_ENDPOINT_TYPES)})")
    parser.add_argument("--service-names", help="Comma-separated service names (default: all services)")
    parser.add_argument("--exclude-default-vpcs", action="store_true",
                        help="Skip default VPCs")
    parser.add_argument("--no-policy-details", action="store_true",
                        help="Do not emit the endpoint policy report")
    parser.add_argument("--no-summary", action="store_true",
                        help="Do not emit the scan summary report")

    # AWS Credential options
    aws_cred_group = parser.add_argument_group('AWS Authentication', 'AWS credential options')
    aws_cred_group.add_argument("--profile", help="AWS profile name from ~/.aws/credentials or ~/.aws/config")
    aws_cred_group.add_argument("--access-key", dest="access_key",
                                help="AWS access key ID (use with --secret-key)")
    aws_cred_group.add_argument("--secret-key", dest="secret_key",
                                help="AWS secret access key (use with --access-key)")
    aws_cred_group.add_argument("--session-token", dest="session_token",
                                help="AWS session token for temporary credentials (optional, use with --access-key)")
    aws_cred_group.add_argument("--region", dest="default_region", default=DEFAULT_HOME_REGION,
                                help=f"Default AWS region for API calls (default: {DEFAULT_HOME_REGION})")

    parser.add_argument("--quiet", action="store_true", help="Suppress the progress bar")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--log-file", help="Write logs to file")

    args = parser.parse_args(argv)

    if args.access_key and not args.secret_key:
        parser.error("--access-key requires --secret-key")
    if args.secret_key and not args.access_key:
        parser.error("--secret-key requires --access-key")
    if args.session_token and not args.access_key:
        parser.error("--session-token requires --access-key and --secret-key")
    if args.access_key and args.profile:
        parser.error("Cannot use both --access-key and --profile. Choose one authentication method.")

    try:
        formats = []
        for value in args.formats or ["all"]:
            formats.extend(parse_csv_list(value))
        args.output_formats = OutputFormat.parse(formats)
    except ValueError as e:
        parser.error(f"Invalid --format: {e}")
    if not args.output_formats:
        parser.error("At least one output format is required")

    return args


def config_from_args(args) -> ScanConfig:
    """Build the scan configuration from parsed arguments."""
    return ScanConfig(
        output_dir=args.output_dir,
        formats=args.output_formats,
        regions=parse_csv_list(args.regions),
        vpc_ids=parse_csv_list(args.vpc_ids),
        endpoint_types=parse_csv_list(args.endpoint_types),
        service_names=parse_csv_list(args.service_names),
        include_default_vpcs=not args.exclude_default_vpcs,
        include_policy_details=not args.no_policy_details,
        include_summary=not args.no_summary,
        quiet=args.quiet,
    )


def create_session(args) -> boto3.Session:
    """
    Create a boto3 session based on provided arguments.

    Priority:
    1. Explicit credentials (--access-key, --secret-key)
    2. AWS profile (--profile)
    3. Default credential chain (env vars, instance profile, etc.)
    """
    try:
        if args.access_key and args.secret_key:
            logger.info("Using explicit AWS credentials")
            session_kwargs = {
                'aws_access_key_id': args.access_key,
                'aws_secret_access_key': args.secret_key,
                'region_name': args.default_region
            }
            if args.session_token:
                session_kwargs['aws_session_token'] = args.session_token
                logger.info("Using temporary credentials with session token")
            return boto3.Session(**session_kwargs)

        elif args.profile:
            logger.info(f"Using AWS profile: {args.profile}")
            return boto3.Session(profile_name=args.profile, region_name=args.default_region)

        else:
            logger.info("Using default AWS credential chain")
            return boto3.Session(region_name=args.default_region)

    except ProfileNotFound:
        raise ConnectivityError(f"AWS profile '{args.profile}' not found in ~/.aws/credentials or ~/.aws/config")


def run_inventory(args) -> ExitCode:
    """Scan the account and write the reports."""
    config = config_from_args(args)
    session = create_session(args)
    client = EndpointClient(session, home_region=args.default_region)

    context = EndpointScanner(client, config).run()
    written = export_reports(context, config)

    summary = context.summary
    print(f"\nRegions scanned:      {summary.total_regions}", file=sys.stderr)
    print(f"VPCs with endpoints:  {summary.total_vpcs}", file=sys.stderr)
    print(f"Total endpoints:      {summary.total_endpoints}", file=sys.stderr)
    print(f"Duration:             {format_duration(summary.duration_seconds)}", file=sys.stderr)
    for path in written.values():
        print(f"📄 {path}", file=sys.stderr)

    return ExitCode.SUCCESS


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    exit_code = ExitCode.SUCCESS
    start_time = time.time()

    try:
        exit_code = run_inventory(args)
    except KeyboardInterrupt:
        print("\n\n⚠ Scan interrupted by user", file=sys.stderr)
        exit_code = ExitCode.INTERRUPTED
    except ConnectivityError as e:
        logger.error(f"Connectivity check failed: {e}")
        exit_code = ExitCode.ERROR
    except FatalError as e:
        logger.error(str(e))
        exit_code = ExitCode.ERROR
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        exit_code = ExitCode.ERROR

    total_time = time.time() - start_time
    logger.info(f"Completed in {total_time:.1f}s with exit code {exit_code.value}")

    sys.exit(exit_code.value)


if __name__ == "__main__":
    main()
