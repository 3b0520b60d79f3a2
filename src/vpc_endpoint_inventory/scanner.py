"""
Scan Orchestrator

Walks regions → VPCs → endpoints sequentially, applies the inclusion filter
and accumulates results in a ScanContext.

Example:
    >>> client = EndpointClient(boto3.Session())
    >>> scanner = EndpointScanner(client, ScanConfig(regions=["us-east-1"]))
    >>> context = scanner.run()
    >>> print(context.summary.total_endpoints)
"""

from datetime import datetime
from typing import List, Optional

from .base import VERSION, EndpointInfo, ScanConfig, ScanContext, ScanSummary
from .client import EndpointClient
from .exceptions import ConnectivityError, FatalError, RegionScanError
from .flatten import derive_policy_records, include
from .utils import ProgressIndicator, format_duration, logger


class EndpointScanner:
    """
    Enumerates VPC endpoints for one account.

    Per-region listing failures are logged and the region is skipped; a
    failed connectivity probe aborts the run before any region is touched.
    """

    def __init__(self, client: EndpointClient, config: Optional[ScanConfig] = None):
        """
        Initialize the scanner.

        Args:
            client: Resource client for the account
            config: Run parameters (defaults to ScanConfig())
        """
        self.client = client
        self.config = config or ScanConfig()
        logger.debug(f"Initialized EndpointScanner v{VERSION}")

    def run(self) -> ScanContext:
        """
        Probe connectivity, scan every region and compute the summary.

        Raises:
            ConnectivityError: if the probe or region discovery fails
            FatalError: on any other unexpected error
        """
        account_id = self.client.check_connectivity()
        logger.info(f"Connected to AWS account {account_id}")

        context = ScanContext(account_id=account_id, started_at=datetime.now())
        try:
            regions = self.resolve_regions()
            self.scan(regions, context)
        except (ConnectivityError, FatalError):
            raise
        except Exception as e:
            raise FatalError(f"Unexpected error during scan: {e}") from e

        context.summary = self.build_summary(context)
        logger.info(
            f"Scan complete: {context.regions_scanned} regions, "
            f"{context.vpcs_with_endpoints} VPCs with endpoints, "
            f"{context.total_endpoints} endpoints "
            f"in {format_duration(context.summary.duration_seconds)}"
        )
        if context.failed_regions:
            logger.warning(f"Skipped regions due to errors: {', '.join(context.failed_regions)}")
        return context

    def resolve_regions(self) -> List[str]:
        """Explicit region list if configured, otherwise every non-government region."""
        if self.config.regions:
            return list(self.config.regions)
        regions = self.client.list_regions()
        logger.info(f"Discovered {len(regions)} regions")
        return regions

    def scan(self, regions: List[str], context: Optional[ScanContext] = None) -> ScanContext:
        """Scan the given regions in order, accumulating into context."""
        if context is None:
            context = ScanContext()

        progress = ProgressIndicator(len(regions), "Scanning regions", self.config.quiet)
        for index, region in enumerate(regions, 1):
            logger.info(f"Scanning region {region} ({index}/{len(regions)})")
            try:
                found = self._scan_region(region, context)
                logger.info(f"Region {region}: {found} endpoints")
                progress.update(region, "done")
            except RegionScanError as e:
                logger.error(f"Error scanning region {region}: {e}")
                context.failed_regions.append(region)
                progress.update(region, "error")
            finally:
                context.regions_scanned += 1
        progress.finish()
        return context

    def _scan_region(self, region: str, context: ScanContext) -> int:
        """Scan one region; returns the number of endpoints kept."""
        found = 0
        for vpc in self.client.list_vpcs(region, self.config.vpc_ids or None):
            if vpc.is_default and not self.config.include_default_vpcs:
                logger.debug(f"Skipping default VPC {vpc.vpc_id} in {region}")
                continue

            endpoints = self.client.list_endpoints(region, vpc.vpc_id, vpc_name=vpc.name)
            context.vpcs[vpc.vpc_id] = vpc
            for endpoint in endpoints:
                if self._accept(endpoint, context):
                    found += 1
            if endpoints:
                context.vpcs_with_endpoints += 1
        return found

    def _accept(self, endpoint: EndpointInfo, context: ScanContext) -> bool:
        if not include(endpoint, self.config.endpoint_types, self.config.service_names):
            logger.debug(f"Filtered out {endpoint.endpoint_id} ({endpoint.vpc_endpoint_type}, {endpoint.service_name})")
            return False

        context.endpoints.append(endpoint)
        if self.config.include_policy_details:
            context.policy_records.extend(derive_policy_records(endpoint))
        return True

    def build_summary(self, context: ScanContext) -> ScanSummary:
        """Compute the end-of-run summary."""
        duration = (datetime.now() - context.started_at).total_seconds()
        return ScanSummary(
            total_regions=context.regions_scanned,
            total_vpcs=context.vpcs_with_endpoints,
            total_endpoints=context.total_endpoints,
            total_policy_records=len(context.policy_records),
            failed_regions=list(context.failed_regions),
            account_id=context.account_id,
            started_at=context.started_at,
            duration_seconds=duration,
            parameters=self.config.parameters(),
        )
