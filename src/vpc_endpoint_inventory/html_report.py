#!/usr/bin/env python3
"""HTML report generator: summary cards, one section per VPC, policy table."""

from datetime import datetime
from html import escape
from typing import Dict, List

from .base import VERSION, ScanContext
from .flatten import flatten_endpoint, flatten_policy_record


def _e(value) -> str:
    return escape(str(value))


def _get_css() -> str:
    return """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f3f4f6; color: #1f2937; line-height: 1.6; padding: 20px; }
        .container { max-width: 1500px; margin: 0 auto; }
        .header { background: linear-gradient(135deg, #1e3a5f 0%, #7c3aed 100%); color: white; padding: 30px; border-radius: 12px; margin-bottom: 20px; }
        .header h1 { font-size: 28px; margin-bottom: 10px; }
        .header-meta { opacity: 0.9; font-size: 14px; }
        .stats-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(160px, 1fr)); gap: 15px; margin-bottom: 20px; }
        .stat-card { background: white; padding: 20px; border-radius: 10px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); text-align: center; }
        .stat-value { font-size: 32px; font-weight: bold; color: #1e3a5f; }
        .stat-label { color: #6b7280; font-size: 13px; margin-top: 5px; }
        .card { background: white; padding: 25px; border-radius: 10px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); margin-bottom: 20px; overflow-x: auto; }
        .card.warning { border-left: 4px solid #f59e0b; }
        .card h2 { margin-bottom: 5px; color: #1e3a5f; font-size: 20px; }
        .vpc-meta { color: #6b7280; font-size: 13px; }
        table { width: 100%; border-collapse: collapse; margin-top: 15px; }
        th, td { padding: 10px; text-align: left; border-bottom: 1px solid #e5e7eb; vertical-align: top; }
        th { background: #f9fafb; font-weight: 600; color: #374151; font-size: 13px; }
        td { font-size: 13px; }
        tr:hover { background: #f9fafb; }
        .mono { font-family: monospace; font-size: 12px; }
        .badge { padding: 2px 8px; border-radius: 10px; font-size: 11px; font-weight: 600; }
        .badge-gateway { background: #dbeafe; color: #1d4ed8; }
        .badge-interface { background: #d1fae5; color: #059669; }
        .badge-unknown { background: #e5e7eb; color: #374151; }
        pre { white-space: pre-wrap; word-wrap: break-word; font-size: 11px; max-width: 600px; }
        .footer { text-align: center; color: #9ca3af; font-size: 12px; margin-top: 30px; padding: 20px; }
    """


def _type_badge(endpoint_type: str) -> str:
    css = {"Gateway": "badge-gateway", "Interface": "badge-interface"}.get(endpoint_type, "badge-unknown")
    return f'<span class="badge {css}">{_e(endpoint_type)}</span>'


def _generate_vpc_sections(context: ScanContext) -> str:
    sections: List[str] = []
    by_vpc = context.endpoints_by_vpc()

    for vpc_id, endpoints in by_vpc.items():
        vpc = context.vpcs.get(vpc_id)
        vpc_name = (vpc.name if vpc else None) or endpoints[0].vpc_name or "N/A"
        cidr = (vpc.cidr_block if vpc else None) or "N/A"
        region = endpoints[0].region
        default_label = " | Default VPC" if vpc and vpc.is_default else ""

        rows = []
        for endpoint in endpoints:
            row = flatten_endpoint(endpoint)
            rows.append(f'''
                <tr>
                    <td class="mono">{_e(row["EndpointId"])}</td>
                    <td>{_e(row["EndpointName"])}</td>
                    <td class="mono">{_e(row["ServiceName"])}</td>
                    <td>{_type_badge(row["EndpointType"])}</td>
                    <td>{_e(row["State"])}</td>
                    <td>{_e(row["CreatedAt"])}</td>
                    <td>{_e(row["PrivateDnsEnabled"])}</td>
                    <td>{_e(row["PolicyPresent"])}</td>
                    <td class="mono">{_e(row["RouteTableIds"])}</td>
                    <td class="mono">{_e(row["SubnetIds"])}</td>
                    <td>{_e(row["Tags"])}</td>
                </tr>''')

        sections.append(f'''
        <div class="card">
            <h2>🔌 {_e(vpc_id)} ({_e(vpc_name)})</h2>
            <div class="vpc-meta">Region: <strong>{_e(region)}</strong> | CIDR: <strong>{_e(cidr)}</strong>{default_label} | Endpoints: <strong>{len(endpoints)}</strong></div>
            <table>
                <thead>
                    <tr><th>Endpoint ID</th><th>Name</th><th>Service</th><th>Type</th><th>State</th><th>Created</th><th>Private DNS</th><th>Policy</th><th>Route Tables</th><th>Subnets</th><th>Tags</th></tr>
                </thead>
                <tbody>{"".join(rows)}
                </tbody>
            </table>
        </div>''')

    if not sections:
        return '<div class="card"><h2>No VPC endpoints found</h2></div>'
    return "".join(sections)


def _generate_policy_table(context: ScanContext) -> str:
    if not context.policy_records:
        return ""

    rows = []
    for record in context.policy_records:
        row = flatten_policy_record(record)
        rows.append(f'''
                <tr>
                    <td class="mono">{_e(row["EndpointId"])}</td>
                    <td class="mono">{_e(row["VpcId"])}</td>
                    <td class="mono">{_e(row["ServiceName"])}</td>
                    <td>{_e(row["PolicyType"])}</td>
                    <td>{_e(row["Summary"])}</td>
                    <td><pre>{_e(row["PolicyText"])}</pre></td>
                </tr>''')

    return f'''
        <div class="card">
            <h2>📜 Endpoint Policies ({len(context.policy_records)})</h2>
            <table>
                <thead>
                    <tr><th>Endpoint ID</th><th>VPC</th><th>Service</th><th>Type</th><th>Summary</th><th>Policy</th></tr>
                </thead>
                <tbody>{"".join(rows)}
                </tbody>
            </table>
        </div>'''


def _generate_failed_regions(context: ScanContext) -> str:
    if not context.failed_regions:
        return ""
    items = "".join(f"<li>{_e(r)}</li>" for r in context.failed_regions)
    return f'''
        <div class="card warning">
            <h2>⚠️ Regions Skipped Due To Errors</h2>
            <ul style="margin-left: 20px;">{items}</ul>
        </div>'''


def render_html(context: ScanContext, include_policies: bool = True) -> str:
    """Render the full HTML document for a completed scan."""
    summary = context.summary
    total_regions = summary.total_regions if summary else context.regions_scanned
    total_vpcs = summary.total_vpcs if summary else context.vpcs_with_endpoints
    total_endpoints = summary.total_endpoints if summary else context.total_endpoints
    duration = f"{summary.duration_seconds:.1f}s" if summary else "N/A"

    type_counts: Dict[str, int] = {}
    for endpoint in context.endpoints:
        key = endpoint.vpc_endpoint_type or "N/A"
        type_counts[key] = type_counts.get(key, 0) + 1
    type_cards = "".join(
        f'<div class="stat-card"><div class="stat-value">{count}</div><div class="stat-label">{_e(name)} Endpoints</div></div>'
        for name, count in sorted(type_counts.items())
    )

    policy_html = _generate_policy_table(context) if include_policies else ""
    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>AWS VPC Endpoint Inventory Report</title>
    <style>{_get_css()}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>🔍 AWS VPC Endpoint Inventory Report</h1>
            <div class="header-meta">
                Account: <strong>{_e(context.account_id or "N/A")}</strong> |
                Generated: <strong>{generated_at}</strong> |
                Duration: <strong>{duration}</strong> |
                Version: <strong>{VERSION}</strong>
            </div>
        </div>

        <div class="stats-grid">
            <div class="stat-card"><div class="stat-value">{total_regions}</div><div class="stat-label">Regions Scanned</div></div>
            <div class="stat-card"><div class="stat-value">{total_vpcs}</div><div class="stat-label">VPCs With Endpoints</div></div>
            <div class="stat-card"><div class="stat-value">{total_endpoints}</div><div class="stat-label">Total Endpoints</div></div>
            <div class="stat-card"><div class="stat-value" style="color:{"#ef4444" if context.failed_regions else "#10b981"}">{len(context.failed_regions)}</div><div class="stat-label">Failed Regions</div></div>
            {type_cards}
        </div>
        {_generate_failed_regions(context)}
        {_generate_vpc_sections(context)}
        {policy_html}

        <div class="footer">Generated by VPC Endpoint Inventory v{VERSION}</div>
    </div>
</body>
</html>
'''


def generate_html_report(context: ScanContext, output_file: str, include_policies: bool = True):
    """Generate the HTML report for a completed scan."""
    html = render_html(context, include_policies=include_policies)
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(html)
