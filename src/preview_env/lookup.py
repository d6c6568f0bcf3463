"""
Resource Lookup Helper

Discovers existing AWS resources by name or alias. CloudFront and Route53 have no
server-side filter for these, so every lookup lists and scans. Keeping the scans
here lets them be swapped for a tag-based lookup without touching the controller.

Unlike a cached CDK-time lookup, nothing here is memoized: resources change
during a run, and list failures propagate so callers can tell "not found" apart
from "could not look".
"""

from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .utils.errors import ErrorCode, wrap_aws_error


def find_distribution_by_alias(client: Any, hostname: str) -> Optional[Dict[str, Any]]:
    """Find a CloudFront distribution summary whose aliases contain the hostname."""
    try:
        paginator = client.get_paginator("list_distributions")
        for page in paginator.paginate():
            for dist in page.get("DistributionList", {}).get("Items", []) or []:
                aliases = dist.get("Aliases", {}).get("Items", []) or []
                if hostname in aliases:
                    return dist
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.LOOKUP_FAILED, "failed to list distributions", e)
    return None


def find_origin_access_control(client: Any, name: str) -> Optional[Dict[str, Any]]:
    """Find a CloudFront Origin Access Control summary by exact (case-sensitive) name."""
    try:
        paginator = client.get_paginator("list_origin_access_controls")
        for page in paginator.paginate():
            for oac in page.get("OriginAccessControlList", {}).get("Items", []) or []:
                if oac.get("Name") == name:
                    return oac
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.LOOKUP_FAILED, "failed to list origin access controls", e)
    return None


def find_hosted_zone(client: Any, domain_name: str) -> Optional[Dict[str, Any]]:
    """
    Find the Route53 hosted zone named exactly ``domain_name``.

    ListHostedZonesByName returns zones in order starting at the given name, so
    the first result is only a match if its name is equal.
    """
    try:
        response = client.list_hosted_zones_by_name(DNSName=domain_name, MaxItems="1")
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.LOOKUP_FAILED, "failed to list hosted zones", e)

    zones = response.get("HostedZones", [])
    if not zones:
        return None
    zone = zones[0]
    if zone["Name"].rstrip(".").lower() != domain_name.rstrip(".").lower():
        return None
    return zone
