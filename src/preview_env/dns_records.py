"""
Route53 record management for preview hostnames.

Each environment owns exactly one CNAME, pointing its hostname at the
distribution's CloudFront domain.
"""

from typing import TYPE_CHECKING, Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from .lookup import find_hosted_zone
from .utils.errors import AppError, ErrorCode, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_route53.client import Route53Client

RECORD_TTL = 300


def resolve_zone(client: "Route53Client", base_domain: str) -> str:
    """
    Return the hosted zone id for base_domain, without the ``/hostedzone/`` prefix.

    Raises:
        AppError: NOT_FOUND if no zone has that exact name
    """
    zone = find_hosted_zone(client, base_domain)
    if zone is None:
        raise AppError(
            ErrorCode.NOT_FOUND,
            f"no hosted zone found for domain: {base_domain}",
            {"baseDomain": base_domain},
        )
    return str(zone["Id"]).split("/")[-1]


def upsert_cname(client: "Route53Client", zone_id: str, hostname: str, target: str) -> None:
    """Create or replace the CNAME ``hostname -> target``."""
    logger = get_logger(__name__)

    try:
        client.change_resource_record_sets(
            HostedZoneId=zone_id,
            ChangeBatch={
                "Changes": [
                    {
                        "Action": "UPSERT",
                        "ResourceRecordSet": {
                            "Name": hostname,
                            "Type": "CNAME",
                            "TTL": RECORD_TTL,
                            "ResourceRecords": [{"Value": target}],
                        },
                    }
                ]
            },
        )
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, "failed to update DNS record", e, hostname=hostname)

    logger.info("DNS record updated", hostname=hostname, target=target, zoneId=zone_id)


def delete_cname(client: "Route53Client", zone_id: str, hostname: str) -> bool:
    """
    Delete the CNAME for hostname if it exists.

    Route53 only accepts a DELETE that matches the stored record exactly, so the
    record is read first and submitted back verbatim. Listing starts at the
    hostname, so the first result may belong to a different name; it is only
    deleted when its fully-qualified name matches.

    Returns:
        True if a delete was submitted, False if there was no matching record
    """
    logger = get_logger(__name__)
    # Route53 stores names in lower case with a trailing dot
    name = hostname.rstrip(".").lower()
    fqdn = name + "."

    try:
        response = client.list_resource_record_sets(
            HostedZoneId=zone_id,
            StartRecordName=name,
            StartRecordType="CNAME",
            MaxItems="1",
        )
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.LOOKUP_FAILED, "failed to list records", e, hostname=hostname)

    records = response.get("ResourceRecordSets", [])
    if not records:
        logger.info("No DNS record found", hostname=hostname)
        return False

    record: Dict[str, Any] = records[0]
    if str(record.get("Name", "")).lower() != fqdn or record.get("Type") != "CNAME":
        logger.info("No DNS record found", hostname=hostname, firstRecord=record.get("Name"))
        return False

    try:
        client.change_resource_record_sets(
            HostedZoneId=zone_id,
            ChangeBatch={"Changes": [{"Action": "DELETE", "ResourceRecordSet": record}]},  # type: ignore[typeddict-item]
        )
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, "failed to delete DNS record", e, hostname=hostname)

    logger.info("DNS record deleted", hostname=hostname, zoneId=zone_id)
    return True
