"""
CloudFront Origin Access Control management.

The OAC lets the distribution read the private bucket with SigV4-signed requests.
It is looked up by name on every run; an existing OAC is reused as-is.
"""

from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from .lookup import find_origin_access_control
from .utils.errors import ErrorCode, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_cloudfront.client import CloudFrontClient


def build_oac_config(name: str, description: str) -> dict:
    """OAC settings for an S3 origin: always sign, SigV4."""
    return {
        "Name": name,
        "Description": description,
        "SigningProtocol": "sigv4",
        "SigningBehavior": "always",
        "OriginAccessControlOriginType": "s3",
    }


def get_or_create_oac(client: "CloudFrontClient", name: str, description: str = "") -> str:
    """
    Return the id of the OAC named ``name``, creating it if missing.

    Args:
        client: boto3 CloudFront client
        name: Exact OAC name (e.g. ``OAC-pr-42-site``)
        description: Description used only when creating

    Returns:
        OAC id
    """
    logger = get_logger(__name__)

    existing = find_origin_access_control(client, name)
    if existing:
        logger.info("Using existing origin access control", oacName=name, oacId=existing["Id"])
        return str(existing["Id"])

    try:
        response = client.create_origin_access_control(
            OriginAccessControlConfig=build_oac_config(name, description)  # type: ignore[arg-type]
        )
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, f"failed to create origin access control {name}", e)

    oac_id = str(response["OriginAccessControl"]["Id"])
    logger.info("Origin access control created", oacName=name, oacId=oac_id)
    return oac_id


def delete_oac(client: "CloudFrontClient", name: str) -> bool:
    """
    Delete the OAC named ``name``.

    CloudFront refuses while a distribution still references it, so this runs
    after the distribution is gone.

    Returns:
        True if deleted, False if no OAC had that name
    """
    logger = get_logger(__name__)

    existing = find_origin_access_control(client, name)
    if not existing:
        logger.info("No origin access control found", oacName=name)
        return False

    oac_id = str(existing["Id"])
    try:
        etag = client.get_origin_access_control(Id=oac_id)["ETag"]
        client.delete_origin_access_control(Id=oac_id, IfMatch=etag)
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(
            ErrorCode.MUTATION_FAILED, f"failed to delete origin access control {name}", e, oacId=oac_id
        )

    logger.info("Origin access control deleted", oacName=name, oacId=oac_id)
    return True
