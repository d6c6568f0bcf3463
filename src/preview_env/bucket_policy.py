"""
Bucket policy for CloudFront OAC access.

Grants the CloudFront service principal read access to the bucket's objects, but
only for requests signed on behalf of one specific distribution.
"""

import json
from typing import TYPE_CHECKING, Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from .utils.errors import ErrorCode, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_s3.client import S3Client

CLOUDFRONT_SERVICE_PRINCIPAL = "cloudfront.amazonaws.com"


def build_bucket_policy(bucket: str, distribution_arn: str) -> Dict[str, Any]:
    """Policy document scoped to one bucket and one distribution ARN."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "AllowCloudFrontServicePrincipal",
                "Effect": "Allow",
                "Principal": {"Service": CLOUDFRONT_SERVICE_PRINCIPAL},
                "Action": "s3:GetObject",
                "Resource": f"arn:aws:s3:::{bucket}/*",
                "Condition": {"StringEquals": {"AWS:SourceArn": distribution_arn}},
            }
        ],
    }


def attach_bucket_policy(client: "S3Client", bucket: str, distribution_arn: str) -> None:
    """Replace the bucket policy. Any existing policy is overwritten, not merged."""
    logger = get_logger(__name__)

    policy = json.dumps(build_bucket_policy(bucket, distribution_arn))
    try:
        client.put_bucket_policy(Bucket=bucket, Policy=policy)
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, f"failed to set bucket policy on {bucket}", e, bucket=bucket)

    logger.info("Bucket policy configured for CloudFront access", bucket=bucket, distributionArn=distribution_arn)
