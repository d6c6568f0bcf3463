"""
Preview bucket lifecycle.

Creates the per-environment bucket if it is missing, and on cleanup empties and
removes it. A bucket that is already gone counts as cleaned up.
"""

from typing import TYPE_CHECKING, Any, List

from botocore.exceptions import BotoCoreError, ClientError

from .utils.errors import ErrorCode, aws_error_code, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_s3.client import S3Client

# HeadBucket reports a missing bucket as a bare 404
MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


def bucket_exists(client: "S3Client", bucket: str) -> bool:
    """HeadBucket the bucket; only a not-found answer means absent."""
    try:
        client.head_bucket(Bucket=bucket)
        return True
    except ClientError as e:
        if aws_error_code(e) in MISSING_BUCKET_CODES:
            return False
        raise wrap_aws_error(ErrorCode.LOOKUP_FAILED, f"failed to check bucket {bucket}", e, bucket=bucket)
    except BotoCoreError as e:
        raise wrap_aws_error(ErrorCode.LOOKUP_FAILED, f"failed to check bucket {bucket}", e, bucket=bucket)


def ensure_bucket(client: "S3Client", bucket: str, region: str) -> bool:
    """
    Create the bucket unless it already exists.

    Returns:
        True if the bucket was created, False if it was already there
    """
    logger = get_logger(__name__)

    if bucket_exists(client, bucket):
        logger.info("Bucket already exists", bucket=bucket)
        return False

    kwargs: dict = {"Bucket": bucket}
    # us-east-1 rejects an explicit location constraint
    if region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}

    try:
        client.create_bucket(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, f"failed to create bucket {bucket}", e, bucket=bucket)

    logger.info("Bucket created", bucket=bucket, region=region)
    return True


def delete_bucket(client: "S3Client", bucket: str) -> bool:
    """
    Delete every object in the bucket, then the bucket.

    Returns:
        True if the bucket was deleted, False if it did not exist
    """
    logger = get_logger(__name__)

    if not bucket_exists(client, bucket):
        logger.info("Bucket does not exist", bucket=bucket)
        return False

    deleted = 0
    try:
        paginator = client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            objects: List[Any] = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
            if not objects:
                continue
            response = client.delete_objects(Bucket=bucket, Delete={"Objects": objects, "Quiet": True})
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise wrap_aws_error(
                    ErrorCode.MUTATION_FAILED,
                    f"failed to delete objects from {bucket}",
                    Exception(f"{first.get('Key')}: {first.get('Code')} {first.get('Message')}"),
                    bucket=bucket,
                    failedObjects=len(errors),
                )
            deleted += len(objects)
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, f"failed to empty bucket {bucket}", e, bucket=bucket)

    logger.info("Deleted all objects", bucket=bucket, objectCount=deleted)

    try:
        client.delete_bucket(Bucket=bucket)
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(ErrorCode.MUTATION_FAILED, f"failed to delete bucket {bucket}", e, bucket=bucket)

    logger.info("Bucket deleted", bucket=bucket)
    return True
