"""CloudFront cache invalidation."""

import time
from typing import TYPE_CHECKING, Callable

from botocore.exceptions import BotoCoreError, ClientError

from .utils.errors import ErrorCode, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_cloudfront.client import CloudFrontClient


def invalidate_all(
    client: "CloudFrontClient",
    distribution_id: str,
    now: Callable[[], float] = time.time,
) -> str:
    """
    Submit one invalidation for ``/*`` and return its id.

    The request is only submitted; propagation is not awaited.
    """
    logger = get_logger(__name__)

    caller_reference = f"invalidation-{int(now())}"
    try:
        response = client.create_invalidation(
            DistributionId=distribution_id,
            InvalidationBatch={
                "Paths": {"Quantity": 1, "Items": ["/*"]},
                "CallerReference": caller_reference,
            },
        )
    except (ClientError, BotoCoreError) as e:
        raise wrap_aws_error(
            ErrorCode.MUTATION_FAILED, "failed to create invalidation", e, distributionId=distribution_id
        )

    invalidation_id = str(response["Invalidation"]["Id"])
    logger.info("Cache invalidation created", distributionId=distribution_id, invalidationId=invalidation_id)
    return invalidation_id
