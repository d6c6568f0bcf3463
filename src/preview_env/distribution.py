"""
CloudFront distribution lifecycle for preview environments.

A distribution moves through these states:

    ABSENT -> CREATING -> ENABLED -> DISABLING -> DISABLED -> DELETING -> ABSENT

Creation is a single call. Teardown is the slow part: CloudFront only deletes a
distribution that is disabled *and* fully deployed in that state, and every
mutating call needs the current ETag, which changes after each mutation.
Transitions are checked against a fixed table and recorded, and the clock used
for the disable wait is injectable.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from .identity import EnvironmentIdentity
from .lookup import find_distribution_by_alias
from .utils.errors import AppError, ErrorCode, WaitTimeoutError, aws_error_code, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_cloudfront.client import CloudFrontClient

DEPLOYED = "Deployed"

# CloudFront tells clients to allow up to ~15 minutes for a config change
DEFAULT_WAIT_TIMEOUT_SECONDS = 20 * 60
DEFAULT_POLL_INTERVAL_SECONDS = 15.0

# Caching
MIN_TTL = 0
DEFAULT_TTL = 86400
MAX_TTL = 31536000
ERROR_CACHING_MIN_TTL = 300

MINIMUM_PROTOCOL_VERSION = "TLSv1.3_2025"


class DistributionState(Enum):
    ABSENT = "absent"
    CREATING = "creating"
    ENABLED = "enabled"
    DISABLING = "disabling"
    DISABLED = "disabled"
    DELETING = "deleting"


ALLOWED_TRANSITIONS: Dict[DistributionState, Tuple[DistributionState, ...]] = {
    DistributionState.ABSENT: (DistributionState.CREATING,),
    DistributionState.CREATING: (DistributionState.ENABLED,),
    DistributionState.ENABLED: (DistributionState.DISABLING,),
    DistributionState.DISABLING: (DistributionState.DISABLED,),
    DistributionState.DISABLED: (DistributionState.DELETING,),
    DistributionState.DELETING: (DistributionState.ABSENT,),
}


@dataclass
class DistributionStateMachine:
    """Tracks one distribution's state and the order it moved through."""

    distribution_id: Optional[str]
    state: DistributionState = DistributionState.ABSENT
    history: List[DistributionState] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.history:
            self.history.append(self.state)

    def transition(self, new_state: DistributionState) -> None:
        """Move to new_state, or raise INVALID_STATE if the table forbids it."""
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise AppError(
                ErrorCode.INVALID_STATE,
                f"invalid distribution transition {self.state.value} -> {new_state.value}",
                {"distributionId": self.distribution_id},
            )
        get_logger(__name__).debug(
            "Distribution state changed",
            distributionId=self.distribution_id,
            fromState=self.state.value,
            toState=new_state.value,
        )
        self.state = new_state
        self.history.append(new_state)


@dataclass
class DistributionInfo:
    """The parts of a distribution the controller cares about."""

    id: str
    arn: str
    domain_name: str
    aliases: List[str]
    enabled: bool
    status: str
    etag: Optional[str] = None

    @property
    def deployed(self) -> bool:
        return self.status == DEPLOYED

    @classmethod
    def from_summary(cls, summary: Dict[str, Any]) -> "DistributionInfo":
        """Build from a ListDistributions item."""
        return cls(
            id=summary["Id"],
            arn=summary.get("ARN", ""),
            domain_name=summary.get("DomainName", ""),
            aliases=list(summary.get("Aliases", {}).get("Items", []) or []),
            enabled=bool(summary.get("Enabled", False)),
            status=summary.get("Status", ""),
        )

    @classmethod
    def from_distribution(cls, distribution: Dict[str, Any], etag: Optional[str] = None) -> "DistributionInfo":
        """Build from a GetDistribution / CreateDistribution response body."""
        config = distribution.get("DistributionConfig", {})
        return cls(
            id=distribution["Id"],
            arn=distribution.get("ARN", ""),
            domain_name=distribution.get("DomainName", ""),
            aliases=list(config.get("Aliases", {}).get("Items", []) or []),
            enabled=bool(config.get("Enabled", False)),
            status=distribution.get("Status", ""),
            etag=etag,
        )


def build_distribution_config(
    identity: EnvironmentIdentity,
    region: str,
    oac_id: str,
    caller_reference: str,
    certificate_arn: Optional[str] = None,
) -> Dict[str, Any]:
    """
    DistributionConfig for a single-page app served from the preview bucket.

    404s are answered with /index.html and a 200 so client-side routes resolve.
    Without a certificate the CloudFront default certificate is attached, which
    does not cover the custom alias over HTTPS.
    """
    origin_id = identity.origin_id
    get_head = ["GET", "HEAD"]

    config: Dict[str, Any] = {
        "CallerReference": caller_reference,
        "Comment": f"PR #{identity.key} Preview Environment",
        "Enabled": True,
        "Aliases": {"Quantity": 1, "Items": [identity.hostname]},
        "DefaultRootObject": "index.html",
        "Origins": {
            "Quantity": 1,
            "Items": [
                {
                    "Id": origin_id,
                    "DomainName": identity.origin_domain(region),
                    "S3OriginConfig": {"OriginAccessIdentity": ""},
                    "OriginAccessControlId": oac_id,
                }
            ],
        },
        "DefaultCacheBehavior": {
            "TargetOriginId": origin_id,
            "ViewerProtocolPolicy": "redirect-to-https",
            "AllowedMethods": {
                "Quantity": 2,
                "Items": get_head,
                "CachedMethods": {"Quantity": 2, "Items": list(get_head)},
            },
            "ForwardedValues": {
                "QueryString": False,
                "Cookies": {"Forward": "none"},
            },
            "MinTTL": MIN_TTL,
            "DefaultTTL": DEFAULT_TTL,
            "MaxTTL": MAX_TTL,
            "Compress": True,
            "TrustedSigners": {"Enabled": False, "Quantity": 0},
        },
        "CustomErrorResponses": {
            "Quantity": 1,
            "Items": [
                {
                    "ErrorCode": 404,
                    "ResponsePagePath": "/index.html",
                    "ResponseCode": "200",
                    "ErrorCachingMinTTL": ERROR_CACHING_MIN_TTL,
                }
            ],
        },
    }

    if certificate_arn:
        config["ViewerCertificate"] = {
            "ACMCertificateArn": certificate_arn,
            "SSLSupportMethod": "sni-only",
            "MinimumProtocolVersion": MINIMUM_PROTOCOL_VERSION,
        }
    else:
        config["ViewerCertificate"] = {"CloudFrontDefaultCertificate": True}

    return config


class DistributionManager:
    """Find, create and tear down the preview distribution."""

    def __init__(
        self,
        client: "CloudFrontClient",
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval
        self.clock = clock
        self.sleep = sleep
        self.now = now
        self.logger = get_logger(__name__)

    def find_by_alias(self, hostname: str) -> Optional[DistributionInfo]:
        """Return the distribution serving hostname, or None if there is none yet."""
        summary = find_distribution_by_alias(self.client, hostname)
        if summary is None:
            return None
        return DistributionInfo.from_summary(summary)

    def get(self, distribution_id: str) -> DistributionInfo:
        try:
            response = self.client.get_distribution(Id=distribution_id)
        except (ClientError, BotoCoreError) as e:
            raise wrap_aws_error(
                ErrorCode.LOOKUP_FAILED, "failed to get distribution", e, distributionId=distribution_id
            )
        return DistributionInfo.from_distribution(response["Distribution"], response.get("ETag"))

    def create(
        self,
        identity: EnvironmentIdentity,
        region: str,
        oac_id: str,
        certificate_arn: Optional[str] = None,
    ) -> DistributionInfo:
        """Create a distribution for the identity's hostname, bound to its bucket via the OAC."""
        machine = DistributionStateMachine(None)
        machine.transition(DistributionState.CREATING)

        caller_reference = f"{identity.bucket_name}-{int(self.now())}"
        config = build_distribution_config(identity, region, oac_id, caller_reference, certificate_arn)
        if not certificate_arn:
            self.logger.warning(
                "No certificate supplied; HTTPS on the custom hostname will not validate",
                hostname=identity.hostname,
            )

        try:
            response = self.client.create_distribution(DistributionConfig=config)  # type: ignore[arg-type]
        except (ClientError, BotoCoreError) as e:
            raise wrap_aws_error(
                ErrorCode.MUTATION_FAILED, "failed to create distribution", e, hostname=identity.hostname
            )

        info = DistributionInfo.from_distribution(response["Distribution"], response.get("ETag"))
        machine.distribution_id = info.id
        machine.transition(DistributionState.ENABLED)
        self.logger.info(
            "Distribution created",
            distributionId=info.id,
            hostname=identity.hostname,
            domainName=info.domain_name,
        )
        return info

    def get_or_create(
        self,
        identity: EnvironmentIdentity,
        region: str,
        oac_id: str,
        certificate_arn: Optional[str] = None,
    ) -> Tuple[DistributionInfo, bool]:
        """
        Reuse the distribution aliased to the hostname, or create one.

        Returns:
            (distribution, created)
        """
        existing = self.find_by_alias(identity.hostname)
        if existing is not None:
            self.logger.info("Using existing distribution", distributionId=existing.id, hostname=identity.hostname)
            if not existing.enabled:
                # Left behind by a cleanup that did not finish; it serves nothing
                self.logger.warning(
                    "Existing distribution is disabled; run cleanup again before deploying",
                    distributionId=existing.id,
                    hostname=identity.hostname,
                    status=existing.status,
                )
            return existing, False
        return self.create(identity, region, oac_id, certificate_arn), True

    def _get_config(self, distribution_id: str) -> Tuple[Dict[str, Any], str]:
        response = self.client.get_distribution_config(Id=distribution_id)
        return response["DistributionConfig"], response["ETag"]

    def wait_until_disabled(self, distribution_id: str) -> DistributionInfo:
        """
        Poll until the distribution is disabled and deployed, or the ceiling passes.

        Raises:
            WaitTimeoutError: The ceiling elapsed first. The disable was accepted,
                so a later run can pick up from here.
        """
        started = self.clock()
        deadline = started + self.wait_timeout
        polls = 0
        while True:
            info = self.get(distribution_id)
            polls += 1
            if info.deployed and not info.enabled:
                self.logger.info(
                    "Distribution disabled",
                    distributionId=distribution_id,
                    polls=polls,
                    waitedSeconds=round(self.clock() - started, 1),
                )
                return info

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise WaitTimeoutError(
                    f"distribution {distribution_id} did not reach disabled steady state "
                    f"within {int(self.wait_timeout)} seconds",
                    {"distributionId": distribution_id, "status": info.status, "polls": polls},
                )
            self.logger.debug("Waiting for distribution", distributionId=distribution_id, status=info.status)
            self.sleep(min(self.poll_interval, remaining))

    def teardown(self, distribution_id: str) -> DistributionStateMachine:
        """
        Disable, wait for steady state, then delete the distribution.

        Returns:
            The state machine, ending in ABSENT, with the transitions taken
        """
        logger = self.logger
        logger.info("Deleting distribution", distributionId=distribution_id)

        try:
            config, etag = self._get_config(distribution_id)
        except ClientError as e:
            if aws_error_code(e) == "NoSuchDistribution":
                logger.info("Distribution already deleted", distributionId=distribution_id)
                return DistributionStateMachine(distribution_id, DistributionState.ABSENT)
            raise wrap_aws_error(
                ErrorCode.LOOKUP_FAILED, "failed to get distribution config", e, distributionId=distribution_id
            )
        except BotoCoreError as e:
            raise wrap_aws_error(
                ErrorCode.LOOKUP_FAILED, "failed to get distribution config", e, distributionId=distribution_id
            )

        if config.get("Enabled"):
            machine = DistributionStateMachine(distribution_id, DistributionState.ENABLED)
            machine.transition(DistributionState.DISABLING)
            logger.info("Disabling distribution", distributionId=distribution_id)
            config["Enabled"] = False
            try:
                self.client.update_distribution(Id=distribution_id, IfMatch=etag, DistributionConfig=config)  # type: ignore[arg-type]
            except (ClientError, BotoCoreError) as e:
                raise wrap_aws_error(
                    ErrorCode.MUTATION_FAILED, "failed to disable distribution", e, distributionId=distribution_id
                )
        else:
            # Disabled by an earlier run; it may still be rolling out
            machine = DistributionStateMachine(distribution_id, DistributionState.DISABLING)

        self.wait_until_disabled(distribution_id)
        machine.transition(DistributionState.DISABLED)

        # The update invalidated the old ETag
        try:
            config, etag = self._get_config(distribution_id)
        except (ClientError, BotoCoreError) as e:
            raise wrap_aws_error(
                ErrorCode.LOOKUP_FAILED, "failed to get updated distribution config", e, distributionId=distribution_id
            )
        if config.get("Enabled"):
            raise AppError(
                ErrorCode.INVALID_STATE,
                f"distribution {distribution_id} was re-enabled; refusing to delete",
                {"distributionId": distribution_id},
            )

        machine.transition(DistributionState.DELETING)
        try:
            self.client.delete_distribution(Id=distribution_id, IfMatch=etag)
        except (ClientError, BotoCoreError) as e:
            raise wrap_aws_error(
                ErrorCode.MUTATION_FAILED, "failed to delete distribution", e, distributionId=distribution_id
            )
        machine.transition(DistributionState.ABSENT)

        logger.info(
            "Distribution deleted",
            distributionId=distribution_id,
            transitions=[state.value for state in machine.history],
        )
        return machine
