"""
Environment controller.

Drives the deploy and cleanup runs for one preview environment. Steps run strictly
in order because each one consumes what the previous produced (an OAC id, a
distribution ARN, an edge domain). Every step is find-before-create or
match-before-delete, so a failed run is fixed by running it again; nothing is
rolled back and nothing is locked.
"""

from typing import Any, Callable, Optional, TypeVar

from .access_control import delete_oac, get_or_create_oac
from .bucket import delete_bucket, ensure_bucket
from .bucket_policy import attach_bucket_policy
from .config import PreviewConfig
from .content_sync import sync_directory
from .distribution import DistributionManager
from .dns_records import delete_cname, resolve_zone, upsert_cname
from .invalidation import invalidate_all
from .notifier import GitHubNotifier, cleanup_comment, deploy_comment
from .utils.aws import get_client
from .utils.errors import AppError, annotate_step
from .utils.logging import get_logger

T = TypeVar("T")


class EnvironmentController:
    """Deploy and cleanup entry points for one environment identity."""

    def __init__(
        self,
        config: PreviewConfig,
        s3_client: Any = None,
        cloudfront_client: Any = None,
        route53_client: Any = None,
        notifier: Any = None,
        distributions: Optional[DistributionManager] = None,
    ) -> None:
        self.config = config
        self.identity = config.identity
        self.s3 = s3_client or get_client("s3", config.region)
        self.cloudfront = cloudfront_client or get_client("cloudfront", config.region)
        self.route53 = route53_client or get_client("route53", config.region)
        if notifier is None and config.github_token:
            notifier = GitHubNotifier(config.github_token)
        self.notifier = notifier
        self.distributions = distributions or DistributionManager(
            self.cloudfront,
            wait_timeout=config.wait_timeout_seconds,
            poll_interval=config.poll_interval_seconds,
        )
        self.logger = get_logger(__name__)

    def _step(self, step: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run one step; any failure comes back annotated with the step name."""
        self.logger.info("Starting step", step=step)
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            raise annotate_step(e, step) from e

    def deploy(self) -> str:
        """
        Create or update the environment.

        Returns:
            The environment hostname

        Raises:
            AppError: From the first failing step; earlier resources are left in place
        """
        identity = self.identity
        config = self.config
        self.logger.info("Starting deployment", bucket=identity.bucket_name, hostname=identity.hostname)

        self._step("create S3 bucket", ensure_bucket, self.s3, identity.bucket_name, config.region)
        self._step("sync files to S3", sync_directory, self.s3, config.source_dir, identity.bucket_name)
        oac_id = self._step(
            "manage origin access control",
            get_or_create_oac,
            self.cloudfront,
            identity.oac_name,
            f"OAC for PR #{identity.key} preview environment",
        )
        distribution, _ = self._step(
            "manage CloudFront distribution",
            self.distributions.get_or_create,
            identity,
            config.region,
            oac_id,
            config.certificate_arn,
        )
        # Needs the distribution ARN, so it cannot run before the distribution exists
        self._step("set bucket policy", attach_bucket_policy, self.s3, identity.bucket_name, distribution.arn)
        self._step("invalidate CloudFront cache", invalidate_all, self.cloudfront, distribution.id)
        zone_id = self._step("resolve hosted zone", resolve_zone, self.route53, config.base_domain)
        self._step(
            "update Route53",
            upsert_cname,
            self.route53,
            zone_id,
            identity.hostname,
            distribution.domain_name,
        )

        self._notify(deploy_comment(identity))
        self.logger.info("Deployment complete", url=identity.url, distributionId=distribution.id)
        return identity.hostname

    def cleanup(self) -> None:
        """
        Remove the environment's resources.

        Missing resources count as removed. DNS and OAC removal are best-effort;
        distribution and bucket removal failures stop the run.
        """
        identity = self.identity
        self.logger.info("Starting cleanup", bucket=identity.bucket_name, hostname=identity.hostname)

        distribution = self._step("find distribution", self.distributions.find_by_alias, identity.hostname)
        if distribution is not None:
            self._step("delete CloudFront distribution", self.distributions.teardown, distribution.id)
        else:
            self.logger.info("No CloudFront distribution found", hostname=identity.hostname)

        self._best_effort("delete Route53 record", self._delete_dns_record)
        self._best_effort("delete origin access control", delete_oac, self.cloudfront, identity.oac_name)

        self._step("delete S3 bucket", delete_bucket, self.s3, identity.bucket_name)

        self._notify(cleanup_comment(identity))
        self.logger.info("Cleanup complete", hostname=identity.hostname)

    def _delete_dns_record(self) -> bool:
        zone_id = resolve_zone(self.route53, self.config.base_domain)
        return delete_cname(self.route53, zone_id, self.identity.hostname)

    def _best_effort(self, step: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            self._step(step, fn, *args)
        except AppError as e:
            self.logger.warning("Step failed, continuing cleanup", step=step, error=e.message)

    def _notify(self, text: str) -> bool:
        """Post a PR comment. Failures are logged, never raised."""
        if self.notifier is None:
            self.logger.info("Skipping GitHub comment (no GitHub token provided)")
            return False
        config = self.config
        try:
            self.notifier.post_comment(config.repo_owner, config.repo_name, config.pr_number, text)
        except Exception as e:
            self.logger.warning("Failed to post GitHub comment", error=str(e))
            return False
        return True
