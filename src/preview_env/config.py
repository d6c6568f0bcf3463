"""
Run configuration.

Collects command-line flags and environment variables into one validated object.
Validation happens before any AWS call is made.
"""

import os
import re
from dataclasses import dataclass
from typing import Mapping, NoReturn, Optional

from .identity import EnvironmentIdentity
from .utils.aws import default_region
from .utils.errors import AppError, ErrorCode

ACTIONS = ("deploy", "cleanup")

# Bucket names allow lowercase letters, digits and hyphens; the app name ends up in one.
APP_NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")

# S3 bucket names are capped at 63 characters.
MAX_BUCKET_NAME_LENGTH = 63

DEFAULT_WAIT_TIMEOUT_SECONDS = 20 * 60
DEFAULT_POLL_INTERVAL_SECONDS = 15.0


def get_env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Read an environment variable, treating empty strings as unset."""
    source = os.environ if environ is None else environ
    value = source.get(name)
    return value if value else default


@dataclass
class PreviewConfig:
    """Everything one deploy or cleanup run needs."""

    pr_number: int
    app_name: str
    base_domain: str
    repo_owner: str
    repo_name: str
    action: str = "deploy"
    region: str = "us-east-1"
    certificate_arn: Optional[str] = None
    source_dir: str = "./dist"
    github_token: Optional[str] = None
    wait_timeout_seconds: float = DEFAULT_WAIT_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS

    @property
    def identity(self) -> EnvironmentIdentity:
        return EnvironmentIdentity(self.pr_number, self.app_name, self.base_domain)

    def validate(self) -> "PreviewConfig":
        """
        Check required parameters.

        Returns:
            self, for chaining

        Raises:
            AppError: CONFIGURATION_ERROR naming the offending parameter
        """
        if self.action not in ACTIONS:
            _config_error(f"Action must be one of {', '.join(ACTIONS)} (--action)", "action")
        if not self.pr_number or self.pr_number <= 0:
            _config_error("PR number is required (--pr)", "pr")
        if not self.app_name:
            _config_error("App name is required (--app)", "app")
        if not APP_NAME_PATTERN.match(self.app_name):
            _config_error(
                "App name may only contain lowercase letters, digits and hyphens (--app)", "app"
            )
        if len(self.identity.bucket_name) > MAX_BUCKET_NAME_LENGTH:
            _config_error(
                f"Bucket name {self.identity.bucket_name} is longer than {MAX_BUCKET_NAME_LENGTH} characters",
                "app",
            )
        if not self.base_domain:
            _config_error("Base domain is required (--domain)", "domain")
        if not self.region:
            _config_error("Region is required (--region)", "region")
        if not self.repo_owner:
            _config_error("Repository owner is required (--repo-owner)", "repo-owner")
        if not self.repo_name:
            _config_error("Repository name is required (--repo-name)", "repo-name")
        if self.wait_timeout_seconds <= 0:
            _config_error("Wait timeout must be positive (--wait-timeout)", "wait-timeout")
        if self.action == "deploy" and not os.path.isdir(self.source_dir):
            _config_error(f"Source directory does not exist: {self.source_dir} (--source)", "source")
        return self

    @classmethod
    def from_args(cls, args: object, environ: Optional[Mapping[str, str]] = None) -> "PreviewConfig":
        """Build a config from parsed argparse flags plus the environment."""
        return cls(
            pr_number=getattr(args, "pr", 0) or 0,
            app_name=getattr(args, "app", "") or "",
            base_domain=(getattr(args, "domain", "") or "").rstrip(".").lower(),
            repo_owner=getattr(args, "repo_owner", "") or "",
            repo_name=getattr(args, "repo_name", "") or "",
            action=getattr(args, "action", "deploy") or "deploy",
            region=getattr(args, "region", None) or get_env("AWS_REGION", environ=environ) or default_region(),
            certificate_arn=getattr(args, "cert", None) or None,
            source_dir=getattr(args, "source", None) or "./dist",
            github_token=get_env("GITHUB_TOKEN", environ=environ),
            wait_timeout_seconds=_wait_timeout(getattr(args, "wait_timeout", None)),
        )


def _wait_timeout(value: Optional[float]) -> float:
    # None means the flag was not given; 0 is left for validate() to reject
    return DEFAULT_WAIT_TIMEOUT_SECONDS if value is None else float(value)


def _config_error(message: str, parameter: str) -> NoReturn:
    raise AppError(ErrorCode.CONFIGURATION_ERROR, message, {"parameter": parameter})
