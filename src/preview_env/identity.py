"""
Environment identity.

Every resource name of a preview environment is derived from the environment key
(the pull-request number) and the application name, so re-running against the
same key always addresses the same resources. Nothing else is stored.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EnvironmentIdentity:
    """Deterministic names for one preview environment."""

    key: int
    app_name: str
    base_domain: str

    @property
    def bucket_name(self) -> str:
        """S3 bucket name, e.g. ``pr-42-site``. Also the DNS label of the hostname."""
        return f"pr-{self.key}-{self.app_name}"

    @property
    def hostname(self) -> str:
        return f"{self.bucket_name}.{self.base_domain}"

    @property
    def fqdn(self) -> str:
        """Hostname as Route53 returns it (trailing dot)."""
        return f"{self.hostname}."

    @property
    def url(self) -> str:
        return f"https://{self.hostname}"

    @property
    def oac_name(self) -> str:
        return f"OAC-{self.bucket_name}"

    @property
    def origin_id(self) -> str:
        return f"S3-{self.bucket_name}"

    def origin_domain(self, region: str) -> str:
        """Regional S3 endpoint CloudFront reads the bucket from."""
        return f"{self.bucket_name}.s3.{region}.amazonaws.com"
