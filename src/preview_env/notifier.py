"""
Pull-request notifications.

Posts the deploy and cleanup status comments to the GitHub pull request. A failed
comment never fails the run; the controller logs it as a warning.
"""

from typing import Any, Dict, Optional

import requests

from .identity import EnvironmentIdentity
from .utils.errors import AppError, ErrorCode
from .utils.logging import get_logger

GITHUB_API_URL = "https://api.github.com"
REQUEST_TIMEOUT_SECONDS = 10


def deploy_comment(identity: EnvironmentIdentity) -> str:
    return (
        "## Preview Environment Deployed Successfully! 🚀\n"
        "\n"
        "Your preview environment is now available at:\n"
        f"**{identity.url}**\n"
        "\n"
        "Note: Initial deployment may take 3-5 minutes for CloudFront to propagate globally."
    )


def cleanup_comment(identity: EnvironmentIdentity) -> str:
    return (
        "## Preview Environment Cleanup Complete 🧹\n"
        "\n"
        f"The preview environment for PR #{identity.key} has been successfully cleaned up.\n"
        "\n"
        "All resources have been removed:\n"
        "- CloudFront distribution\n"
        "- Route53 DNS records\n"
        "- S3 bucket and contents"
    )


class GitHubNotifier:
    """Creates issue comments through the GitHub REST API."""

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_URL,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def post_comment(self, repo_owner: str, repo_name: str, issue_number: int, text: str) -> Dict[str, Any]:
        """
        Post a comment on an issue or pull request.

        Returns:
            The created comment as returned by GitHub

        Raises:
            AppError: NOTIFICATION_FAILED on transport or HTTP errors
        """
        url = f"{self.api_url}/repos/{repo_owner}/{repo_name}/issues/{issue_number}/comments"
        try:
            response = self.session.post(
                url,
                json={"body": text},
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise AppError(
                ErrorCode.NOTIFICATION_FAILED,
                f"failed to create comment: {e}",
                {"repo": f"{repo_owner}/{repo_name}", "issueNumber": issue_number},
            )

        get_logger(__name__).info("GitHub PR comment posted", repo=f"{repo_owner}/{repo_name}", issueNumber=issue_number)
        return response.json()
