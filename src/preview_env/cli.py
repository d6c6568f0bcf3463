"""
Command-line entry point.

Usage:
    # Deploy PR #42 of "site"
    preview-env --action deploy --pr 42 --app site --domain preview.example.com \\
        --cert arn:aws:acm:us-east-1:123456789012:certificate/abc --source ./dist \\
        --repo-owner acme --repo-name site

    # Tear it down again
    preview-env --action cleanup --pr 42 --app site --domain preview.example.com \\
        --repo-owner acme --repo-name site

GITHUB_TOKEN enables the pull-request comment; without it the comment is skipped.
"""

import argparse
import sys
from typing import List, Optional

from .config import ACTIONS, PreviewConfig
from .controller import EnvironmentController
from .utils.errors import AppError, handle_error
from .utils.logging import bind_correlation_id, get_logger, new_correlation_id


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Deploy or clean up a pull-request preview environment")
    parser.add_argument("--action", choices=ACTIONS, default="deploy", help="Action to perform (default: deploy)")
    parser.add_argument("--pr", type=int, default=0, help="Pull request number")
    parser.add_argument("--app", default="", help="Application name")
    parser.add_argument("--region", default=None, help="AWS region (default: $AWS_REGION or us-east-1)")
    parser.add_argument("--domain", default="", help="Base domain (e.g., preview.yourapp.com)")
    parser.add_argument("--cert", default=None, help="ACM certificate ARN (deploy only)")
    parser.add_argument("--source", default="./dist", help="Source directory to upload (deploy only)")
    parser.add_argument("--repo-owner", dest="repo_owner", default="", help="GitHub repository owner")
    parser.add_argument("--repo-name", dest="repo_name", default="", help="GitHub repository name")
    parser.add_argument(
        "--wait-timeout",
        dest="wait_timeout",
        type=float,
        default=None,
        help="Seconds to wait for the distribution to disable (default: 1200)",
    )
    return parser.parse_args(argv)


def run(config: PreviewConfig, controller: Optional[EnvironmentController] = None) -> int:
    """Run one action and print the outcome. Returns the process exit code."""
    logger = get_logger(__name__)
    try:
        config.validate()
        bind_correlation_id(new_correlation_id(config.identity.bucket_name))
        controller = controller or EnvironmentController(config)

        if config.action == "cleanup":
            controller.cleanup()
            print("Cleanup completed successfully")
        else:
            controller.deploy()
            print("\n✓ Preview environment deployed successfully!")
            print(f"URL: {config.identity.url}")
            print("Note: Initial deployment may take 3-5 minutes for CloudFront to propagate globally.")
    except AppError as e:
        logger.error("Run failed", action=config.action, error=handle_error(e))
        label = "Cleanup" if config.action == "cleanup" else "Deployment"
        print(f"{label} failed: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error("Unexpected error", action=config.action, error=str(e))
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    return run(PreviewConfig.from_args(args))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
