"""
Test fixtures for preview environment tests.

Provides fake AWS credentials, a moto-backed S3 client, in-memory CloudFront and
Route53 fakes, a fake clock and a sample build directory.
"""

import os
from pathlib import Path
from typing import Any, Dict, Generator

import boto3
import pytest
from moto import mock_aws

from preview_env.config import PreviewConfig
from preview_env.identity import EnvironmentIdentity
from preview_env.utils.aws import clear_clients
from tests.unit.fakes import FakeClock, FakeCloudFront, FakeRoute53, RecordingNotifier


@pytest.fixture
def aws_credentials() -> None:
    """Set fake AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture(autouse=True)
def reset_clients() -> Generator[None, None, None]:
    """Never leak cached boto3 clients between tests."""
    clear_clients()
    yield
    clear_clients()


@pytest.fixture
def s3_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Mock S3 client (no buckets yet)."""
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def fake_cloudfront() -> FakeCloudFront:
    return FakeCloudFront()


@pytest.fixture
def fake_route53() -> FakeRoute53:
    return FakeRoute53()


@pytest.fixture
def hosted_zone_id(fake_route53: FakeRoute53) -> str:
    """Hosted zone for the base domain, as bootstrapped outside this tool."""
    return fake_route53.add_zone("example.test")


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def identity() -> EnvironmentIdentity:
    return EnvironmentIdentity(42, "site", "example.test")


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A built static site with three files, one in a subdirectory."""
    root = tmp_path / "dist"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text("<!doctype html><div id=app></div>")
    (root / "assets" / "app.js").write_text("console.log('preview')")
    (root / "favicon.ico").write_bytes(b"\x00\x00\x01\x00")
    return root


@pytest.fixture
def preview_config(site_dir: Path) -> PreviewConfig:
    """Config for PR #42 of app "site" on example.test."""
    return PreviewConfig(
        pr_number=42,
        app_name="site",
        base_domain="example.test",
        repo_owner="acme",
        repo_name="site",
        region="us-east-1",
        certificate_arn="arn:aws:acm:us-east-1:123456789012:certificate/abc",
        source_dir=str(site_dir),
    )


@pytest.fixture
def cli_args() -> Dict[str, Any]:
    """Minimal valid deploy flags (source directory added per test)."""
    return {
        "--pr": "42",
        "--app": "site",
        "--domain": "example.test",
        "--repo-owner": "acme",
        "--repo-name": "site",
    }
