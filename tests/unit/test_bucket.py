"""Tests for preview bucket lifecycle and bucket policy."""

import json
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from preview_env import bucket, bucket_policy
from preview_env.utils.errors import AppError, ErrorCode

DISTRIBUTION_ARN = "arn:aws:cloudfront::123456789012:distribution/E2ABCDEF"


class TestEnsureBucket:
    """Tests for ensure_bucket."""

    def test_creates_missing_bucket(self, s3_client: Any) -> None:
        """A missing bucket is created."""
        assert bucket.ensure_bucket(s3_client, "pr-42-site", "us-east-1") is True

        assert bucket.bucket_exists(s3_client, "pr-42-site") is True

    def test_existing_bucket_is_reused(self, s3_client: Any) -> None:
        """A second call does not create anything."""
        bucket.ensure_bucket(s3_client, "pr-42-site", "us-east-1")

        assert bucket.ensure_bucket(s3_client, "pr-42-site", "us-east-1") is False
        assert [b["Name"] for b in s3_client.list_buckets()["Buckets"]] == ["pr-42-site"]

    def test_location_constraint_outside_us_east_1(self, aws_credentials: None) -> None:
        """Other regions pass a LocationConstraint."""
        with mock_aws():
            client = boto3.client("s3", region_name="eu-west-1")

            bucket.ensure_bucket(client, "pr-42-site", "eu-west-1")

            assert client.get_bucket_location(Bucket="pr-42-site")["LocationConstraint"] == "eu-west-1"

    def test_create_failure_is_mutation_error(self) -> None:
        """A rejected create is wrapped with the bucket name."""
        client = MagicMock()
        client.head_bucket.side_effect = ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")
        client.create_bucket.side_effect = ClientError(
            {"Error": {"Code": "BucketAlreadyExists", "Message": "taken"}}, "CreateBucket"
        )

        with pytest.raises(AppError) as exc_info:
            bucket.ensure_bucket(client, "pr-42-site", "us-east-1")

        assert exc_info.value.error_code == ErrorCode.MUTATION_FAILED
        assert exc_info.value.details == {"awsErrorCode": "BucketAlreadyExists", "bucket": "pr-42-site"}

    def test_head_bucket_forbidden_is_lookup_error(self) -> None:
        """Only not-found means absent; access denied is an error."""
        client = MagicMock()
        client.head_bucket.side_effect = ClientError({"Error": {"Code": "403", "Message": "Forbidden"}}, "HeadBucket")

        with pytest.raises(AppError) as exc_info:
            bucket.ensure_bucket(client, "pr-42-site", "us-east-1")

        assert exc_info.value.error_code == ErrorCode.LOOKUP_FAILED
        client.create_bucket.assert_not_called()


class TestDeleteBucket:
    """Tests for delete_bucket."""

    def test_missing_bucket_is_success(self, s3_client: Any) -> None:
        """Deleting a bucket that is already gone returns False."""
        assert bucket.delete_bucket(s3_client, "pr-42-site") is False

    def test_empties_and_deletes(self, s3_client: Any) -> None:
        """All objects are removed, then the bucket."""
        s3_client.create_bucket(Bucket="pr-42-site")
        for i in range(5):
            s3_client.put_object(Bucket="pr-42-site", Key=f"assets/{i}.js", Body=b"x")
        s3_client.put_object(Bucket="pr-42-site", Key="index.html", Body=b"<html>")

        assert bucket.delete_bucket(s3_client, "pr-42-site") is True

        assert bucket.bucket_exists(s3_client, "pr-42-site") is False

    def test_delete_objects_errors_stop_cleanup(self) -> None:
        """Per-object delete errors fail the step before DeleteBucket."""
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.return_value = [{"Contents": [{"Key": "index.html"}]}]
        client.get_paginator.return_value = paginator
        client.delete_objects.return_value = {
            "Errors": [{"Key": "index.html", "Code": "AccessDenied", "Message": "Access Denied"}]
        }

        with pytest.raises(AppError) as exc_info:
            bucket.delete_bucket(client, "pr-42-site")

        assert exc_info.value.error_code == ErrorCode.MUTATION_FAILED
        assert "index.html" in exc_info.value.message
        client.delete_bucket.assert_not_called()


class TestBucketPolicy:
    """Tests for the CloudFront bucket policy."""

    def test_policy_is_scoped_to_bucket_and_distribution(self) -> None:
        """The statement names the bucket objects and the distribution ARN."""
        policy = bucket_policy.build_bucket_policy("pr-42-site", DISTRIBUTION_ARN)

        assert policy == {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "AllowCloudFrontServicePrincipal",
                    "Effect": "Allow",
                    "Principal": {"Service": "cloudfront.amazonaws.com"},
                    "Action": "s3:GetObject",
                    "Resource": "arn:aws:s3:::pr-42-site/*",
                    "Condition": {"StringEquals": {"AWS:SourceArn": DISTRIBUTION_ARN}},
                }
            ],
        }

    def test_attach_overwrites_existing_policy(self, s3_client: Any) -> None:
        """Attaching replaces whatever policy was there."""
        s3_client.create_bucket(Bucket="pr-42-site")
        bucket_policy.attach_bucket_policy(s3_client, "pr-42-site", "arn:aws:cloudfront::123456789012:distribution/EOLD")

        bucket_policy.attach_bucket_policy(s3_client, "pr-42-site", DISTRIBUTION_ARN)

        stored = json.loads(s3_client.get_bucket_policy(Bucket="pr-42-site")["Policy"])
        assert len(stored["Statement"]) == 1
        assert stored["Statement"][0]["Condition"]["StringEquals"]["AWS:SourceArn"] == DISTRIBUTION_ARN

    def test_attach_failure_is_mutation_error(self) -> None:
        """A rejected policy is wrapped."""
        client = MagicMock()
        client.put_bucket_policy.side_effect = ClientError(
            {"Error": {"Code": "MalformedPolicy", "Message": "Policy has invalid resource"}}, "PutBucketPolicy"
        )

        with pytest.raises(AppError) as exc_info:
            bucket_policy.attach_bucket_policy(client, "pr-42-site", DISTRIBUTION_ARN)

        assert exc_info.value.error_code == ErrorCode.MUTATION_FAILED
        assert exc_info.value.details["awsErrorCode"] == "MalformedPolicy"
