"""
Content sync.

Uploads a built static site directory to the environment's S3 bucket, one object
per file, with a content type looked up from the file extension.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterator, Union

from botocore.exceptions import BotoCoreError, ClientError

from .utils.errors import AppError, ErrorCode, wrap_aws_error
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_s3.client import S3Client

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: Dict[str, str] = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".xml": "application/xml",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
}


@dataclass(frozen=True)
class ContentItem:
    key: str
    path: Path
    content_type: str


def content_type_for(filename: Union[str, Path]) -> str:
    """Exact table lookup on the lowercased extension; unknown extensions are octet-stream."""
    ext = os.path.splitext(str(filename))[1].lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def iter_content_items(source_dir: Union[str, Path]) -> Iterator[ContentItem]:
    """
    Walk a directory tree and yield one ContentItem per regular file.

    Keys are paths relative to the source root with forward slashes. Files are
    yielded in sorted order.
    """
    root = Path(source_dir)
    if not root.is_dir():
        raise AppError(
            ErrorCode.CONFIGURATION_ERROR,
            f"Source directory does not exist: {source_dir}",
            {"sourceDir": str(source_dir)},
        )

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        key = path.relative_to(root).as_posix()
        yield ContentItem(key=key, path=path, content_type=content_type_for(path))


def sync_directory(client: "S3Client", source_dir: Union[str, Path], bucket: str) -> int:
    """
    Upload every file under source_dir to the bucket.

    Args:
        client: boto3 S3 client
        source_dir: Local build output directory
        bucket: Target bucket name

    Returns:
        Number of files uploaded

    Raises:
        AppError: On the first file that cannot be read or uploaded. Nothing is
            retried and no partial count is reported.
    """
    logger = get_logger(__name__)
    logger.info("Syncing files to S3", sourceDir=str(source_dir), bucket=bucket)

    file_count = 0
    for item in iter_content_items(source_dir):
        try:
            body = item.path.read_bytes()
        except OSError as e:
            raise AppError(
                ErrorCode.MUTATION_FAILED,
                f"failed to read file {item.path}: {e}",
                {"key": item.key},
            )

        try:
            client.put_object(
                Bucket=bucket,
                Key=item.key,
                Body=body,
                ContentType=item.content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise wrap_aws_error(ErrorCode.MUTATION_FAILED, f"failed to upload {item.key}", e, key=item.key)

        logger.debug("Uploaded file", key=item.key, contentType=item.content_type)
        file_count += 1

    logger.info("Uploaded files", bucket=bucket, fileCount=file_count)
    return file_count
