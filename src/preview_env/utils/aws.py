"""
boto3 client access.

Clients are cached per (service, region) so a run reuses one client per service.
"""

import os
from typing import Any, Optional

import boto3

# Cache boto3 clients
_clients: dict = {}

DEFAULT_REGION = "us-east-1"


def default_region() -> str:
    """Region from the environment, falling back to us-east-1."""
    return os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION


def get_client(service: str, region: Optional[str] = None) -> Any:
    """Get a cached boto3 client."""
    region = region or default_region()
    key = (service, region)
    if key not in _clients:
        _clients[key] = boto3.client(service, region_name=region)
    return _clients[key]


def clear_clients() -> None:
    """Drop cached clients (call in test teardown)."""
    _clients.clear()
