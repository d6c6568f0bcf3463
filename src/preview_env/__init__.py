"""Per-pull-request static site preview environments on S3, CloudFront and Route53."""

from .config import PreviewConfig
from .controller import EnvironmentController
from .identity import EnvironmentIdentity

__all__ = ["EnvironmentController", "EnvironmentIdentity", "PreviewConfig"]

__version__ = "0.1.0"
