"""
pandora - Personal image publishing tool

Commands:
    config: Write the YAML configuration file
    image:  Resize a single image into images/<yyyy>/<MM>/
    sync:   Mirror images/ and uploads/ into an S3-compatible bucket and
            publish images/metadata.json with blur placeholders
"""

__version__ = "1.0.0"

from .errors import (
    PandoraError,
    ConfigError,
    LocalIOError,
    StorageError,
    UploadError,
    ObjectTooLargeError,
    ListError,
    DeleteError,
    DigestError,
    ManifestError,
)
from .config import PandoraConfig, S3Settings, ConvertSettings, SyncSettings
from .image_metadata import ImageDigest, ImageMetadata
from .image_digest import BlurGenerator, is_supported_image
from .s3_client import BucketClient
from .sync_result import SyncFailure, SyncResult
from .syncer import DirectorySyncer
from .manifest import MetadataManifest
from .converter import ImageConverter

__all__ = [
    "PandoraError",
    "ConfigError",
    "LocalIOError",
    "StorageError",
    "UploadError",
    "ObjectTooLargeError",
    "ListError",
    "DeleteError",
    "DigestError",
    "ManifestError",
    "PandoraConfig",
    "S3Settings",
    "ConvertSettings",
    "SyncSettings",
    "ImageDigest",
    "ImageMetadata",
    "BlurGenerator",
    "is_supported_image",
    "BucketClient",
    "SyncFailure",
    "SyncResult",
    "DirectorySyncer",
    "MetadataManifest",
    "ImageConverter",
]
