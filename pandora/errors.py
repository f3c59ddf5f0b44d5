"""
Errors - Exception hierarchy shared by the gateway, the sync engine and the CLI.
"""

from typing import Dict, List, Optional


class PandoraError(Exception):
    """Base class for all pandora errors."""

    kind = 'error'


class ConfigError(PandoraError):
    """Configuration file missing, unreadable or invalid."""

    kind = 'config'


class LocalIOError(PandoraError):
    """Stat or read failure on the local filesystem."""

    kind = 'local_io'

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class StorageError(PandoraError):
    """
    Failure talking to the object store.

    Attributes:
        key: Object key or prefix involved, if any
        bucket_not_found: True when the provider reported NoSuchBucket
    """

    kind = 'storage'

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        bucket_not_found: bool = False
    ):
        super().__init__(message)
        self.key = key
        self.bucket_not_found = bucket_not_found


class UploadError(StorageError):
    kind = 'upload'


class ObjectTooLargeError(UploadError):
    """Object exceeds the provider's single PUT ceiling (5GB on AWS)."""

    kind = 'object_too_large'


class ListError(StorageError):
    """
    Listing failed part way through.

    Attributes:
        partial: Objects paginated before the failure, key -> size
    """

    kind = 'list'

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        bucket_not_found: bool = False,
        partial: Optional[Dict[str, int]] = None
    ):
        super().__init__(message, key=key, bucket_not_found=bucket_not_found)
        self.partial = partial or {}


class DeleteError(StorageError):
    """
    Batch delete failed.

    Attributes:
        object_errors: (key, message) pairs reported per object
    """

    kind = 'delete'

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        bucket_not_found: bool = False,
        object_errors: Optional[List[tuple]] = None
    ):
        super().__init__(message, key=key, bucket_not_found=bucket_not_found)
        self.object_errors = object_errors or []


class DigestError(PandoraError):
    kind = 'digest'


class ManifestError(PandoraError):
    """Manifest could not be serialized or stored."""

    kind = 'manifest'
