"""
SyncResult - Outcome of syncing a file, a directory or a whole run.
"""

import time
from dataclasses import dataclass, field
from typing import List

from .errors import PandoraError
from .image_metadata import ImageMetadata


@dataclass(frozen=True)
class SyncFailure:
    """
    A contained failure.

    Attributes:
        kind: Error kind (local_io, list, upload, object_too_large, ...)
        path: Local path or object key the failure belongs to
        message: Underlying cause
    """
    kind: str
    path: str
    message: str

    @classmethod
    def from_error(cls, path: str, error: Exception) -> 'SyncFailure':
        kind = error.kind if isinstance(error, PandoraError) else 'error'
        return cls(kind=kind, path=path, message=str(error))

    def __str__(self) -> str:
        return f"[{self.kind}] {self.path}: {self.message}"


@dataclass
class SyncResult:
    """
    Aggregated sync outcome.

    Attributes:
        metadata: Image metadata produced, in no particular order
        failures: Contained failures
        uploaded: Files uploaded
        skipped: Files already in sync (sizes matched)
        bytes_uploaded: Total bytes uploaded
        start_time: Start timestamp
    """
    metadata: List[ImageMetadata] = field(default_factory=list)
    failures: List[SyncFailure] = field(default_factory=list)
    uploaded: int = 0
    skipped: int = 0
    bytes_uploaded: int = 0
    start_time: float = field(default_factory=time.time)

    def merge(self, other: 'SyncResult') -> 'SyncResult':
        """Fold another result into this one and return self."""
        self.metadata.extend(other.metadata)
        self.failures.extend(other.failures)
        self.uploaded += other.uploaded
        self.skipped += other.skipped
        self.bytes_uploaded += other.bytes_uploaded
        self.start_time = min(self.start_time, other.start_time)
        return self

    def fail(self, path: str, error: Exception) -> SyncFailure:
        failure = SyncFailure.from_error(path, error)
        self.failures.append(failure)
        return failure

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    def summary(self) -> str:
        return (
            f"{self.uploaded} uploaded, {self.skipped} unchanged, "
            f"{self.failed} failed, {len(self.metadata)} images"
        )
