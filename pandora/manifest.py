"""
MetadataManifest - The images/metadata.json document listing every synced image.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .errors import ManifestError, StorageError
from .image_metadata import ImageMetadata


METADATA_KEY = 'images/metadata.json'


@dataclass
class MetadataManifest:
    """
    Aggregated image metadata, rewritten in full on every sync.

    Records are serialized sorted by path, so an unchanged tree always
    produces the same bytes.

    Attributes:
        records: Image metadata records
        key: Object key the manifest is stored under
    """
    records: List[ImageMetadata] = field(default_factory=list)
    key: str = METADATA_KEY

    @classmethod
    def from_records(cls, records: Iterable[ImageMetadata], key: str = METADATA_KEY) -> 'MetadataManifest':
        return cls(records=list(records), key=key)

    @property
    def total_images(self) -> int:
        return len(self.records)

    def to_json(self) -> bytes:
        """
        Serialize to a JSON array.

        Raises:
            ManifestError: If a record cannot be serialized
        """
        try:
            ordered = sorted(self.records, key=lambda r: r.path)
            return json.dumps([r.to_dict() for r in ordered], ensure_ascii=False).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise ManifestError(f"Failed to generate the JSON file for image metadata: {e}") from e

    def upload(self, bucket_client, logger: Optional[logging.Logger] = None) -> int:
        """
        Store the manifest in the bucket and wait until it is readable.

        Args:
            bucket_client: BucketClient used for the upload
            logger: Optional logger instance

        Returns:
            Size of the uploaded document in bytes

        Raises:
            ManifestError: If serialization or the upload fails
        """
        logger = logger or logging.getLogger(__name__)
        body = self.to_json()

        logger.info(f"Uploading image metadata for {self.total_images} images to {self.key}")
        try:
            bucket_client.upload_object(self.key, body, content_type='application/json')
        except StorageError as e:
            raise ManifestError(f"Couldn't upload image meta file {self.key}: {e}") from e

        return len(body)
