"""
ImageMetadata - Manifest record for a single synced image.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageDigest:
    """
    Dimensions and blur placeholder derived from image bytes.

    Attributes:
        width: Original width in pixels
        height: Original height in pixels
        blur_data_url: data URI of the tiny WEBP placeholder
    """
    width: int
    height: int
    blur_data_url: str

    def with_path(self, path: str) -> 'ImageMetadata':
        return ImageMetadata(
            path=path,
            width=self.width,
            height=self.height,
            blur_data_url=self.blur_data_url,
        )


@dataclass(frozen=True)
class ImageMetadata:
    """
    Metadata for one image stored in the bucket.

    Attributes:
        path: Object key of the image
        width: Original width in pixels
        height: Original height in pixels
        blur_data_url: data URI of the tiny WEBP placeholder
    """
    path: str
    width: int
    height: int
    blur_data_url: str

    def to_dict(self) -> dict:
        return {
            'path': self.path,
            'width': self.width,
            'height': self.height,
            'blurDataURL': self.blur_data_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ImageMetadata':
        return cls(
            path=data['path'],
            width=int(data['width']),
            height=int(data['height']),
            blur_data_url=data['blurDataURL'],
        )
