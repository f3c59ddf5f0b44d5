"""
BlurGenerator - Builds blur placeholders and reads dimensions from image bytes.
"""

import base64
import io
import logging
import os
from typing import Optional

from PIL import Image

from .errors import DigestError
from .image_metadata import ImageDigest


SUPPORTED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'avif', 'webp', 'gif', 'apng', 'svg', 'bmp'}

BLUR_DATA_PREFIX = 'data:image/webp;base64,'
BLUR_WIDTH = 8
BLUR_QUALITY = 1


def image_extension(name: str) -> str:
    """Return the lowercase extension of a filename without the dot."""
    return os.path.splitext(name)[1].lstrip('.').lower()


def is_supported_image(name: str) -> bool:
    """True if the filename has a supported image extension (case-insensitive)."""
    return image_extension(name) in SUPPORTED_EXTENSIONS


def webp_color_mode(img: Image.Image) -> Image.Image:
    """Convert image to a color mode the WEBP encoder accepts, keeping alpha."""
    if img.mode in ('RGB', 'RGBA'):
        return img
    if img.mode in ('P', 'LA', 'PA') or 'transparency' in img.info:
        return img.convert('RGBA')
    return img.convert('RGB')


def flatten_on_white(img: Image.Image) -> Image.Image:
    """Composite any transparency onto a white background and return RGB."""
    if img.mode == 'RGB':
        return img
    if img.mode not in ('RGBA', 'LA', 'P', 'PA') and 'transparency' not in img.info:
        return img.convert('RGB')
    rgba = img.convert('RGBA')
    background = Image.new('RGB', rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel('A'))
    return background


class BlurGenerator:
    """
    Generates tiny WEBP placeholders using Pillow.

    The placeholder is shown by the consumer while the real image is
    lazy-loaded; the reported width and height are the original dimensions.
    """

    def __init__(
        self,
        width: int = BLUR_WIDTH,
        quality: int = BLUR_QUALITY,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize blur generator.

        Args:
            width: Placeholder width in pixels (default: 8)
            quality: WEBP quality for the placeholder (default: 1)
            logger: Optional logger instance
        """
        self.width = width
        self.quality = quality
        self.logger = logger or logging.getLogger(__name__)

    def digest(self, content: bytes, name: str = '') -> Optional[ImageDigest]:
        """
        Build the digest for an image.

        Args:
            content: Raw image bytes
            name: Filename or key, used for log messages only

        Returns:
            ImageDigest, or None if the image could not be decoded
        """
        try:
            return self.generate(content)
        except DigestError as e:
            self.logger.warning(f"Failed to generate the blur image for {name or 'image'}: {e}")
            return None

    def generate(self, content: bytes) -> ImageDigest:
        """
        Build the digest for an image.

        Raises:
            DigestError: If decoding, resizing or encoding fails
        """
        try:
            img = Image.open(io.BytesIO(content))
            width, height = img.size
        except Exception as e:
            raise DigestError(f"cannot read image size: {e}") from e

        if width <= 0 or height <= 0:
            raise DigestError(f"invalid image size {width}x{height}")

        try:
            img = webp_color_mode(img)
            blur = img.resize(self.placeholder_size(width, height), Image.Resampling.LANCZOS)

            output = io.BytesIO()
            blur.save(output, format='WEBP', quality=self.quality)
        except Exception as e:
            raise DigestError(f"cannot encode placeholder: {e}") from e

        encoded = base64.b64encode(output.getvalue()).decode('ascii')
        return ImageDigest(
            width=width,
            height=height,
            blur_data_url=BLUR_DATA_PREFIX + encoded,
        )

    def placeholder_size(self, width: int, height: int) -> tuple:
        """Placeholder dimensions, preserving the aspect ratio."""
        return self.width, max(1, round(height * self.width / width))
