"""
ImageConverter - Resizes a single image and files it under images/<yyyy>/<MM>/.
"""

import io
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Tuple, Union

import pyperclip
from PIL import Image, ImageOps

from .errors import LocalIOError
from .image_digest import flatten_on_white


DATE_PATTERN = re.compile(r'^\d{8}$')
DATE_FORMAT = '%Y%m%d'

DEFAULT_WIDTH = 1280

# Link prefix when convert.linkBase is not configured.
DEFAULT_LINK_BASE = '/images'


def parse_date(text: str) -> date:
    """
    Parse a yyyyMMdd date string.

    Raises:
        ValueError: If the string is not a valid yyyyMMdd date
    """
    if not DATE_PATTERN.match(text or ''):
        raise ValueError(f"This is an invalid local date format {text}")
    return datetime.strptime(text, DATE_FORMAT).date()


class ImageConverter:
    """
    Converts images to the desired format, size and naming.
    """

    # extension -> Pillow output format
    OUTPUT_FORMATS = {
        'jpg': 'JPEG',
        'jpeg': 'JPEG',
        'png': 'PNG',
        'apng': 'PNG',
        'avif': 'AVIF',
        'webp': 'WEBP',
        'gif': 'GIF',
        'bmp': 'BMP',
    }

    LOSSY_FORMATS = {'JPEG', 'WEBP', 'AVIF'}

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = 0,
        output_format: str = 'jpg',
        quality: int = 75,
        link_base: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize converter.

        Args:
            width: Target width in pixels
            height: Target height, 0 keeps the aspect ratio; otherwise crops
            output_format: Output extension (jpg, png, webp, ...)
            quality: Encoder quality for lossy formats
            link_base: Public URL prefix of the images/ directory (default: /images)
            logger: Optional logger instance
        """
        output_format = output_format.lower()
        if output_format not in self.OUTPUT_FORMATS:
            raise ValueError(
                f"Invalid convert format {output_format}, only supports "
                f"{', '.join(sorted(self.OUTPUT_FORMATS))}"
            )
        if width <= 0 or height < 0:
            raise ValueError(f"Invalid target size {width}x{height}")

        self.width = width
        self.height = height
        self.output_format = output_format
        self.quality = quality
        self.link_base = link_base
        self.logger = logger or logging.getLogger(__name__)

    def target_size(self, width: int, height: int) -> Tuple[int, int]:
        """Output dimensions for an image of the given size."""
        if self.height == 0:
            return self.width, max(1, self.width * height // width)
        return self.width, self.height

    def convert(self, content: bytes) -> bytes:
        """
        Resize and re-encode image bytes.

        Args:
            content: Source image bytes

        Returns:
            Encoded output image
        """
        img = Image.open(io.BytesIO(content))
        size = self.target_size(*img.size)
        pil_format = self.OUTPUT_FORMATS[self.output_format]

        if self.height == 0:
            img = img.resize(size, Image.Resampling.LANCZOS)
        else:
            img = ImageOps.fit(img, size, Image.Resampling.LANCZOS)

        if pil_format in ('JPEG', 'BMP'):
            img = flatten_on_white(img)

        output = io.BytesIO()
        if pil_format in self.LOSSY_FORMATS:
            img.save(output, format=pil_format, quality=self.quality)
        else:
            img.save(output, format=pil_format, optimize=True)
        return output.getvalue()

    def output_path(self, project_root: Union[str, Path], day: date, now: Optional[datetime] = None) -> Path:
        """Path of the converted file: images/<yyyy>/<MM>/<yyyyMMdd><HHMMSS><NN>.<ext>."""
        now = now or datetime.now()
        filename = f"{day.strftime(DATE_FORMAT)}{now.strftime('%H%M%S')}{now.microsecond % 100:02d}.{self.output_format}"
        return Path(project_root) / 'images' / day.strftime('%Y') / day.strftime('%m') / filename

    def link(self, path: Path, day: date) -> str:
        """Document link of a converted file; site-relative unless a link base is configured."""
        base = (self.link_base or DEFAULT_LINK_BASE).rstrip('/')
        return '/'.join([base, day.strftime('%Y'), day.strftime('%m'), path.name])

    def copy_to_clipboard(self, text: str) -> bool:
        """Put text on the system clipboard; log and return False if there is none."""
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            self.logger.warning(f"Failed to copy the link into clipboard: {e}")
            return False
        self.logger.info("The link is copied into clipboard")
        return True

    def process(
        self,
        source: Union[str, Path],
        project_root: Union[str, Path],
        day: date,
        now: Optional[datetime] = None
    ) -> Path:
        """
        Convert a source image and save it under the project root.

        Raises:
            LocalIOError: If the source cannot be read or the target written
        """
        source = Path(source)
        try:
            content = source.read_bytes()
        except OSError as e:
            raise LocalIOError(f"Failed to read the image {source}: {e}", path=str(source)) from e

        data = self.convert(content)

        target = self.output_path(project_root, day, now)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise LocalIOError(f"Failed to save image {target}: {e}", path=str(target)) from e

        self.logger.info(f"The image is saved into [{target}]")
        link = self.link(target, day)
        self.logger.info(f"You can use link for document [{link}]")
        self.copy_to_clipboard(link)
        return target
