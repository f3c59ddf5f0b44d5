"""
Command Line Interface for pandora.
"""

import argparse
import logging
import os
from datetime import date
from typing import List, Optional

import urllib3

from .config import PandoraConfig, default_config_root, run_wizard
from .converter import DEFAULT_WIDTH, DATE_FORMAT, ImageConverter, parse_date
from .errors import ConfigError, LocalIOError, ManifestError
from .image_digest import SUPPORTED_EXTENSIONS, image_extension, is_supported_image
from .manifest import MetadataManifest
from .s3_client import BucketClient
from .syncer import SYNC_ROOTS, DirectorySyncer


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    return logging.getLogger('pandora')


def load_config(
    config_dir: str,
    logger: logging.Logger,
    require_s3: bool = True
) -> Optional[PandoraConfig]:
    """Load and validate the configuration; log problems and return None if unusable."""
    try:
        config = PandoraConfig.load(config_dir)
    except ConfigError as e:
        logger.error(str(e))
        return None

    errors = config.validate(require_s3=require_s3)
    if errors:
        for error in errors:
            logger.error(error)
        return None

    return config


def cmd_sync(args: argparse.Namespace) -> int:
    """Execute sync command."""
    logger = setup_logging(args.verbose)

    config = load_config(args.config, logger)
    if config is None:
        return 1

    if not config.s3.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    client = BucketClient(config.s3, logger)
    logger.info(f"Project root: {config.project_root}")
    logger.info(f"Bucket: {config.s3.bucket}" + (f" ({config.s3.endpoint})" if config.s3.endpoint else ""))

    syncer = DirectorySyncer(
        bucket_client=client,
        project_root=config.project_root,
        workers=config.sync.workers,
        logger=logger
    )

    try:
        result = syncer.sync_roots(SYNC_ROOTS)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    logger.info(f"Synced directories: {result.summary()} ({result.elapsed_seconds:.1f}s)")
    for failure in result.failures:
        logger.warning(f"  {failure}")

    manifest = MetadataManifest.from_records(result.metadata)
    try:
        size = manifest.upload(client, logger)
    except ManifestError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Uploaded image metadata: {manifest.total_images} images ({size} bytes)")
    return 0


def cmd_image(args: argparse.Namespace) -> int:
    """Execute image command."""
    logger = setup_logging(args.verbose)

    config = load_config(args.config, logger, require_s3=False)
    if config is None:
        return 1

    source = args.source
    if not os.path.exists(source):
        logger.error(f"Couldn't read the given file from the path {source}")
        return 1
    if os.path.isdir(source):
        logger.error(f"The given path {source} is a directory. Only image is accepted")
        return 1
    if not is_supported_image(source):
        logger.error(
            f"Unsupported file extension {image_extension(source)}. "
            f"Allowed extensions: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
        return 1

    try:
        day = parse_date(args.time)
    except ValueError as e:
        logger.error(f'{e}. It should be "yyyyMMdd" like {date.today().strftime(DATE_FORMAT)}')
        return 1

    try:
        converter = ImageConverter(
            width=args.width,
            height=args.height,
            output_format=args.format or config.convert.default_format,
            quality=args.quality or config.convert.default_quality,
            link_base=config.convert.link_base,
            logger=logger
        )
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        converter.process(source, config.project_root, day)
    except LocalIOError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Failed to convert the image {source}: {e}")
        return 1

    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    logger = setup_logging(args.verbose)

    try:
        run_wizard(args.config, logger=logger)
    except ConfigError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Failed to create config file in {args.config}: {e}")
        return 1
    except (EOFError, KeyboardInterrupt):
        logger.info("Configuration aborted")
        return 130

    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='pandora',
        description='Personal tool for publishing blog images to S3',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  config:  pandora config                 (write ~/.config/pandora/gifts.yml)
  image:   pandora image -s photo.png     (resize into images/<yyyy>/<MM>/)
  sync:    pandora sync                   (upload images/ and uploads/, write images/metadata.json)
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    parser.add_argument('-c', '--config', default=default_config_root(),
                        help='The config file directory (default: ~/.config/pandora)')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Sync command
    subparsers.add_parser('sync', help='Sync images/ and uploads/ to the bucket and upload image metadata')

    # Image command
    image_parser = subparsers.add_parser('image', help='Process an image to the desired format, size and naming')
    image_parser.add_argument('-s', '--source', required=True, help='The image file path (absolute or relative)')
    image_parser.add_argument('--width', type=int, default=DEFAULT_WIDTH, help='The resized image width')
    image_parser.add_argument('--height', type=int, default=0,
                              help='The optional image height, 0 for keep ratio')
    image_parser.add_argument('-t', '--time', default=date.today().strftime(DATE_FORMAT),
                              help='The date, in yyyyMMdd format (default: today)')
    image_parser.add_argument('-f', '--format', help='The image format (default: from config)')
    image_parser.add_argument('-q', '--quality', type=int, default=0,
                              help='The image quality (default: from config)')

    # Config command
    subparsers.add_parser('config', help='Generate the global configuration file')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'sync':
        return cmd_sync(parsed_args)
    elif parsed_args.command == 'image':
        return cmd_image(parsed_args)
    elif parsed_args.command == 'config':
        return cmd_config(parsed_args)

    return 1
