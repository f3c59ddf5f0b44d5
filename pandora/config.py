"""
Configuration - YAML backed settings for the pandora tool.

The configuration lives in ``<config dir>/gifts.yml`` and is loaded once per
invocation into an immutable PandoraConfig that is handed to every
collaborator explicitly.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import yaml

from .errors import ConfigError
from .converter import ImageConverter


CONFIG_FILE_NAME = 'gifts.yml'
DEFAULT_QUALITY = 75
DEFAULT_FORMAT = 'jpg'
DEFAULT_WORKERS = 8

# Region used with custom endpoints when none is configured.
GENERIC_REGION = 'auto'


def default_config_root() -> str:
    """Return the default config directory (~/.config/pandora)."""
    override = os.getenv('PANDORA_CONFIG')
    if override:
        return override
    return str(Path.home() / '.config' / 'pandora')


@dataclass(frozen=True)
class S3Settings:
    """
    S3 connection settings.

    Attributes:
        bucket: Bucket name
        access_key: Static access key
        secret_key: Static secret key
        region: Explicit region ('' for default)
        endpoint: Custom endpoint for S3-compatible providers ('' for AWS)
        verify_ssl: Verify TLS certificates
    """
    bucket: str = ''
    access_key: str = ''
    secret_key: str = ''
    region: str = ''
    endpoint: str = ''
    verify_ssl: bool = True

    @property
    def resolved_region(self) -> Optional[str]:
        """Region handed to boto3."""
        if self.region:
            return self.region
        if self.endpoint:
            return GENERIC_REGION
        return None


@dataclass(frozen=True)
class ConvertSettings:
    default_quality: int = DEFAULT_QUALITY
    default_format: str = DEFAULT_FORMAT
    link_base: Optional[str] = None


@dataclass(frozen=True)
class SyncSettings:
    workers: int = DEFAULT_WORKERS


@dataclass(frozen=True)
class PandoraConfig:
    """
    Complete tool configuration.

    Attributes:
        project_root: Absolute path of the directory holding images/ and uploads/
        convert: Defaults for the image command
        s3: Bucket connection settings
        sync: Sync engine tuning
    """
    project_root: str
    convert: ConvertSettings = field(default_factory=ConvertSettings)
    s3: S3Settings = field(default_factory=S3Settings)
    sync: SyncSettings = field(default_factory=SyncSettings)

    def validate(self, require_s3: bool = True) -> List[str]:
        """
        Return a list of configuration problems (empty when valid).

        Args:
            require_s3: Also check the bucket and credentials
        """
        errors = []
        if not self.project_root:
            errors.append("projectRoot is not configured")
        elif not os.path.isdir(self.project_root):
            errors.append(f"projectRoot {self.project_root} is not a directory")
        if require_s3:
            if not self.s3.bucket:
                errors.append("s3.bucket is not configured")
            if not self.s3.access_key or not self.s3.secret_key:
                errors.append("no s3.accessKey or s3.accessSecretKey is provided")
        if self.sync.workers < 1:
            errors.append(f"sync.workers must be at least 1, got {self.sync.workers}")
        return errors

    def to_dict(self) -> dict:
        """Convert to the YAML document layout."""
        return {
            'projectRoot': self.project_root,
            'convert': {
                'defaultQuality': self.convert.default_quality,
                'defaultFormat': self.convert.default_format,
                'linkBase': self.convert.link_base,
            },
            's3': {
                'region': self.s3.region,
                'endpoint': self.s3.endpoint,
                'bucket': self.s3.bucket,
                'accessKey': self.s3.access_key,
                'accessSecretKey': self.s3.secret_key,
                'verifySsl': self.s3.verify_ssl,
            },
            'sync': {
                'workers': self.sync.workers,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PandoraConfig':
        """Create from a parsed YAML document."""
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a mapping")

        convert = data.get('convert') or {}
        s3 = data.get('s3') or {}
        sync = data.get('sync') or {}

        try:
            return cls(
                project_root=str(data.get('projectRoot') or ''),
                convert=ConvertSettings(
                    default_quality=int(convert.get('defaultQuality') or DEFAULT_QUALITY),
                    default_format=str(convert.get('defaultFormat') or DEFAULT_FORMAT),
                    link_base=convert.get('linkBase') or None,
                ),
                s3=S3Settings(
                    bucket=str(s3.get('bucket') or ''),
                    access_key=str(s3.get('accessKey') or ''),
                    secret_key=str(s3.get('accessSecretKey') or ''),
                    region=str(s3.get('region') or ''),
                    endpoint=str(s3.get('endpoint') or ''),
                    verify_ssl=bool(s3.get('verifySsl', True)),
                ),
                sync=SyncSettings(
                    workers=int(sync.get('workers') or DEFAULT_WORKERS),
                ),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid configuration value: {e}") from e

    @classmethod
    def load(cls, config_dir: str) -> 'PandoraConfig':
        """
        Load configuration from ``<config_dir>/gifts.yml``.

        Raises:
            ConfigError: If the directory or file is missing or malformed
        """
        if not os.path.isdir(config_dir):
            raise ConfigError(
                f"It seems like you haven't configured the tool ({config_dir} missing). "
                f'Execute "pandora config" to initialize.'
            )

        path = Path(config_dir) / CONFIG_FILE_NAME
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Failed to load the config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config file format {path}: {e}") from e

        return cls.from_dict(data or {})

    def save(self, config_dir: str) -> Path:
        """Write configuration to ``<config_dir>/gifts.yml``."""
        directory = Path(config_dir)
        if directory.exists() and not directory.is_dir():
            raise ConfigError(f"Invalid config path {config_dir}")
        directory.mkdir(parents=True, exist_ok=True)

        path = directory / CONFIG_FILE_NAME
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, indent=2, default_flow_style=False, sort_keys=False)
        return path


def run_wizard(
    config_dir: str,
    ask: Optional[Callable[[str], str]] = None,
    logger: Optional[logging.Logger] = None
) -> PandoraConfig:
    """
    Interactively build a configuration and save it.

    Args:
        config_dir: Directory that receives gifts.yml
        ask: Prompt function returning the raw answer (default: input)
        logger: Optional logger instance

    Returns:
        The saved configuration
    """
    logger = logger or logging.getLogger(__name__)
    ask = ask or input

    project_root = ask("Please input the project root. Default [.]: ").strip()
    project_root = os.path.abspath(project_root or os.getcwd())

    quality_answer = ask(f"Please input the convert quality. Default [{DEFAULT_QUALITY}]: ").strip()
    try:
        quality = int(quality_answer) if quality_answer else DEFAULT_QUALITY
    except ValueError:
        raise ConfigError(f"Invalid convert quality: {quality_answer}") from None

    fmt = ask(f"Please input the convert format. Default [{DEFAULT_FORMAT}]: ").strip().lower()
    fmt = fmt or DEFAULT_FORMAT
    if fmt not in ImageConverter.OUTPUT_FORMATS:
        raise ConfigError(f"Unsupported convert format: {fmt}")

    config = PandoraConfig(
        project_root=project_root,
        convert=ConvertSettings(default_quality=quality, default_format=fmt),
        s3=S3Settings(
            region=ask("Please input the s3 region (Optional): ").strip(),
            endpoint=ask("Please input the s3 endpoint (Optional): ").strip(),
            bucket=ask("Please input the s3 bucket: ").strip(),
            access_key=ask("Please input the s3 access key: ").strip(),
            secret_key=ask("Please input the s3 access secret key: ").strip(),
        ),
    )

    path = config.save(config_dir)
    logger.info(f"Configuration saved to {path}")
    return config
