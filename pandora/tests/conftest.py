"""
Pytest fixtures for pandora tests.
"""

import io
import threading

import pytest

from pandora.errors import ListError, UploadError


class FakeBucket:
    """
    In-memory stand-in for BucketClient.

    Attributes:
        objects: key -> stored bytes
        uploads: keys in upload order
        fail_uploads: keys whose upload raises UploadError
        list_error: error raised by every list_objects call, if set
    """

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.content_types = {}
        self.fail_uploads = set()
        self.list_error = None
        self.list_calls = []
        self._lock = threading.Lock()

    def upload_object(self, key, data, content_type=None, bucket=None):
        with self._lock:
            if key in self.fail_uploads:
                raise UploadError(f"upload of {key} failed: simulated", key=key)
            self.objects[key] = bytes(data)
            self.uploads.append(key)
            self.content_types[key] = content_type

    def list_objects(self, prefix, bucket=None, delimiter=None):
        with self._lock:
            self.list_calls.append(prefix)
            if self.list_error is not None:
                raise self.list_error
            listing = {}
            for key, data in self.objects.items():
                if not key.startswith(prefix):
                    continue
                if delimiter and delimiter in key[len(prefix):]:
                    continue
                listing[key] = len(data)
            return listing

    def reset_uploads(self):
        self.uploads = []


def image_bytes(width, height, fmt='JPEG', mode='RGB', color='red'):
    """Encode a solid image with Pillow."""
    from PIL import Image

    img = Image.new(mode, (width, height), color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    """Fixture providing the image encoder helper."""
    return image_bytes


@pytest.fixture
def fake_bucket():
    """Fixture providing an empty in-memory bucket."""
    return FakeBucket()


@pytest.fixture
def no_such_bucket():
    """Fixture providing the listing error raised for a missing bucket."""
    return ListError("listing failed: NoSuchBucket", bucket_not_found=True)


@pytest.fixture
def sample_image_bytes():
    """Fixture providing a 100x50 JPEG."""
    return image_bytes(100, 50)


@pytest.fixture
def sample_png_bytes():
    """Fixture providing a 40x40 PNG with transparency."""
    return image_bytes(40, 40, fmt='PNG', mode='RGBA', color=(255, 0, 0, 128))


@pytest.fixture
def project_tree(tmp_path, sample_image_bytes):
    """
    Fixture providing a project root with:

        images/2024/01/a.jpg
        images/2024/01/.hidden.jpg
        images/.cache/b.jpg
        images/notes.txt
    """
    month = tmp_path / 'images' / '2024' / '01'
    month.mkdir(parents=True)
    (month / 'a.jpg').write_bytes(sample_image_bytes)
    (month / '.hidden.jpg').write_bytes(sample_image_bytes)

    cache = tmp_path / 'images' / '.cache'
    cache.mkdir()
    (cache / 'b.jpg').write_bytes(sample_image_bytes)

    (tmp_path / 'images' / 'notes.txt').write_text('hello')
    return tmp_path


@pytest.fixture
def config_dir(tmp_path):
    """Fixture providing a config directory with a valid gifts.yml."""
    from pandora.config import PandoraConfig, S3Settings, SyncSettings

    project = tmp_path / 'project'
    project.mkdir()
    config = PandoraConfig(
        project_root=str(project),
        s3=S3Settings(
            bucket='test-bucket',
            access_key='test-access-key',
            secret_key='test-secret-key',
            endpoint='https://test-endpoint.example.com',
        ),
        sync=SyncSettings(workers=4),
    )
    directory = tmp_path / 'config'
    config.save(str(directory))
    return directory


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')


@pytest.fixture(autouse=True)
def clipboard(mocker):
    """Keep tests away from the real system clipboard."""
    return mocker.patch('pandora.converter.pyperclip.copy')
