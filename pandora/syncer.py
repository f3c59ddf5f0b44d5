"""
DirectorySyncer - Mirrors local directory trees into the bucket.

Each directory scan and each file is a task on one bounded thread pool.
A directory task never waits on its children: it hands the futures it
scheduled back to the caller, which keeps draining until the frontier is
empty. Results are folded together as futures complete, so no shared
accumulator is mutated from worker threads.
"""

import logging
import mimetypes
import os
import stat
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Union

from .errors import DigestError, ListError, LocalIOError, UploadError
from .image_digest import BlurGenerator, is_supported_image
from .s3_client import BucketClient
from .sync_result import SyncResult


SYNC_ROOTS = ('images', 'uploads')

DEFAULT_WORKERS = 8

# Remote size used for keys missing from the index; never equals a real size.
MISSING_SIZE = -1


class DirectoryScan(NamedTuple):
    """Local outcome of one directory plus the tasks it scheduled."""
    result: SyncResult
    children: List[Future]


def is_hidden(name: str) -> bool:
    return name.startswith('.')


class DirectorySyncer:
    """
    Uploads changed files and collects image metadata for directory trees.

    A file is uploaded when its local size differs from the size recorded
    in the bucket listing (absent keys always differ). Image files are
    digested whether or not they were uploaded.
    """

    def __init__(
        self,
        bucket_client: BucketClient,
        project_root: Union[str, Path],
        blur_generator: Optional[BlurGenerator] = None,
        workers: int = DEFAULT_WORKERS,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize syncer.

        Args:
            bucket_client: Bucket client used for listing and uploads
            project_root: Local directory that maps to the bucket root
            blur_generator: Digest generator (default: 8px WEBP placeholders)
            workers: Maximum number of concurrent directory/file tasks
            logger: Optional logger instance
        """
        self.bucket = bucket_client
        self.project_root = Path(project_root).absolute()
        self.logger = logger or logging.getLogger(__name__)
        self.blur = blur_generator or BlurGenerator(logger=self.logger)
        self.workers = max(1, workers)

    def object_key(self, path: Path) -> str:
        """Object key for a local path: its posix path relative to the project root."""
        relative = Path(path).absolute().relative_to(self.project_root).as_posix()
        return '' if relative == '.' else relative

    def sync_roots(self, names: Iterable[str] = SYNC_ROOTS) -> SyncResult:
        """
        Sync several top-level directories of the project root.

        Args:
            names: Directory names relative to the project root

        Returns:
            Combined SyncResult of all trees
        """
        return self._run([self.project_root / name for name in names])

    def sync_directory(self, directory: Union[str, Path]) -> SyncResult:
        """
        Sync one directory tree.

        Args:
            directory: Directory inside the project root

        Returns:
            SyncResult for the directory and all its descendants
        """
        return self._run([Path(directory)])

    def _run(self, directories: List[Path]) -> SyncResult:
        result = SyncResult()

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix='pandora-sync') as executor:
            pending: Set[Future] = {
                executor.submit(self._scan_directory, executor, directory)
                for directory in directories
            }
            try:
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        outcome = future.result()
                        if isinstance(outcome, DirectoryScan):
                            result.merge(outcome.result)
                            pending.update(outcome.children)
                        else:
                            result.merge(outcome)
            except BaseException:
                executor.shutdown(wait=False, cancel_futures=True)
                raise

        return result

    def _scan_directory(self, executor: ThreadPoolExecutor, directory: Path) -> DirectoryScan:
        """List one directory locally and remotely, and schedule its entries."""
        result = SyncResult()
        children: List[Future] = []

        try:
            st = os.stat(directory)
        except OSError as e:
            self.logger.warning(f"Failed to read directory {directory}: {e}")
            result.fail(str(directory), LocalIOError(str(e), path=str(directory)))
            return DirectoryScan(result, children)

        if not stat.S_ISDIR(st.st_mode):
            self.logger.debug(f"Skip {directory}: not a directory")
            return DirectoryScan(result, children)
        if is_hidden(directory.name):
            self.logger.debug(f"Skip hidden directory {directory}")
            return DirectoryScan(result, children)

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            self.logger.warning(f"Failed to read directory {directory}: {e}")
            result.fail(str(directory), LocalIOError(str(e), path=str(directory)))
            return DirectoryScan(result, children)

        key = self.object_key(directory)
        index = self._remote_index(f"{key}/" if key else '', result)

        for entry in entries:
            if is_hidden(entry.name):
                continue

            path = directory / entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                linked_dir = entry.is_symlink() and entry.is_dir()
            except OSError as e:
                self.logger.warning(f"Failed to read the file {path} info: {e}")
                result.fail(str(path), LocalIOError(str(e), path=str(path)))
                continue

            if linked_dir:
                self.logger.debug(f"Skip symlinked directory {path}")
                continue

            if is_dir:
                children.append(executor.submit(self._scan_directory, executor, path))
            else:
                file_key = self.object_key(path)
                remote_size = index.get(file_key, MISSING_SIZE)
                children.append(executor.submit(self._sync_file, path, file_key, remote_size))

        return DirectoryScan(result, children)

    def _remote_index(self, prefix: str, result: SyncResult) -> Dict[str, int]:
        """Fetch key -> size for a prefix; an empty index on failure."""
        try:
            return self.bucket.list_objects(prefix, delimiter='/')
        except ListError as e:
            reason = 'bucket does not exist' if e.bucket_not_found else str(e)
            self.logger.warning(
                f"Failed to read directory from S3: {prefix} ({reason}). "
                f"Every file in it will be uploaded."
            )
            result.fail(prefix, e)
            return {}

    def _sync_file(self, path: Path, key: str, remote_size: int) -> SyncResult:
        """Upload a file when its size changed, then digest it if it is an image."""
        result = SyncResult()
        content: Optional[bytes] = None

        try:
            size = path.stat().st_size
            if size != remote_size:
                content = path.read_bytes()
        except OSError as e:
            self.logger.warning(f"Failed to read the file {path}: {e}")
            result.fail(str(path), LocalIOError(str(e), path=str(path)))
            return result

        if size != remote_size:
            self.logger.info(f"Uploading [{path}] to {key}")
            content_type, _ = mimetypes.guess_type(path.name)
            try:
                self.bucket.upload_object(key, content, content_type=content_type)
            except UploadError as e:
                self.logger.error(f"Failed to upload the file {path} to {key}: {e}")
                result.fail(key, e)
                return result
            result.uploaded += 1
            result.bytes_uploaded += len(content)
        else:
            self.logger.debug(f"Skip the existing file [{path}]")
            result.skipped += 1

        if not is_supported_image(path.name):
            return result

        if content is None:
            try:
                content = path.read_bytes()
            except OSError as e:
                self.logger.warning(f"Failed to read the file {path}: {e}")
                result.fail(str(path), LocalIOError(str(e), path=str(path)))
                return result

        try:
            digest = self.blur.generate(content)
        except DigestError as e:
            self.logger.warning(f"Failed to read the image metadata for {key}: {e}")
            result.fail(key, e)
            return result

        result.metadata.append(digest.with_path(key))
        return result
