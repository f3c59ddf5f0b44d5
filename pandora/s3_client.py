"""
BucketClient - S3-compatible operations used by the sync command.
"""

import logging
from typing import Dict, Iterable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from .config import S3Settings
from .errors import DeleteError, ListError, ObjectTooLargeError, UploadError


# Waiters poll every 5 seconds, giving up after one minute.
WAITER_CONFIG = {'Delay': 5, 'MaxAttempts': 12}


def error_code(error: Exception) -> str:
    """Return the provider error code of a ClientError ('' otherwise)."""
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', '')
    return ''


class BucketClient:
    """
    Wrapper for S3 put/list/delete with existence confirmation.

    Provider errors are translated into the pandora error taxonomy so the
    sync engine can decide whether to skip or fall back.
    """

    def __init__(self, settings: S3Settings, logger: Optional[logging.Logger] = None):
        """
        Initialize bucket client.

        Args:
            settings: S3 connection settings
            logger: Optional logger instance
        """
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)

        self._client = boto3.client(
            's3',
            endpoint_url=settings.endpoint or None,
            aws_access_key_id=settings.access_key,
            aws_secret_access_key=settings.secret_key,
            region_name=settings.resolved_region,
            config=Config(signature_version='s3v4'),
            verify=settings.verify_ssl
        )

    @property
    def client(self):
        """Return the underlying boto3 client."""
        return self._client

    @property
    def bucket(self) -> str:
        return self.settings.bucket

    def upload_object(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None
    ) -> None:
        """
        Upload an object and wait until it is readable.

        A confirmation timeout is logged; the write itself already succeeded.

        Raises:
            ObjectTooLargeError: If the object exceeds the single PUT limit
            UploadError: For any other upload failure
        """
        bucket = bucket or self.bucket
        params = {'Bucket': bucket, 'Key': key, 'Body': data}
        if content_type:
            params['ContentType'] = content_type

        try:
            self._client.put_object(**params)
        except ClientError as e:
            if error_code(e) == 'EntityTooLarge':
                self.logger.error(
                    f"Error while uploading object to {bucket}. The object {key} is too large. "
                    f"To upload objects larger than 5GB, use the S3 console (160GB max) "
                    f"or the multipart upload API (5TB max)."
                )
                raise ObjectTooLargeError(f"object {key} is too large", key=key) from e
            self.logger.error(f"Couldn't upload file to {bucket}:{key}: {e}")
            raise UploadError(f"upload of {key} failed: {e}", key=key,
                              bucket_not_found=error_code(e) == 'NoSuchBucket') from e
        except BotoCoreError as e:
            self.logger.error(f"Couldn't upload file to {bucket}:{key}: {e}")
            raise UploadError(f"upload of {key} failed: {e}", key=key) from e

        self._wait(bucket, key, 'object_exists')

    def list_objects(
        self,
        prefix: str,
        bucket: Optional[str] = None,
        delimiter: Optional[str] = None
    ) -> Dict[str, int]:
        """
        List all objects under a prefix.

        Args:
            prefix: Key prefix to list
            bucket: Bucket name (default: configured bucket)
            delimiter: Optional delimiter, '/' lists immediate children only

        Returns:
            Dict mapping object key -> size in bytes

        Raises:
            ListError: On the first failing page, carrying the partial listing
        """
        bucket = bucket or self.bucket
        params = {'Bucket': bucket, 'Prefix': prefix}
        if delimiter:
            params['Delimiter'] = delimiter

        objects: Dict[str, int] = {}
        paginator = self._client.get_paginator('list_objects_v2')
        try:
            for page in paginator.paginate(**params):
                for obj in page.get('Contents', []):
                    objects[obj['Key']] = obj['Size']
        except ClientError as e:
            missing = error_code(e) == 'NoSuchBucket'
            if missing:
                self.logger.error(f"Bucket {bucket} does not exist.")
            raise ListError(f"listing {prefix} failed: {e}", key=prefix,
                            bucket_not_found=missing, partial=objects) from e
        except BotoCoreError as e:
            raise ListError(f"listing {prefix} failed: {e}", key=prefix, partial=objects) from e

        return objects

    def delete_objects(self, keys: Iterable[str], bucket: Optional[str] = None) -> None:
        """
        Delete a batch of objects and wait until each one is gone.

        Raises:
            DeleteError: If the batch call fails or any object could not be deleted
        """
        bucket = bucket or self.bucket
        keys = list(keys)
        if not keys:
            return

        try:
            response = self._client.delete_objects(
                Bucket=bucket,
                Delete={'Objects': [{'Key': key} for key in keys], 'Quiet': True}
            )
        except ClientError as e:
            missing = error_code(e) == 'NoSuchBucket'
            self.logger.error(f"Error deleting objects from bucket {bucket}.")
            if missing:
                self.logger.error(f"Bucket {bucket} does not exist.")
            raise DeleteError(f"delete failed: {e}", bucket_not_found=missing) from e
        except BotoCoreError as e:
            self.logger.error(f"Error deleting objects from bucket {bucket}.")
            raise DeleteError(f"delete failed: {e}") from e

        errors = response.get('Errors', [])
        if errors:
            self.logger.error(f"Error deleting objects from bucket {bucket}.")
            object_errors = []
            for err in errors:
                self.logger.error(f"{err.get('Key')}: {err.get('Message')}")
                object_errors.append((err.get('Key'), err.get('Message')))
            raise DeleteError(
                object_errors[0][1] or 'delete failed',
                key=object_errors[0][0],
                bucket_not_found=any(e.get('Code') == 'NoSuchBucket' for e in errors),
                object_errors=object_errors,
            )

        # Quiet mode reports no Deleted entries, so confirm every requested key.
        deleted = [obj['Key'] for obj in response.get('Deleted', [])] or keys
        for key in deleted:
            if self._wait(bucket, key, 'object_not_exists'):
                self.logger.info(f"Deleted {key}.")

    def _wait(self, bucket: str, key: str, waiter_name: str) -> bool:
        """Block on an existence waiter; log and return False on timeout."""
        try:
            waiter = self._client.get_waiter(waiter_name)
            waiter.wait(Bucket=bucket, Key=key, WaiterConfig=WAITER_CONFIG)
            return True
        except WaiterError as e:
            state = 'exist' if waiter_name == 'object_exists' else 'be deleted'
            self.logger.warning(f"Failed attempt to wait for object {key} to {state}: {e}")
            return False
