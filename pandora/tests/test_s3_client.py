"""Tests for BucketClient class."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, WaiterError

from pandora.config import S3Settings
from pandora.errors import DeleteError, ListError, ObjectTooLargeError, UploadError
from pandora.s3_client import WAITER_CONFIG, BucketClient


def client_error(code, operation='PutObject', message='boom'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


class TestBucketClientInit:
    """Tests for boto3 client construction."""

    def test_custom_endpoint_uses_generic_region(self):
        settings = S3Settings(bucket='b', access_key='k', secret_key='s', endpoint='https://r2.example.com')

        with patch('pandora.s3_client.boto3.client') as factory:
            BucketClient(settings)

        kwargs = factory.call_args.kwargs
        assert kwargs['endpoint_url'] == 'https://r2.example.com'
        assert kwargs['region_name'] == 'auto'
        assert kwargs['aws_access_key_id'] == 'k'
        assert kwargs['aws_secret_access_key'] == 's'

    def test_explicit_region(self):
        settings = S3Settings(bucket='b', access_key='k', secret_key='s', region='eu-west-1')

        with patch('pandora.s3_client.boto3.client') as factory:
            BucketClient(settings)

        kwargs = factory.call_args.kwargs
        assert kwargs['endpoint_url'] is None
        assert kwargs['region_name'] == 'eu-west-1'


class TestBucketClient:
    """Tests for BucketClient operations."""

    @pytest.fixture
    def settings(self):
        """Fixture providing S3 settings."""
        return S3Settings(
            bucket='test-bucket',
            access_key='test-access-key',
            secret_key='test-secret-key',
            endpoint='https://test-endpoint.example.com',
        )

    @pytest.fixture
    def client_with_mock(self, settings):
        """Fixture providing BucketClient with mocked boto3."""
        mock_boto = MagicMock()
        with patch('pandora.s3_client.boto3.client', return_value=mock_boto):
            client = BucketClient(settings)
            client._test_mock = mock_boto
            yield client

    def test_upload_object_waits_for_existence(self, client_with_mock):
        client_with_mock.upload_object('images/a.jpg', b'data', 'image/jpeg')

        mock = client_with_mock._test_mock
        mock.put_object.assert_called_once_with(
            Bucket='test-bucket', Key='images/a.jpg', Body=b'data', ContentType='image/jpeg'
        )
        mock.get_waiter.assert_called_once_with('object_exists')
        mock.get_waiter.return_value.wait.assert_called_once_with(
            Bucket='test-bucket', Key='images/a.jpg', WaiterConfig=WAITER_CONFIG
        )

    def test_upload_object_explicit_bucket(self, client_with_mock):
        client_with_mock.upload_object('a.txt', b'x', bucket='other')

        call = client_with_mock._test_mock.put_object.call_args.kwargs
        assert call['Bucket'] == 'other'
        assert 'ContentType' not in call

    def test_upload_wait_timeout_is_not_a_failure(self, client_with_mock, caplog):
        client_with_mock._test_mock.get_waiter.return_value.wait.side_effect = WaiterError(
            name='ObjectExists', reason='Max attempts exceeded', last_response={}
        )

        client_with_mock.upload_object('images/a.jpg', b'data')

        assert 'Failed attempt to wait for object images/a.jpg' in caplog.text

    def test_upload_object_too_large(self, client_with_mock):
        client_with_mock._test_mock.put_object.side_effect = client_error('EntityTooLarge')

        with pytest.raises(ObjectTooLargeError) as exc_info:
            client_with_mock.upload_object('big.bin', b'data')

        assert exc_info.value.key == 'big.bin'
        client_with_mock._test_mock.get_waiter.assert_not_called()

    def test_upload_generic_failure(self, client_with_mock):
        client_with_mock._test_mock.put_object.side_effect = client_error('AccessDenied')

        with pytest.raises(UploadError) as exc_info:
            client_with_mock.upload_object('a.jpg', b'data')

        assert not isinstance(exc_info.value, ObjectTooLargeError)

    def test_list_objects_paginates(self, client_with_mock):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {'Contents': [{'Key': 'images/a.jpg', 'Size': 10}]},
            {'Contents': [{'Key': 'images/b.jpg', 'Size': 0}]},
            {},
        ]
        client_with_mock._test_mock.get_paginator.return_value = paginator

        result = client_with_mock.list_objects('images/', delimiter='/')

        assert result == {'images/a.jpg': 10, 'images/b.jpg': 0}
        client_with_mock._test_mock.get_paginator.assert_called_once_with('list_objects_v2')
        paginator.paginate.assert_called_once_with(Bucket='test-bucket', Prefix='images/', Delimiter='/')

    def test_list_objects_bucket_not_found_keeps_partial(self, client_with_mock):
        def pages(**kwargs):
            yield {'Contents': [{'Key': 'images/a.jpg', 'Size': 10}]}
            raise client_error('NoSuchBucket', 'ListObjectsV2')

        paginator = MagicMock()
        paginator.paginate.side_effect = pages
        client_with_mock._test_mock.get_paginator.return_value = paginator

        with pytest.raises(ListError) as exc_info:
            client_with_mock.list_objects('images/')

        assert exc_info.value.bucket_not_found is True
        assert exc_info.value.partial == {'images/a.jpg': 10}

    def test_list_objects_other_failure(self, client_with_mock):
        paginator = MagicMock()
        paginator.paginate.side_effect = client_error('InternalError', 'ListObjectsV2')
        client_with_mock._test_mock.get_paginator.return_value = paginator

        with pytest.raises(ListError) as exc_info:
            client_with_mock.list_objects('images/')

        assert exc_info.value.bucket_not_found is False
        assert exc_info.value.partial == {}

    def test_delete_objects_waits_for_each_key(self, client_with_mock):
        mock = client_with_mock._test_mock
        mock.delete_objects.return_value = {'Deleted': [{'Key': 'a'}, {'Key': 'b'}]}

        client_with_mock.delete_objects(['a', 'b'])

        request = mock.delete_objects.call_args.kwargs
        assert request['Delete'] == {'Objects': [{'Key': 'a'}, {'Key': 'b'}], 'Quiet': True}
        mock.get_waiter.assert_called_with('object_not_exists')
        assert mock.get_waiter.return_value.wait.call_count == 2

    def test_delete_objects_wait_failure_is_logged(self, client_with_mock, caplog):
        mock = client_with_mock._test_mock
        mock.delete_objects.return_value = {'Deleted': [{'Key': 'a'}]}
        mock.get_waiter.return_value.wait.side_effect = WaiterError(
            name='ObjectNotExists', reason='Max attempts exceeded', last_response={}
        )

        client_with_mock.delete_objects(['a'])

        assert 'to be deleted' in caplog.text

    def test_delete_objects_per_object_errors(self, client_with_mock):
        client_with_mock._test_mock.delete_objects.return_value = {
            'Errors': [
                {'Key': 'a', 'Code': 'AccessDenied', 'Message': 'Access Denied'},
                {'Key': 'b', 'Code': 'InternalError', 'Message': 'Try again'},
            ]
        }

        with pytest.raises(DeleteError) as exc_info:
            client_with_mock.delete_objects(['a', 'b'])

        assert str(exc_info.value) == 'Access Denied'
        assert exc_info.value.object_errors == [('a', 'Access Denied'), ('b', 'Try again')]
        assert exc_info.value.bucket_not_found is False
        client_with_mock._test_mock.get_waiter.assert_not_called()

    def test_delete_objects_bucket_not_found(self, client_with_mock):
        client_with_mock._test_mock.delete_objects.side_effect = client_error('NoSuchBucket', 'DeleteObjects')

        with pytest.raises(DeleteError) as exc_info:
            client_with_mock.delete_objects(['a'])

        assert exc_info.value.bucket_not_found is True

    def test_delete_objects_empty(self, client_with_mock):
        client_with_mock.delete_objects([])

        client_with_mock._test_mock.delete_objects.assert_not_called()
