"""
Tests for the S3 image host checks.
"""
import pytest
from unittest.mock import patch
from botocore.exceptions import ClientError, EndpointConnectionError

from services.exceptions import Unavailable
from services.s3_service import S3Service


@pytest.fixture
def s3_service():
    with patch('services.s3_service.boto3'):
        yield S3Service()


def _client_error(code):
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'HeadObject')


def test_existing_image(s3_service):
    assert s3_service.image_exists('uploads/user-1/abc.png') is True
    s3_service.s3_client.head_object.assert_called_once_with(
        Bucket=s3_service.bucket_name, Key='uploads/user-1/abc.png'
    )


def test_missing_image(s3_service):
    s3_service.s3_client.head_object.side_effect = _client_error('404')

    assert s3_service.image_exists('uploads/user-1/missing.png') is False


def test_host_error_is_unavailable(s3_service):
    s3_service.s3_client.head_object.side_effect = _client_error('500')

    with pytest.raises(Unavailable):
        s3_service.image_exists('uploads/user-1/abc.png')


def test_unreachable_host_is_unavailable(s3_service):
    s3_service.s3_client.head_object.side_effect = EndpointConnectionError(endpoint_url='http://localhost:4566')

    with pytest.raises(Unavailable):
        s3_service.image_exists('uploads/user-1/abc.png')
