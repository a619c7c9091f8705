"""
Pytest configuration and fixtures for all tests.
"""

import io
import os
import sys
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('RSS_BUCKET', 'rss-bucket')
os.environ.setdefault('BUCKET_DOMAIN', 'rss.bucket.com')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client (only the calls we use)."""

    def __init__(self):
        self.objects = {}
        self.content_types = {}

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError(
                {'Error': {'Code': 'NoSuchKey', 'Message': 'The specified key does not exist.'}},
                'GetObject'
            )
        return {'Body': io.BytesIO(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        if isinstance(Body, str):
            Body = Body.encode('utf-8')
        self.objects[(Bucket, Key)] = Body
        self.content_types[(Bucket, Key)] = ContentType
        return {}

    def delete_objects(self, Bucket, Delete):
        # S3 reports missing keys as deleted too
        deleted = []
        for obj in Delete['Objects']:
            self.objects.pop((Bucket, obj['Key']), None)
            deleted.append({'Key': obj['Key']})
        return {'Deleted': deleted}

    def text(self, bucket, key):
        return self.objects[(bucket, key)].decode('utf-8')

    def keys(self, bucket):
        return sorted(key for b, key in self.objects if b == bucket)


@pytest.fixture
def fake_s3():
    """Patch the module-level S3 client with an in-memory fake."""
    client = FakeS3Client()
    with patch('services.s3.s3_client', client):
        yield client


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    # Environment variables are already set above
    yield
