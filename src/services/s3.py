"""
S3 operations utilities for Lambda handlers.

This module provides reusable functions for interacting with Amazon S3:
fetching raw SES emails and reading, writing and deleting feed objects.
"""

import logging
from typing import Iterable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.models import DeleteResult

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=60      # 60 seconds max for reading response
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=60s, max_attempts=1")

# S3 DeleteObjects accepts at most 1000 keys per request
MAX_DELETE_KEYS = 1000

_MISSING_CODES = {'NoSuchKey', '404', 'NotFound'}


def fetch_email_from_s3(bucket: str, key: str) -> bytes:
    """
    Fetch raw email content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key (path to the email file)

    Returns:
        bytes: The raw email content as bytes

    Raises:
        ValueError: If S3 operation fails or bucket/key is invalid

    Example:
        >>> email_bytes = fetch_email_from_s3(
        ...     bucket="my-ses-bucket",
        ...     key="emails/2025/11/12/message-id.eml"
        ... )
        >>> print(len(email_bytes))
        12345
    """
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
            raise ValueError(f"Email file not found in S3: {key}")
        elif error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
            raise ValueError(f"S3 bucket not found: {bucket}")
        else:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
            raise


def get_object_text(bucket: str, key: str) -> Optional[str]:
    """
    Read a UTF-8 text object.

    Args:
        bucket: S3 bucket name
        key: S3 object key

    Returns:
        The object's text, or None if the object does not exist

    Raises:
        ClientError: For any failure other than a missing object
    """
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code in _MISSING_CODES:
            logger.info(f"S3 object does not exist yet: s3://{bucket}/{key}")
            return None
        logger.error(f"Failed to read s3://{bucket}/{key}: {e}")
        raise

    return response['Body'].read().decode('utf-8')


def put_object(bucket: str, key: str, content: str, content_type: str) -> None:
    """
    Write a text object, replacing any existing object at key.

    Args:
        bucket: S3 bucket name
        key: S3 object key
        content: Content to upload as a string
        content_type: MIME type stored with the object

    Raises:
        ClientError: If S3 operation fails
        ValueError: If parameters are invalid
    """
    if not bucket:
        raise ValueError("S3 bucket name cannot be empty")
    if not key:
        raise ValueError("S3 object key cannot be empty")
    if content is None:
        raise ValueError("Content cannot be None")

    body = content.encode('utf-8')

    try:
        s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=f"{content_type}; charset=utf-8"
        )
        logger.info(f"Uploaded s3://{bucket}/{key} ({len(body):,} bytes)")

    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))

        logger.error(
            f"Failed to upload to S3: "
            f"bucket={bucket}, key={key}, "
            f"error_code={error_code}, error_message={error_message}"
        )

        raise


def delete_objects(bucket: str, keys: Iterable[str]) -> DeleteResult:
    """
    Delete keys from a bucket, best-effort.

    Missing keys are not errors. Failures are logged and returned in the
    result, never raised.

    Args:
        bucket: S3 bucket name
        keys: Object keys to delete

    Returns:
        DeleteResult: Deleted keys and per-key errors
    """
    keys = list(dict.fromkeys(keys))
    result = DeleteResult()
    if not keys:
        return result

    for start in range(0, len(keys), MAX_DELETE_KEYS):
        batch = keys[start:start + MAX_DELETE_KEYS]
        try:
            response = s3_client.delete_objects(
                Bucket=bucket,
                Delete={
                    'Objects': [{'Key': key} for key in batch],
                    'Quiet': False
                }
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Failed to delete {len(batch)} object(s) from {bucket}: {e}")
            for key in batch:
                result.errors[key] = str(e)
            continue

        for deleted in response.get('Deleted', []):
            result.deleted.append(deleted.get('Key'))
        for error in response.get('Errors', []):
            key = error.get('Key')
            result.errors[key] = f"{error.get('Code', 'Unknown')}: {error.get('Message', '')}"
            logger.warning(f"Failed to delete s3://{bucket}/{key}: {result.errors[key]}")

    logger.info(f"Deleted {len(result.deleted)}/{len(keys)} object(s) from {bucket}")
    return result
