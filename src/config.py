"""
Runtime configuration for the feed Lambda.

All settings are read from environment variables once, into an explicit
FeedConfig record that is passed to the processing pipeline.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_MAX_SIZE_BYTES = 2 * 1024 * 1024  # ~2MB of entry content per feed
DEFAULT_MAX_ENTRIES = 20
DEFAULT_NOTIFICATION_ENDPOINT = 'https://api.pushover.net/1/messages.json'
DEFAULT_NOTIFICATION_TIMEOUT_SECONDS = 10.0

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


@dataclass
class NotificationConfig:
    """
    Settings for the new-feed notification channel.

    Attributes:
        endpoint: Pushover messages API URL
        token: Pushover application token
        user: Pushover user/group key
        timeout_seconds: Upper bound for the whole HTTP call
    """
    endpoint: str = DEFAULT_NOTIFICATION_ENDPOINT
    token: str = ''
    user: str = ''
    timeout_seconds: float = DEFAULT_NOTIFICATION_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        """True if both routing credentials are set."""
        return bool(self.token and self.user)


@dataclass
class FeedConfig:
    """
    Settings for the feed aggregation pipeline.

    Attributes:
        bucket_name: S3 bucket holding feeds and companion blobs
        bucket_domain: Public domain serving the bucket (used for links)
        max_size_bytes: Max total entry content bytes per feed (negative disables)
        max_entries: Max number of entries per feed (negative disables)
        pretty_xml: Pretty-print serialized feeds
        notification: New-feed notification settings
    """
    bucket_name: str
    bucket_domain: str
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES
    max_entries: int = DEFAULT_MAX_ENTRIES
    pretty_xml: bool = False
    notification: NotificationConfig = field(default_factory=NotificationConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'FeedConfig':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            FeedConfig: Populated configuration

        Raises:
            ValueError: If a required variable is missing or a number is invalid
        """
        env = os.environ if environ is None else environ

        bucket_name = env.get('RSS_BUCKET', '')
        bucket_domain = env.get('BUCKET_DOMAIN', '')
        if not bucket_name:
            raise ValueError("RSS_BUCKET environment variable is required but not set")
        if not bucket_domain:
            raise ValueError("BUCKET_DOMAIN environment variable is required but not set")

        notification = NotificationConfig(
            endpoint=env.get('PUSHOVER_ENDPOINT') or DEFAULT_NOTIFICATION_ENDPOINT,
            token=env.get('PUSHOVER_TOKEN', ''),
            user=env.get('PUSHOVER_USER', ''),
            timeout_seconds=_read_float(
                env, 'NOTIFICATION_TIMEOUT_SECONDS', DEFAULT_NOTIFICATION_TIMEOUT_SECONDS
            ),
        )

        return cls(
            bucket_name=bucket_name,
            bucket_domain=bucket_domain,
            max_size_bytes=_read_int(env, 'FEED_MAX_SIZE_BYTES', DEFAULT_MAX_SIZE_BYTES),
            max_entries=_read_int(env, 'FEED_MAX_ENTRIES', DEFAULT_MAX_ENTRIES),
            pretty_xml=env.get('PRETTY_XML', '').strip().lower() in _TRUE_VALUES,
            notification=notification,
        )


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: '{raw}'")


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: '{raw}'")
