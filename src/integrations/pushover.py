"""
Pushover notification channel.

Used to announce newly created feeds. Delivery is fire-and-forget: every
failure (non-2xx, transport error, timeout) is logged and returned as a
NotificationResult, never raised.

Usage:
    from integrations import pushover

    result = pushover.send_notification(
        config.notification,
        title="New RSS Feed Added",
        message="https://rss.example.com/sender-domain-com.xml"
    )
"""

import logging

import httpx

from config import NotificationConfig
from domain.models import NotificationResult

logger = logging.getLogger(__name__)

NEW_FEED_TITLE = 'New RSS Feed Added'


def send_notification(config: NotificationConfig, title: str, message: str) -> NotificationResult:
    """
    POST a notification form to the Pushover messages API.

    Args:
        config: Endpoint, credentials and timeout
        title: Notification title
        message: Notification body

    Returns:
        NotificationResult: success, skipped (not configured) or failure details
    """
    if not config.is_configured:
        logger.info("Notifications not configured (missing token/user), skipping")
        return NotificationResult(success=False, skipped=True)

    form = {
        'token': config.token,
        'user': config.user,
        'title': title,
        'message': message,
    }

    try:
        response = httpx.post(
            config.endpoint,
            data=form,
            timeout=httpx.Timeout(config.timeout_seconds)
        )
    except httpx.TimeoutException as e:
        logger.warning(f"Notification timed out after {config.timeout_seconds}s: {e}")
        return NotificationResult(success=False, error_message=f"Timeout: {e}")
    except httpx.HTTPError as e:
        logger.warning(f"Failed to send notification: {type(e).__name__}: {e}")
        return NotificationResult(success=False, error_message=str(e))

    if not response.is_success:
        logger.warning(
            f"Failed to send notification: {response.status_code} {response.reason_phrase}"
        )
        return NotificationResult(
            success=False,
            status_code=response.status_code,
            error_message=f"HTTP {response.status_code}"
        )

    logger.info(f"Notification sent: {title}")
    return NotificationResult(success=True, status_code=response.status_code)


def notify_new_feed(config: NotificationConfig, feed_url: str) -> NotificationResult:
    """Announce a newly created feed by its public URL."""
    return send_notification(config, NEW_FEED_TITLE, feed_url)
