"""
Email-to-feed pipeline - core business logic.

This module handles the end-to-end processing of SES email notifications:
1. Parse SES notification from SQS record
2. Fetch and parse the raw email from S3
3. Fetch the sender's existing feed (or none)
4. Upload a companion blob if the entry has no link of its own
5. Merge the new entry and trim for retention
6. Rebuild the feed envelope and persist it
7. Delete companion blobs of evicted entries (best-effort)
8. Notify if the feed was just created (best-effort)

Fatal errors are caught and returned as ProcessingResult with success=False.
No exceptions propagate out of process_ses_record.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from config import FeedConfig
from services import atom as atom_service
from services import email as email_service
from services import s3 as s3_service
from integrations import pushover

from .feed_builder import build_feed, format_timestamp
from .identifiers import (
    companion_key,
    companion_keys_for_entry,
    derive_entry_id,
    feed_key,
    sanitize_text,
)
from .links import object_key_from_url, public_url, resolve_entry_links
from .models import (
    ATOM_TYPE,
    Author,
    Content,
    EmailLocation,
    Entry,
    FeedDocument,
    InboundEmail,
    Link,
    ProcessingResult,
    SenderIdentity,
    TrimResult,
)
from .retention import merge_entry, trim_entries

logger = logging.getLogger(__name__)


class FeedProcessor:
    """
    Handles the end-to-end email-to-feed pipeline.

    One instance serves many messages; each message is processed
    sequentially and independently. Concurrent updates for the same sender
    are not coordinated here (last writer wins).
    """

    def __init__(self, config: FeedConfig):
        """
        Initialize feed processor.

        Args:
            config: Bucket, retention and notification settings
        """
        self.config = config

    def process_ses_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single SQS record containing SES notification.

        Args:
            record: SQS record dict containing SES notification

        Returns:
            ProcessingResult with success=True or success=False (errors logged)
        """
        message_id = record.get('messageId', 'UNKNOWN')
        logger.info(f"Processing SQS message: {message_id}")

        try:
            location = self._parse_ses_notification(record)
            logger.info(f"Parsed: from={location.from_address}, subject={location.subject}")

            raw_email = s3_service.fetch_email_from_s3(location.bucket_name, location.object_key)
            logger.info(f"Fetched {len(raw_email):,} bytes from S3")

            email = email_service.parse_email(raw_email)
            result = self.process_email(email)
            result.message_id = message_id
            return result

        except Exception as e:
            logger.error(f"Failed to process {message_id}: {e}", exc_info=True)

            return ProcessingResult(
                success=False,
                message_id=message_id,
                error_message=str(e)
            )

    def process_email(self, email: InboundEmail, now: Optional[datetime] = None) -> ProcessingResult:
        """
        Add one parsed email to its sender's feed.

        Args:
            email: Parsed inbound email
            now: Time of the update (defaults to current UTC time)

        Returns:
            ProcessingResult: success=True once the feed is persisted

        Raises:
            ValueError: If the sender address or body is missing, or the
                stored feed cannot be parsed
            ClientError: If reading the prior feed or writing to S3 fails
        """
        identity = SenderIdentity.from_address(email.from_address, email.from_name)
        content = email.content
        if content is None:
            raise ValueError("Missing 'content' in email")

        updated = format_timestamp(now)
        feed_file_key = feed_key(identity)
        bucket = self.config.bucket_name

        prev_feed = self._get_feed(feed_file_key)
        existing = prev_feed.entries if prev_feed else []

        entry = self._build_entry(identity, email, updated)

        merged = merge_entry(existing, entry)
        trimmed = self._trim(merged, entry)

        feed = build_feed(
            identity,
            email.headers,
            updated,
            trimmed.kept,
            self.config.bucket_domain
        )
        s3_service.put_object(
            bucket,
            feed_file_key,
            atom_service.render_feed(feed, pretty=self.config.pretty_xml),
            ATOM_TYPE
        )

        # Feed is committed; everything below is best-effort
        self._delete_companions(identity, trimmed.evicted)

        created = prev_feed is None
        if created:
            logger.info(f"Created new feed: {feed_file_key}")
            self._notify_new_feed(feed_file_key)

        logger.info(f"Updated feed: {feed_file_key}, entry: {entry.id}, entries: {len(feed.entries)}")

        return ProcessingResult(
            success=True,
            message_id=email.message_id,
            feed_key=feed_file_key,
            entry_id=entry.id,
            created_feed=created,
            evicted_ids=[e.id for e in trimmed.evicted]
        )

    def _parse_ses_notification(self, record: Dict[str, Any]) -> EmailLocation:
        """
        Parse SQS record and extract the S3 location of the raw email.

        Handles both direct SES->SQS and SNS-wrapped notifications.

        Args:
            record: SQS record dict

        Returns:
            EmailLocation: S3 location plus sender/subject for logging

        Raises:
            ValueError: If notification structure is invalid
            json.JSONDecodeError: If JSON parsing fails
        """
        message_id = record.get('messageId', 'UNKNOWN')

        # Parse SQS body
        sqs_body = json.loads(record['body'])

        # Check if wrapped in SNS (optional setup: SES -> SNS -> SQS)
        if sqs_body.get('Type') == 'Notification' and 'Message' in sqs_body:
            logger.info("Unwrapping SNS message (SES -> SNS -> SQS)")
            ses_notification = json.loads(sqs_body['Message'])
        else:
            # Direct SES to SQS (standard setup)
            ses_notification = sqs_body

        # Validate SES notification structure
        if 'mail' not in ses_notification or 'receipt' not in ses_notification:
            raise ValueError("SES notification missing 'mail' or 'receipt' fields")

        mail = ses_notification['mail']
        common_headers = mail.get('commonHeaders', {})

        # Extract from address (can be list or string)
        from_field = common_headers.get('from', [])
        if isinstance(from_field, list) and from_field:
            from_address = from_field[0]
        elif isinstance(from_field, str):
            from_address = from_field
        else:
            from_address = mail.get('source', '')

        # Extract S3 location
        action = ses_notification['receipt'].get('action', {})
        bucket_name = action.get('bucketName')
        object_key = action.get('objectKey')

        if not bucket_name or not object_key:
            raise ValueError("Missing S3 location in SES notification")

        return EmailLocation(
            message_id=message_id,
            bucket_name=bucket_name,
            object_key=object_key,
            from_address=from_address,
            subject=common_headers.get('subject', '')
        )

    def _get_feed(self, feed_file_key: str) -> Optional[FeedDocument]:
        """Existing feed, or None only if the object does not exist."""
        xml_text = s3_service.get_object_text(self.config.bucket_name, feed_file_key)
        if xml_text is None:
            return None
        feed = atom_service.parse_feed(xml_text)
        logger.info(f"Loaded feed {feed_file_key} with {len(feed.entries)} entries")
        return feed

    def _build_entry(self, identity: SenderIdentity, email: InboundEmail, updated: str) -> Entry:
        """
        Create the entry for an email, uploading a companion blob if needed.

        Some readers complain if an entry has no link, so when the email
        carries no post URL its content is uploaded and linked instead.
        """
        # Filtered before sizing so retention totals match the stored body
        content = Content(kind=email.content.kind, body=sanitize_text(email.content.body))
        links = resolve_entry_links(email.headers)
        if not links:
            links = [self._upload_companion(identity, email.message_id, content)]

        subject = sanitize_text(email.subject)
        return Entry(
            id=derive_entry_id(identity.domain, email.message_id),
            title=subject or email.message_id,
            updated=updated,
            summary=subject or None,
            links=links,
            author=Author(name=sanitize_text(email.from_name or email.from_address), email=email.from_address),
            content=content,
        )

    def _upload_companion(self, identity: SenderIdentity, message_id: str, content: Content) -> Link:
        key = companion_key(identity, message_id, content.extension)
        s3_service.put_object(self.config.bucket_name, key, content.body, content.media_type)
        logger.info(f"Uploaded entry: {key}")
        return Link(href=public_url(self.config.bucket_domain, key), type=content.media_type)

    def _trim(self, merged: List[Entry], newest: Entry) -> TrimResult:
        """
        Apply retention limits, always keeping the newest entry.

        If the newest entry alone exceeds a limit it is still published,
        as the only entry.
        """
        result = trim_entries(merged, self.config.max_size_bytes, self.config.max_entries)
        if result.kept or not merged:
            return result

        logger.warning(
            f"Entry {newest.id} ({newest.size_bytes:,} bytes) exceeds retention limits on its own, "
            f"keeping it as the only entry"
        )
        evicted = [e for e in result.evicted if e is not newest]
        return TrimResult(kept=[newest], evicted=evicted)

    def _companion_keys(self, identity: SenderIdentity, entry: Entry) -> List[str]:
        """
        Keys the entry's companion blob may live at.

        The entry's own bucket link wins: the entry may have been written for
        another spelling of the address (sender.x vs sender-x) that shares
        this feed but not this identity's key prefix.
        """
        keys = companion_keys_for_entry(identity, entry.id)
        for link in entry.links:
            key = object_key_from_url(self.config.bucket_domain, link.href)
            if key and key not in keys:
                keys.insert(0, key)
        return keys

    def _delete_companions(self, identity: SenderIdentity, evicted: List[Entry]) -> None:
        """Delete companion blobs of evicted entries; failures are only logged."""
        if not evicted:
            return

        keys = []
        for entry in evicted:
            keys.extend(self._companion_keys(identity, entry))

        result = s3_service.delete_objects(self.config.bucket_name, keys)
        if not result.success:
            logger.warning(
                f"Could not delete {len(result.errors)} companion blob(s), leaving them orphaned: "
                f"{sorted(result.errors)}"
            )

    def _notify_new_feed(self, feed_file_key: str) -> None:
        feed_url = public_url(self.config.bucket_domain, feed_file_key)
        result = pushover.notify_new_feed(self.config.notification, feed_url)
        if not result.success and not result.skipped:
            logger.warning(f"New feed notification failed: {result.error_message}")
