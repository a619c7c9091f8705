"""
Data models for the email-to-feed domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

ATOM_TYPE = 'application/atom+xml'
HTML_TYPE = 'text/html'
TEXT_TYPE = 'text/plain'

REL_ALTERNATE = 'alternate'
REL_SELF = 'self'

KIND_HTML = 'html'
KIND_TEXT = 'text'

Header = Tuple[str, str]


@dataclass
class SenderIdentity:
    """
    Feed owner derived from an email sender address.

    Attributes:
        local_part: Local part with any "+tag" suffix removed
        domain: Sender domain
        display_name: Display name from the From header (may be empty)
    """
    local_part: str
    domain: str
    display_name: str = ''

    @classmethod
    def from_address(cls, address: Optional[str], display_name: str = '') -> 'SenderIdentity':
        """
        Build identity from a raw sender address.

        Raises:
            ValueError: If the address is missing or has no domain
        """
        if not address:
            raise ValueError("Missing 'from' address")

        local_part, at, domain = address.strip().partition('@')
        if not at or not local_part or not domain:
            raise ValueError(f"Invalid 'from' address: {address}")

        # sender+news@domain.com and sender@domain.com share one feed
        local_part = local_part.split('+')[0]
        return cls(local_part=local_part, domain=domain, display_name=display_name or '')

    @property
    def address(self) -> str:
        """Canonical sender address (tag removed)."""
        return f"{self.local_part}@{self.domain}"


@dataclass
class Link:
    href: str
    rel: str = REL_ALTERNATE
    type: str = HTML_TYPE


@dataclass
class Author:
    name: str
    email: Optional[str] = None


@dataclass
class Content:
    """
    Entry body.

    Attributes:
        kind: "html" or "text"
        body: Content as published in the feed
    """
    kind: str
    body: str

    @property
    def size_bytes(self) -> int:
        """UTF-8 encoded length of the body."""
        return len(self.body.encode('utf-8'))

    @property
    def extension(self) -> str:
        """File extension for the companion blob."""
        return 'html' if self.kind == KIND_HTML else 'txt'

    @property
    def media_type(self) -> str:
        return HTML_TYPE if self.kind == KIND_HTML else TEXT_TYPE


@dataclass
class Entry:
    """
    One feed entry, created per inbound message.

    Entries are never mutated; a re-delivered message replaces the old copy.
    """
    id: str
    title: str
    updated: str
    content: Content
    author: Author
    links: List[Link] = field(default_factory=list)
    summary: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return self.content.size_bytes


@dataclass
class FeedDocument:
    """
    A sender's Atom feed.

    Attributes:
        id: URN that stays the same for the sender across every rebuild
        title: Feed title
        updated: Timestamp of the last rebuild
        author: Feed author
        links: Alternate link followed by the self link
        entries: Most-recent-first, unique by id
        icon: 32px favicon URL (optional)
        logo: 128px favicon URL (optional)
    """
    id: str
    title: str
    updated: str
    author: Author
    links: List[Link] = field(default_factory=list)
    entries: List[Entry] = field(default_factory=list)
    icon: Optional[str] = None
    logo: Optional[str] = None


@dataclass
class InboundEmail:
    """
    Structured email record produced by the ingestion collaborator.

    Attributes:
        from_address: Sender address (empty if absent)
        from_name: Sender display name (empty if absent)
        subject: Subject line (empty if absent)
        message_id: Message-ID header value, brackets included
        headers: All headers as (key, value) pairs in message order
        html_body: HTML body (empty string if not present)
        text_body: Plain text body (empty string if not present)
    """
    from_address: str
    from_name: str
    subject: str
    message_id: str
    headers: List[Header] = field(default_factory=list)
    html_body: str = ''
    text_body: str = ''

    @property
    def has_content(self) -> bool:
        """Check if email has any body content."""
        return bool(self.html_body or self.text_body)

    @property
    def content(self) -> Optional[Content]:
        """
        Best available body for the feed.

        Priority: html_body > text_body > None
        """
        if self.html_body:
            return Content(kind=KIND_HTML, body=self.html_body)
        if self.text_body:
            return Content(kind=KIND_TEXT, body=self.text_body)
        return None


@dataclass
class EmailLocation:
    """
    Where SES stored the raw message.

    Attributes:
        message_id: SQS message identifier
        bucket_name: S3 bucket containing the raw email
        object_key: S3 object key for the raw email
        from_address: Sender from the SES common headers (for logging)
        subject: Subject from the SES common headers (for logging)
    """
    message_id: str
    bucket_name: str
    object_key: str
    from_address: str = ''
    subject: str = ''


@dataclass
class TrimResult:
    """Outcome of retention trimming; evicted is in removal order, oldest first."""
    kept: List[Entry]
    evicted: List[Entry]


@dataclass
class DeleteResult:
    """
    Outcome of a best-effort multi-key delete.

    Attributes:
        deleted: Keys the store reported as deleted
        errors: Keys that failed, mapped to an error description
    """
    deleted: List[str] = field(default_factory=list)
    errors: dict = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class NotificationResult:
    success: bool
    skipped: bool = False
    status_code: Optional[int] = None
    error_message: Optional[str] = None


@dataclass
class ProcessingResult:
    """
    Result of processing one inbound message.

    This explicit result type makes success/failure handling clear
    and prevents exceptions from being used for control flow.

    Attributes:
        success: Whether the feed update was committed
        message_id: SQS message identifier
        feed_key: Storage key of the feed document
        entry_id: Id of the entry that was added
        created_feed: True if no feed existed before this message
        evicted_ids: Ids of entries removed by retention
        error_message: Error description (if processing failed)
    """
    success: bool
    message_id: str
    feed_key: Optional[str] = None
    entry_id: Optional[str] = None
    created_feed: bool = False
    evicted_ids: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def should_delete_message(self) -> bool:
        """Only committed updates are acknowledged; failures are redelivered."""
        return self.success

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"ProcessingResult(success=True, message_id={self.message_id}, feed_key={self.feed_key})"
        else:
            return f"ProcessingResult(success=False, message_id={self.message_id}, error={self.error_message})"
