"""
Feed envelope construction.

The feed is rebuilt from scratch on every update so feed-level fields always
reflect the latest message. Only the entry list and the id carry over.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .identifiers import derive_feed_id, feed_key
from .links import feed_icons, resolve_feed_links
from .models import Author, Entry, FeedDocument, Header, SenderIdentity


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    RFC 3339 UTC timestamp with millisecond precision.

    Example:
        >>> format_timestamp(datetime(2025, 10, 5, 8, 0, tzinfo=timezone.utc))
        '2025-10-05T08:00:00.000Z'
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def build_feed(
    identity: SenderIdentity,
    headers: Iterable[Header],
    updated: str,
    entries: List[Entry],
    bucket_domain: str
) -> FeedDocument:
    """
    Assemble the feed document for a sender.

    Args:
        identity: Feed owner
        headers: Headers of the message that triggered the rebuild
        updated: Timestamp for the feed's updated field
        entries: Already merged and trimmed entries, attached as-is
        bucket_domain: Public domain of the feed bucket (for the self link)

    Returns:
        FeedDocument: A new document; nothing is mutated
    """
    links = resolve_feed_links(identity.domain, headers, bucket_domain, feed_key(identity))
    icon, logo = feed_icons(links[0] if links else None)

    return FeedDocument(
        id=derive_feed_id(identity.domain, identity.local_part),
        title=identity.display_name or identity.address,
        updated=updated,
        icon=icon,
        logo=logo,
        links=links,
        author=Author(name=identity.display_name or identity.address, email=identity.address),
        entries=entries,
    )
