"""
Link resolution for feeds and entries.

Mailing-list headers (as sent by Substack and similar platforms) take
priority. Otherwise the feed falls back to the sender's domain, and the
entry falls back to a companion blob uploaded by the processor.
"""

from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from .identifiers import sanitize_field
from .models import ATOM_TYPE, HTML_TYPE, REL_ALTERNATE, REL_SELF, Header, Link

FEED_URL_HEADER = 'List-URL'
POST_URL_HEADER = 'List-Post'

FAVICON_URL = 'https://s2.googleusercontent.com/s2/favicons?domain={host}&sz={size}'
ICON_SIZE = 32
LOGO_SIZE = 128


def get_header(headers: Iterable[Header], key: str) -> Optional[str]:
    """Value of the first header matching key, ignoring case."""
    wanted = key.lower()
    for name, value in headers:
        if name.lower() == wanted:
            return value
    return None


def public_url(bucket_domain: str, key: str) -> str:
    """Public URL of an object, assuming the bucket is served at bucket_domain."""
    return f"https://{bucket_domain}/{key}"


def object_key_from_url(bucket_domain: str, href: str) -> Optional[str]:
    """Inverse of public_url; None if href does not point into the bucket."""
    prefix = public_url(bucket_domain, '')
    if not href.startswith(prefix) or len(href) == len(prefix):
        return None
    return href[len(prefix):]


def resolve_feed_link(sender_domain: str, headers: Iterable[Header]) -> Link:
    """Alternate link for the feed: List-URL if present, else the sender's site."""
    list_url = sanitize_field(get_header(headers, FEED_URL_HEADER))
    href = list_url or f"https://{sender_domain}"
    return Link(href=href, rel=REL_ALTERNATE, type=HTML_TYPE)


def resolve_feed_links(
    sender_domain: str,
    headers: Iterable[Header],
    bucket_domain: str,
    feed_file_key: str
) -> List[Link]:
    """
    Feed links: the alternate link followed by the self link.

    The self link always points at the feed's own location in the bucket.
    """
    headers = list(headers)
    return [
        resolve_feed_link(sender_domain, headers),
        Link(
            href=public_url(bucket_domain, feed_file_key),
            rel=REL_SELF,
            type=ATOM_TYPE
        ),
    ]


def resolve_entry_links(headers: Iterable[Header]) -> List[Link]:
    """
    Entry links from the List-Post header.

    An empty list tells the caller to upload a companion blob instead,
    since some feed readers reject entries without any link.
    """
    list_post = sanitize_field(get_header(headers, POST_URL_HEADER))
    if not list_post:
        return []
    return [Link(href=list_post, rel=REL_ALTERNATE, type=HTML_TYPE)]


def feed_icons(feed_link: Optional[Link]) -> Tuple[Optional[str], Optional[str]]:
    """
    Icon (32px) and logo (128px) URLs for the feed link's host.

    Returns:
        (icon, logo), or (None, None) if no hostname can be parsed
    """
    if feed_link is None:
        return None, None
    try:
        host = urlparse(feed_link.href).hostname
    except ValueError:
        host = None
    if not host:
        return None, None
    return (
        FAVICON_URL.format(host=host, size=ICON_SIZE),
        FAVICON_URL.format(host=host, size=LOGO_SIZE),
    )
