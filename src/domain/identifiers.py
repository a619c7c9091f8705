"""
Identifier and storage key derivation.

Feed and entry ids are URNs built from sanitized components so the same
sender and Message-ID always map to the same id. That is what makes
re-delivery of a message idempotent.
"""

import re
from typing import List, Optional

from .models import SenderIdentity

# <, >, &, ', " and whitespace at either end
_EDGE_CHARS = re.compile(r'^[<>&\'"\s]+|[<>&\'"\s]+$')
_NON_ALNUM = re.compile(r'[^A-Za-z0-9]')
# Characters XML 1.0 cannot carry (\t, \n and \r are allowed)
_XML_ILLEGAL = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F\ud800-\udfff\ufffe\uffff]')

COMPANION_EXTENSIONS = ('html', 'txt')


def sanitize_field(value: Optional[str]) -> str:
    """
    Strip markup and quoting characters from both ends of a header value.

    Example:
        >>> sanitize_field('<https://example.com/p/1> ')
        'https://example.com/p/1'
    """
    if not value:
        return ''
    return _EDGE_CHARS.sub('', value)


def sanitize_key(value: Optional[str]) -> str:
    """
    Make a value safe for URNs and storage keys.

    Edge characters are stripped first, then every remaining character
    outside [A-Za-z0-9] becomes "-".

    Example:
        >>> sanitize_key('<abc.123@mail.example.com>')
        'abc-123-mail-example-com'
    """
    return _NON_ALNUM.sub('-', sanitize_field(value))


def sanitize_text(value: str) -> str:
    """
    Make free text safe to store in the feed document.

    Line endings become "\\n" (an XML parser would fold "\\r\\n" on read
    anyway) and characters XML 1.0 forbids are dropped.

    Example:
        >>> sanitize_text('page\\x0cbreak\\r\\n')
        'pagebreak\\n'
    """
    value = value.replace('\r\n', '\n').replace('\r', '\n')
    return _XML_ILLEGAL.sub('', value)


def generate_id(namespace: str, local_id: str) -> str:
    """Build urn:<namespace>:<local_id> from sanitized components."""
    return f"urn:{sanitize_key(namespace)}:{sanitize_key(local_id)}"


def derive_feed_id(sender_domain: str, sender_local_part: str) -> str:
    """Feed id; depends on sender identity only so rebuilds keep it."""
    return generate_id(sender_domain, sender_local_part)


def derive_entry_id(sender_domain: str, message_id: str) -> str:
    return generate_id(sender_domain, message_id)


def feed_key(identity: SenderIdentity) -> str:
    """Storage key of the sender's feed document, e.g. sender-domain-com.xml."""
    return f"{sanitize_key(identity.address)}.xml"


def companion_key(identity: SenderIdentity, message_key: str, extension: str) -> str:
    """
    Storage key of an entry's companion blob.

    Args:
        identity: Feed owner
        message_key: Message-ID (sanitized here)
        extension: "html" or "txt"

    Returns:
        str: <domain>/<local part>/<message key>.<extension>
    """
    return f"{identity.domain}/{identity.local_part}/{sanitize_key(message_key)}.{extension}"


def message_key_from_entry_id(entry_id: str) -> Optional[str]:
    """
    Recover the sanitized message key from an entry URN.

    Returns:
        The local id of the URN, or None if entry_id is not a URN
    """
    parts = entry_id.split(':', 2)
    if len(parts) != 3 or parts[0] != 'urn' or not parts[2]:
        return None
    return parts[2]


def companion_keys_for_entry(identity: SenderIdentity, entry_id: str) -> List[str]:
    """
    All keys a companion blob for entry_id could live at.

    The entry id does not record the content kind, so both extensions are
    returned. Deleting a key that was never written is harmless.
    """
    message_key = message_key_from_entry_id(entry_id)
    if not message_key:
        return []
    return [companion_key(identity, message_key, ext) for ext in COMPANION_EXTENSIONS]
