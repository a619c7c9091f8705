"""
Email processing utilities for Lambda handlers.

This module turns a raw MIME message into the structured InboundEmail
record consumed by the feed pipeline.
"""

import hashlib
import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parseaddr
from typing import Dict

from domain.models import InboundEmail

logger = logging.getLogger(__name__)


def extract_email_body(msg: EmailMessage) -> Dict[str, str]:
    """
    Extract text and HTML bodies from a parsed message.

    Attachments (and inline parts with a filename) are skipped.

    Args:
        msg: Message parsed with policy.default

    Returns:
        Dictionary with text_body and html_body (empty string when absent)
    """
    result = {
        'text_body': '',
        'html_body': ''
    }

    for part in msg.walk():
        if part.is_multipart():
            continue

        content_type = part.get_content_type()
        content_disposition = str(part.get("Content-Disposition", ""))
        if "attachment" in content_disposition or part.get_filename():
            continue

        if content_type == "text/plain" and not result['text_body']:
            result['text_body'] = _decode_part(part)
        elif content_type == "text/html" and not result['html_body']:
            result['html_body'] = _decode_part(part)

    if not result['text_body'] and not result['html_body']:
        logger.warning(
            f"No text or HTML body found (content type: {msg.get_content_type()}). "
            f"Email body will be empty."
        )

    return result


def _decode_part(part: EmailMessage) -> str:
    try:
        # get_content() handles quoted-printable, base64, etc automatically
        return part.get_content()
    except Exception as e:
        logger.warning(f"Failed to decode body with get_content(): {e}")
        # Fallback: manual decode with get_payload(decode=True)
        payload = part.get_payload(decode=True)
        if payload:
            return payload.decode('utf-8', errors='ignore')
        return ''


def parse_email(email_content: bytes) -> InboundEmail:
    """
    Parse a raw email (MIME format) into an InboundEmail.

    Args:
        email_content: Raw email bytes from S3

    Returns:
        InboundEmail: Sender, subject, Message-ID, headers and bodies

    Raises:
        ValueError: If email content is empty

    Example:
        >>> raw = b'From: "Sender" <sender@domain.com>\\r\\nMessage-ID: <abc>\\r\\n\\r\\nHi'
        >>> parse_email(raw).from_address
        'sender@domain.com'
    """
    if not email_content:
        raise ValueError("Email content cannot be empty")

    msg = BytesParser(policy=policy.default).parsebytes(email_content)

    from_name, from_address = parseaddr(str(msg.get('From', '')))

    message_id = str(msg.get('Message-ID', '')).strip()
    if not message_id:
        # Stable stand-in so re-delivery of the same bytes still dedups
        message_id = f"<{hashlib.sha256(email_content).hexdigest()}>"
        logger.warning(f"Email has no Message-ID, using content hash {message_id}")

    headers = [(key, str(value)) for key, value in msg.items()]
    bodies = extract_email_body(msg)

    logger.info(
        f"Parsed email: from={from_address}, message_id={message_id}, "
        f"headers={len(headers)}, text={len(bodies['text_body'])}, html={len(bodies['html_body'])}"
    )

    return InboundEmail(
        from_address=from_address,
        from_name=from_name,
        subject=str(msg.get('Subject', '')),
        message_id=message_id,
        headers=headers,
        html_body=bodies['html_body'],
        text_body=bodies['text_body'],
    )
