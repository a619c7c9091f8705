"""
Atom XML codec for feed documents.

Feeds are written with xml.etree.ElementTree in the Atom namespace and read
back with the same module, so anything render_feed writes parse_feed can
read. All text goes through sanitize_text first: ElementTree will happily
write control characters that no XML parser accepts.
"""

import logging
from typing import List, Optional
from xml.etree import ElementTree as ET

from domain.identifiers import sanitize_text
from domain.models import Author, Content, Entry, FeedDocument, KIND_TEXT, Link

logger = logging.getLogger(__name__)

ATOM_NS = 'http://www.w3.org/2005/Atom'
XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'

ET.register_namespace('', ATOM_NS)


def _tag(name: str) -> str:
    return f"{{{ATOM_NS}}}{name}"


def _add_text(parent: ET.Element, name: str, text: Optional[str]) -> None:
    if text is None:
        return
    ET.SubElement(parent, _tag(name)).text = sanitize_text(text)


def _add_links(parent: ET.Element, links: List[Link]) -> None:
    for link in links:
        ET.SubElement(parent, _tag('link'), {'href': sanitize_text(link.href), 'rel': link.rel, 'type': link.type})


def _add_author(parent: ET.Element, author: Optional[Author]) -> None:
    if author is None:
        return
    element = ET.SubElement(parent, _tag('author'))
    _add_text(element, 'name', author.name)
    _add_text(element, 'email', author.email)


def _entry_element(parent: ET.Element, entry: Entry) -> None:
    element = ET.SubElement(parent, _tag('entry'))
    _add_text(element, 'id', entry.id)
    _add_text(element, 'updated', entry.updated)
    _add_text(element, 'title', entry.title)
    _add_text(element, 'summary', entry.summary)
    _add_links(element, entry.links)
    _add_author(element, entry.author)
    content = ET.SubElement(element, _tag('content'), {'type': entry.content.kind})
    content.text = sanitize_text(entry.content.body)


def render_feed(feed: FeedDocument, pretty: bool = False) -> str:
    """
    Serialize a feed document to Atom XML.

    Args:
        feed: Feed to serialize
        pretty: Indent nested elements (two spaces per level)

    Returns:
        str: XML text with an XML declaration
    """
    root = ET.Element(_tag('feed'))
    _add_text(root, 'id', feed.id)
    _add_text(root, 'updated', feed.updated)
    _add_text(root, 'title', feed.title)
    _add_text(root, 'icon', feed.icon)
    _add_text(root, 'logo', feed.logo)
    _add_links(root, feed.links)
    _add_author(root, feed.author)
    for entry in feed.entries:
        _entry_element(root, entry)

    if pretty:
        ET.indent(root, space='  ')

    return XML_DECLARATION + ET.tostring(root, encoding='unicode')


def _text(element: ET.Element, name: str) -> Optional[str]:
    child = element.find(_tag(name))
    if child is None:
        return None
    return child.text or ''


def _read_links(element: ET.Element) -> List[Link]:
    links = []
    for link in element.findall(_tag('link')):
        href = link.get('href')
        if not href:
            continue
        links.append(Link(href=href, rel=link.get('rel', 'alternate'), type=link.get('type', 'text/html')))
    return links


def _read_author(element: ET.Element) -> Optional[Author]:
    author = element.find(_tag('author'))
    if author is None:
        return None
    return Author(name=_text(author, 'name') or '', email=_text(author, 'email'))


def _read_entry(element: ET.Element) -> Entry:
    content = element.find(_tag('content'))
    if content is None:
        body, kind = '', KIND_TEXT
    else:
        body, kind = content.text or '', content.get('type', KIND_TEXT)

    return Entry(
        id=_text(element, 'id') or '',
        title=_text(element, 'title') or '',
        updated=_text(element, 'updated') or '',
        summary=_text(element, 'summary'),
        links=_read_links(element),
        author=_read_author(element) or Author(name=''),
        content=Content(kind=kind, body=body),
    )


def parse_feed(xml_text: str) -> FeedDocument:
    """
    Parse Atom XML written by render_feed.

    Args:
        xml_text: Feed XML

    Returns:
        FeedDocument: Parsed feed; entries and links are always lists

    Raises:
        ValueError: If the XML is malformed or the root is not an Atom feed
    """
    try:
        root = ET.fromstring(xml_text.encode('utf-8'))
    except ET.ParseError as e:
        raise ValueError(f"Malformed feed XML: {e}")

    if root.tag != _tag('feed'):
        raise ValueError(f"Not an Atom feed, root element is {root.tag}")

    entries = [_read_entry(element) for element in root.findall(_tag('entry'))]
    logger.debug(f"Parsed feed with {len(entries)} entries")

    return FeedDocument(
        id=_text(root, 'id') or '',
        title=_text(root, 'title') or '',
        updated=_text(root, 'updated') or '',
        icon=_text(root, 'icon'),
        logo=_text(root, 'logo'),
        links=_read_links(root),
        author=_read_author(root) or Author(name=''),
        entries=entries,
    )
