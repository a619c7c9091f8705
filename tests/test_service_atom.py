"""
Tests for the Atom XML codec.
"""

import pytest
import sys
import os
from xml.etree import ElementTree as ET

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from services import atom
from domain.models import Author, Content, Entry, FeedDocument, Link

NS = {'atom': 'http://www.w3.org/2005/Atom'}


@pytest.fixture
def sample_feed():
    entry = Entry(
        id='urn:domain-com:message-id',
        title='Subject',
        updated='2025-10-05T08:00:00.000Z',
        summary='Subject',
        links=[Link(href='https://rss.bucket.com/domain.com/sender/message-id.html')],
        author=Author(name='Sender', email='sender@domain.com'),
        content=Content(kind='html', body='<p>Email body & more.</p>\n'),
    )
    return FeedDocument(
        id='urn:domain-com:sender',
        title='Sender',
        updated='2025-10-05T08:00:00.000Z',
        icon='https://s2.googleusercontent.com/s2/favicons?domain=domain.com&sz=32',
        logo='https://s2.googleusercontent.com/s2/favicons?domain=domain.com&sz=128',
        links=[
            Link(href='https://domain.com'),
            Link(href='https://rss.bucket.com/sender-domain-com.xml', rel='self', type='application/atom+xml'),
        ],
        author=Author(name='Sender', email='sender@domain.com'),
        entries=[entry],
    )


class TestRenderFeed:
    """Test feed serialization."""

    def test_declaration_and_namespace(self, sample_feed):
        xml_text = atom.render_feed(sample_feed)

        assert xml_text.startswith('<?xml version="1.0" encoding="utf-8"?>\n<feed xmlns="http://www.w3.org/2005/Atom">')

    def test_element_order(self, sample_feed):
        root = ET.fromstring(atom.render_feed(sample_feed))

        children = [child.tag.split('}')[1] for child in root]
        assert children == ['id', 'updated', 'title', 'icon', 'logo', 'link', 'link', 'author', 'entry']

        entry = root.find('atom:entry', NS)
        assert [child.tag.split('}')[1] for child in entry] == [
            'id', 'updated', 'title', 'summary', 'link', 'author', 'content'
        ]

    def test_link_attributes(self, sample_feed):
        root = ET.fromstring(atom.render_feed(sample_feed))

        self_link = root.findall('atom:link', NS)[1]
        assert self_link.attrib == {
            'href': 'https://rss.bucket.com/sender-domain-com.xml',
            'rel': 'self',
            'type': 'application/atom+xml',
        }

    def test_content_is_escaped(self, sample_feed):
        xml_text = atom.render_feed(sample_feed)
        assert '&lt;p&gt;Email body &amp; more.&lt;/p&gt;' in xml_text

    def test_optional_fields_omitted(self, sample_feed):
        sample_feed.icon = None
        sample_feed.logo = None
        sample_feed.entries[0].summary = None
        sample_feed.entries[0].author.email = None

        xml_text = atom.render_feed(sample_feed)

        assert '<icon>' not in xml_text
        assert '<logo>' not in xml_text
        assert '<summary>' not in xml_text
        assert xml_text.count('<email>') == 1

    def test_compact_vs_pretty(self, sample_feed):
        compact = atom.render_feed(sample_feed)
        pretty = atom.render_feed(sample_feed, pretty=True)

        assert compact.count('\n') == 2  # declaration + the newline inside the entry body
        assert '\n  <id>urn:domain-com:sender</id>' in pretty
        assert '\n    <id>urn:domain-com:message-id</id>' in pretty


    def test_control_characters_are_dropped(self, sample_feed):
        entry = sample_feed.entries[0]
        entry.title = 'Sub\x1bject'
        entry.author.name = 'Sen\x00der'
        entry.content = Content(kind='html', body='<p>page\x0cbreak\x08</p>')

        parsed = atom.parse_feed(atom.render_feed(sample_feed))

        assert parsed.entries[0].title == 'Subject'
        assert parsed.entries[0].author.name == 'Sender'
        assert parsed.entries[0].content.body == '<p>pagebreak</p>'

    def test_carriage_returns_are_normalized(self, sample_feed):
        sample_feed.entries[0].content = Content(kind='text', body='line1\r\nline2\rline3\n')

        xml_text = atom.render_feed(sample_feed)

        assert '\r' not in xml_text
        body = atom.parse_feed(xml_text).entries[0].content.body
        assert body == 'line1\nline2\nline3\n'
        # a second write stores the same bytes
        assert atom.render_feed(atom.parse_feed(xml_text)) == xml_text


class TestParseFeed:
    """Test feed parsing."""

    @pytest.mark.parametrize("pretty", [False, True])
    def test_reads_back_what_it_writes(self, sample_feed, pretty):
        parsed = atom.parse_feed(atom.render_feed(sample_feed, pretty=pretty))
        assert parsed == sample_feed

    def test_single_entry_and_link_are_lists(self):
        xml_text = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<feed xmlns="http://www.w3.org/2005/Atom">'
            '<id>urn:a:b</id><updated>2025-10-05T08:00:00.000Z</updated><title>T</title>'
            '<link href="https://a.com" rel="alternate" type="text/html"/>'
            '<entry><id>urn:a:1</id><updated>2025-10-05T08:00:00.000Z</updated><title>E</title>'
            '<content type="text">hello</content></entry>'
            '</feed>'
        )

        feed = atom.parse_feed(xml_text)

        assert isinstance(feed.links, list) and len(feed.links) == 1
        assert isinstance(feed.entries, list) and len(feed.entries) == 1
        assert feed.entries[0].links == []
        assert feed.entries[0].content == Content(kind='text', body='hello')
        assert feed.icon is None

    def test_malformed_xml(self):
        with pytest.raises(ValueError, match="Malformed feed XML"):
            atom.parse_feed('<feed><entry></feed>')

    def test_not_atom(self):
        with pytest.raises(ValueError, match="Not an Atom feed"):
            atom.parse_feed('<rss version="2.0"><channel/></rss>')
