"""
Tests for feed/entry link resolution.
"""

import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.links import (
    feed_icons,
    get_header,
    object_key_from_url,
    public_url,
    resolve_entry_links,
    resolve_feed_link,
    resolve_feed_links,
)
from domain.models import Link


class TestGetHeader:
    """Test case-insensitive header lookup."""

    def test_case_insensitive(self):
        headers = [('list-url', '<https://news.example.com>')]
        assert get_header(headers, 'List-URL') == '<https://news.example.com>'

    def test_first_match_wins(self):
        headers = [('X-Test', 'first'), ('x-test', 'second')]
        assert get_header(headers, 'X-TEST') == 'first'

    def test_missing(self):
        assert get_header([('Subject', 'Hi')], 'List-Post') is None


class TestFeedLinks:
    """Test feed alternate and self links."""

    def test_defaults_to_sender_domain(self):
        link = resolve_feed_link('domain.com', [])
        assert link == Link(href='https://domain.com', rel='alternate', type='text/html')

    def test_uses_list_url_header(self):
        link = resolve_feed_link('domain.com', [('List-URL', ' <https://news.substack.com> ')])
        assert link.href == 'https://news.substack.com'
        assert link.rel == 'alternate'

    def test_self_link_always_appended(self):
        links = resolve_feed_links(
            'domain.com',
            [('List-URL', '<https://news.substack.com>')],
            'rss.bucket.com',
            'sender-domain-com.xml'
        )

        assert [link.rel for link in links] == ['alternate', 'self']
        assert links[1] == Link(
            href='https://rss.bucket.com/sender-domain-com.xml',
            rel='self',
            type='application/atom+xml'
        )

    def test_public_url(self):
        assert public_url('rss.bucket.com', 'a/b.html') == 'https://rss.bucket.com/a/b.html'

    def test_object_key_from_url(self):
        href = public_url('rss.bucket.com', 'domain.com/sender.x/m.html')
        assert object_key_from_url('rss.bucket.com', href) == 'domain.com/sender.x/m.html'

    def test_object_key_from_foreign_url(self):
        assert object_key_from_url('rss.bucket.com', 'https://news.domain.com/p/1') is None
        assert object_key_from_url('rss.bucket.com', 'https://rss.bucket.com/') is None


class TestEntryLinks:
    """Test entry links from List-Post."""

    def test_list_post_header(self):
        links = resolve_entry_links([('List-Post', '<https://news.substack.com/p/post>')])
        assert links == [Link(href='https://news.substack.com/p/post', rel='alternate', type='text/html')]

    def test_no_header_means_no_links(self):
        assert resolve_entry_links([('Subject', 'Hi')]) == []

    def test_blank_header_means_no_links(self):
        assert resolve_entry_links([('List-Post', ' <> ')]) == []


class TestFeedIcons:
    """Test favicon derivation."""

    def test_icons_from_hostname(self):
        icon, logo = feed_icons(Link(href='https://domain.com'))
        assert icon == 'https://s2.googleusercontent.com/s2/favicons?domain=domain.com&sz=32'
        assert logo == 'https://s2.googleusercontent.com/s2/favicons?domain=domain.com&sz=128'

    def test_icons_use_list_url_host(self):
        icon, _ = feed_icons(Link(href='https://news.substack.com/archive'))
        assert 'domain=news.substack.com' in icon

    def test_unparseable_href(self):
        assert feed_icons(Link(href='not a url')) == (None, None)

    def test_no_link(self):
        assert feed_icons(None) == (None, None)
