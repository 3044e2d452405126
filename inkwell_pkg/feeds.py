"""
Sitemap and RSS feed generation for pages that carry metadata.

Dates come only from page metadata, so two builds of the same content
produce identical feed files.
"""

import logging
import os
from datetime import datetime
from email.utils import formatdate
from xml.sax.saxutils import escape

logger = logging.getLogger('Inkwell.Feeds')


def absolute_url(site_url, url):
    return f"{site_url.rstrip('/')}/{url.lstrip('/')}"


def format_sitemap_entry(url, lastmod=None):
    """Format a single sitemap entry."""
    entry = f'''<url>
<loc>{escape(url)}</loc>
'''
    if lastmod:
        entry += f'''<lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>
'''
    return entry + '''</url>
'''


def generate_sitemap(pages, site_url):
    """Build sitemap XML for every page with metadata."""
    sitemap_content = '''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
'''
    for page in pages:
        if page.metadata is None:
            continue
        sitemap_content += format_sitemap_entry(absolute_url(site_url, page.url), page.metadata.last_mod)

    sitemap_content += '</urlset>\n'
    return sitemap_content


def _sort_key(page):
    return page.metadata.last_mod or datetime.min


def generate_rss_feed(pages, site_url, title, description='', max_items=None):
    """Build an RSS 2.0 feed, newest first, from pages marked as RSS items."""
    items = [
        page for page in pages
        if page.metadata is not None and page.metadata.title and page.metadata.rss_item
    ]
    items.sort(key=_sort_key, reverse=True)
    if max_items:
        items = items[:max_items]

    dated = [page.metadata.last_mod for page in items if page.metadata.last_mod]
    site_name = title or site_url

    rss_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
<title>{escape(site_name)}</title>
<link>{escape(site_url)}</link>
<description>{escape(description or '')}</description>
<language>en-us</language>
'''
    if dated:
        rss_content += f'''<lastBuildDate>{formatdate(max(dated).timestamp())}</lastBuildDate>
'''

    for page in items:
        link = escape(absolute_url(site_url, page.url))
        rss_content += f'''
<item>
<title>{escape(page.metadata.title)}</title>
<link>{link}</link>
<description>{escape(page.metadata.description or '')}</description>
<guid isPermaLink="false">{escape(page.url)}</guid>'''
        if page.metadata.last_mod:
            rss_content += f'''
<pubDate>{formatdate(page.metadata.last_mod.timestamp())}</pubDate>'''
        rss_content += '''
</item>'''

    rss_content += '''
</channel>
</rss>
'''
    return rss_content


def _write(path, content):
    try:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return True
    except (IOError, OSError) as e:
        logger.error(f"Failed to write {path}: {e}")
        return False


def write_feeds(pages, settings, output_root):
    """Write sitemap.xml and rss.xml into the output root."""
    site_url = settings.get('site_url')
    if not site_url:
        return False

    sitemap_ok = _write(os.path.join(output_root, 'sitemap.xml'), generate_sitemap(pages, site_url))
    if sitemap_ok:
        logger.info("Generating XML sitemap")

    rss = generate_rss_feed(pages, site_url, settings.get('site_title'), settings.get('site_description'))
    rss_ok = _write(os.path.join(output_root, 'rss.xml'), rss)
    if rss_ok:
        logger.info("Generating RSS feed")

    return sitemap_ok and rss_ok
