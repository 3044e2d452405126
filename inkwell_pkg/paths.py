"""
Slug and URL helpers.

Authors reference media and other pages with filesystem-relative paths from
inside a nested content tree; these helpers turn such references into paths
under the URL root the content set is published to.
"""

import os
import re
import unicodedata

EXTERNAL_PREFIXES = ('http://', 'https://', 'mailto:', 'tel:', 'ftp:')

# ![alt](target "title") and [text](target)
MARKDOWN_LINK_RE = re.compile(r'(!?\[[^\]\n]*\]\(\s*)([^)\s]+)((?:\s+"[^"\n]*")?\s*\))')
# [id]: target "optional title"; footnotes ([^id]: text) are not links
REFERENCE_LINK_RE = re.compile(
    r'^(\s{0,3}\[(?!\^)[^\]\n]+\]:[ \t]*)(\S+)(?=[ \t]*(?:(?:"[^"\n]*"|\'[^\'\n]*\'|\([^)\n]*\))[ \t]*)?$)',
    re.MULTILINE,
)
# src="..." / href="..." in inline HTML
HTML_ATTRIBUTE_RE = re.compile(r'(\b(?:src|href)=")([^"]+)(")')

NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')


def slugify(text, max_length=80):
    """Convert text to a lowercase, hyphen-separated, ASCII slug."""
    if not text or not text.strip():
        return ''

    normalized = unicodedata.normalize('NFKD', text)
    stripped = ''.join(c for c in normalized if not unicodedata.combining(c))
    slug = NON_ALNUM_RE.sub('-', stripped.lower()).strip('-')

    if len(slug) > max_length:
        slug = slug[:max_length].rstrip('-')
    return slug


def combine_url(base_url, relative_path):
    """Join two URL fragments with exactly one slash between them."""
    return f"{base_url.strip('/')}/{relative_path.strip('/')}"


def site_path(*parts):
    """Build a site-relative URL with a leading slash, skipping empty parts."""
    segments = []
    for part in parts:
        segments.extend(s for s in str(part).split('/') if s)
    return '/' + '/'.join(segments)


def is_external_url(path):
    return path.lower().startswith(EXTERNAL_PREFIXES)


def rewrite_url(url, base_url):
    """
    Rewrite a link or media target relative to ``base_url``.

    Absolute-scheme URLs, in-page anchors, targets carrying a query or a
    fragment and root-relative targets are returned unchanged.
    """
    if not url or is_external_url(url) or url.startswith('#'):
        return url
    if '?' in url or '#' in url:
        return url
    if url.startswith('/'):
        return url

    if not url.startswith('../'):
        return combine_url(base_url, url)

    base_segments = [s for s in base_url.split('/') if s]
    relative_segments = url.split('/')

    levels_up = 0
    while relative_segments and relative_segments[0] == '..':
        levels_up += 1
        relative_segments.pop(0)

    base_segments = base_segments[:max(0, len(base_segments) - levels_up)]
    return '/'.join(base_segments + relative_segments)


def rewrite_links(markdown_text, base_url):
    """
    Rewrite every link and image target found in markdown source text.

    Matching is done on the source text, so link-like text inside fenced code
    blocks is rewritten as well.
    """
    def _replace(match):
        return match.group(1) + rewrite_url(match.group(2), base_url) + match.group(3)

    def _replace_reference(match):
        return match.group(1) + rewrite_url(match.group(2), base_url)

    text = MARKDOWN_LINK_RE.sub(_replace, markdown_text)
    text = REFERENCE_LINK_RE.sub(_replace_reference, text)
    return HTML_ATTRIBUTE_RE.sub(_replace, text)


def relative_directory(file_path, root):
    """Directory of ``file_path`` relative to ``root``, with '/' separators."""
    relative = os.path.relpath(os.path.dirname(os.path.abspath(file_path)), os.path.abspath(root))
    if relative in ('.', ''):
        return ''
    return relative.replace(os.sep, '/')


def base_url_for(file_path, root, url_root):
    """URL root of a content set joined with the file's relative directory."""
    relative_dir = relative_directory(file_path, root)
    if not relative_dir:
        return url_root.strip('/')
    if not url_root.strip('/'):
        return relative_dir
    return combine_url(url_root, relative_dir)


def file_path_to_url(file_path, root):
    """
    Turn a content file path into its page URL.

    The path is taken relative to ``root``, the extension is dropped and every
    segment is slugified.
    """
    relative = os.path.relpath(os.path.abspath(file_path), os.path.abspath(root))
    relative = os.path.splitext(relative)[0]
    segments = [slugify(segment) for segment in relative.split(os.sep)]
    return '/'.join(s for s in segments if s)
