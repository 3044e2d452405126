"""
Markdown parsing: front matter, link rewriting, heading ids and the
table of contents.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import mistune
import yaml
from mistune.toc import add_toc_hook

from .exceptions import FrontMatterParseError
from .models import TocEntry
from .paths import rewrite_links, slugify

FRONT_MATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
EXPLICIT_ID_RE = re.compile(r'\s*\{#([A-Za-z][\w\-:.]*)\}\s*$')


@dataclass(frozen=True)
class ParsedMarkdown:
    front_matter: Any
    markdown: str
    html: str
    toc: Tuple[TocEntry, ...] = ()


class YamlFrontMatterDeserializer:
    """Deserialize a YAML front matter block into an instance of ``cls``."""

    def __call__(self, text, cls):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise FrontMatterParseError(f"Invalid YAML front matter: {e}")

        try:
            if hasattr(cls, 'from_mapping'):
                return cls.from_mapping(data)
            return self._populate(cls(), data)
        except (TypeError, ValueError) as e:
            raise FrontMatterParseError(f"Front matter does not match {cls.__name__}: {e}")

    def _populate(self, instance, data):
        if data is None:
            return instance
        if not isinstance(data, dict):
            raise TypeError(f"Front matter must be a mapping, got {type(data).__name__}")
        for key, value in data.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        return instance


def split_front_matter(text):
    """Return ``(front_matter_text or None, body)``."""
    text = text.lstrip('﻿')
    match = FRONT_MATTER_RE.match(text)
    if not match:
        return None, text
    return match.group(1), text[match.end():].lstrip('\r\n')


def make_heading_id(slug=slugify):
    """
    Build a heading id function for one document.

    An explicit ``{#id}`` suffix wins and is removed from the heading text;
    otherwise the slugified text is used, de-duplicated with ``-1``, ``-2``.
    Headings whose text slugifies to nothing get no id.
    """
    seen = set()

    def heading_id(token, index):
        text = token.get('text', '')
        match = EXPLICIT_ID_RE.search(text)
        if match:
            token['text'] = text[:match.start()]
            anchor = match.group(1)
        else:
            anchor = slug(text)
            if not anchor:
                return None

        candidate = anchor
        suffix = 1
        while candidate in seen:
            candidate = f"{anchor}-{suffix}"
            suffix += 1
        seen.add(candidate)
        return candidate

    return heading_id


def build_toc(headings):
    """
    Nest ``(level, anchor_id, title)`` triples into TocEntry trees.

    Headings without an anchor id are skipped; level jumps are tolerated by
    attaching a heading to the nearest shallower heading on the stack.
    """
    roots = []
    stack = []

    for level, anchor_id, title in headings:
        if not anchor_id:
            continue
        node = {'title': title, 'anchor_id': anchor_id, 'children': []}
        while stack and stack[-1][0] >= level:
            stack.pop()
        if stack:
            stack[-1][1]['children'].append(node)
        else:
            roots.append(node)
        stack.append((level, node))

    def freeze(node):
        return TocEntry(
            title=node['title'],
            anchor_id=node['anchor_id'],
            children=tuple(freeze(child) for child in node['children']),
        )

    return tuple(freeze(node) for node in roots)


class MarkdownParser:
    def __init__(self, pre_process=None, deserializer=None, toc_min_level=1, toc_max_level=6, slug=slugify):
        self.pre_process = pre_process
        self.deserializer = deserializer or YamlFrontMatterDeserializer()
        self.toc_min_level = toc_min_level
        self.toc_max_level = toc_max_level
        self.slug = slug
        self.logger = logging.getLogger('Inkwell.Markdown')

    def create_markdown(self):
        """Create a Mistune markdown instance that assigns heading ids."""
        md = mistune.create_markdown(
            renderer=mistune.HTMLRenderer(escape=False),
            plugins=['table', 'task_lists', 'strikethrough']
        )
        add_toc_hook(md, self.toc_min_level, self.toc_max_level, make_heading_id(self.slug))
        return md

    def parse_front_matter(self, block, front_matter_cls, source=None):
        if block is None:
            return front_matter_cls()
        try:
            return self.deserializer(block, front_matter_cls)
        except FrontMatterParseError as e:
            self.logger.warning(f"{FrontMatterParseError(str(e), source)} Using default front matter.")
        except Exception as e:
            self.logger.warning(f"Failed to read front matter in {source or '<string>'}: {e}. Using default front matter.")
        return front_matter_cls()

    def parse(self, text, front_matter_cls, source=None, base_url: Optional[str] = None):
        """Parse a markdown document into front matter, HTML and a TOC."""
        if self.pre_process:
            text = self.pre_process(text)

        block, body = split_front_matter(text)
        front_matter = self.parse_front_matter(block, front_matter_cls, source)

        if base_url is not None:
            body = rewrite_links(body, base_url)

        md = self.create_markdown()
        html, state = md.parse(body)
        toc = build_toc(state.env.get('toc_items', []))

        return ParsedMarkdown(front_matter=front_matter, markdown=body, html=html, toc=toc)
