"""
Data model shared by the ingestion pipeline, the aggregator and the generator.
"""

import sys
from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Any, Optional, Tuple


def parse_date(date_str):
    """Parse a date string."""
    if isinstance(date_str, datetime):
        return date_str
    elif isinstance(date_str, date):
        return datetime(date_str.year, date_str.month, date_str.day)
    elif isinstance(date_str, str):
        for fmt in ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y']:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
    return None


TRUE_STRINGS = ('true', 'yes', 'on', '1')
FALSE_STRINGS = ('false', 'no', 'off', '0')


def parse_flag(value, key):
    """Read a YAML flag, accepting quoted true/false/yes/no strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise TypeError(f"Front matter '{key}' must be true or false, got {value!r}")


@dataclass
class Metadata:
    """Page metadata consumed by the sitemap, the RSS feed and navigation."""
    title: Optional[str] = None
    description: Optional[str] = None
    last_mod: Optional[datetime] = None
    rss_item: bool = True
    order: int = sys.maxsize


@dataclass
class FrontMatter:
    """
    Default front matter for markdown content.

    Any class can stand in for this one as long as it can be built without
    arguments and exposes ``is_draft``; ``tags`` is optional.
    """
    title: str = ''
    description: str = ''
    date: Any = None
    is_draft: bool = False
    tags: list = field(default_factory=list)
    uid: Optional[str] = None
    order: int = sys.maxsize
    rss_item: bool = True

    # YAML keys written in camelCase by authors
    ALIASES = {
        'isDraft': 'is_draft',
        'draft': 'is_draft',
        'rssItem': 'rss_item',
    }

    @classmethod
    def from_mapping(cls, data):
        """Build front matter from a YAML mapping, ignoring unknown keys."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise TypeError(f"Front matter must be a mapping, got {type(data).__name__}")

        known = cls.__dataclass_fields__
        values = {}
        for key, value in data.items():
            name = cls.ALIASES.get(key, key)
            if name in known:
                values[name] = value

        tags = values.get('tags')
        if tags is None:
            values.pop('tags', None)
        elif isinstance(tags, str):
            values['tags'] = [tags]
        elif not isinstance(tags, list):
            raise TypeError("Front matter 'tags' must be a list of names")

        for flag in ('is_draft', 'rss_item'):
            if values.get(flag) is None:
                values.pop(flag, None)
            else:
                values[flag] = parse_flag(values[flag], flag)
        return cls(**values)

    def as_metadata(self):
        return Metadata(
            title=self.title or None,
            description=self.description or None,
            last_mod=parse_date(self.date),
            rss_item=self.rss_item,
            order=self.order if isinstance(self.order, int) else sys.maxsize,
        )


@dataclass(frozen=True)
class Tag:
    name: str
    encoded_name: str
    navigate_url: str


@dataclass(frozen=True)
class TocEntry:
    title: str
    anchor_id: str
    children: Tuple['TocEntry', ...] = ()


@dataclass(frozen=True)
class ContentPage:
    """One ingested markdown file. Never mutated; replaced on re-ingestion."""
    url: str
    navigate_url: str
    body: str
    markdown: str
    front_matter: Any
    tags: Tuple[Tag, ...] = ()
    toc: Tuple[TocEntry, ...] = ()
    source_path: Optional[str] = None


@dataclass(frozen=True)
class PageToGenerate:
    url: str
    output_file: str
    metadata: Optional[Metadata] = None


@dataclass(frozen=True)
class ContentToCopy:
    source_path: str
    target_path: str


@dataclass(frozen=True)
class CrossReference:
    uid: Optional[str]
    title: str
    url: str
