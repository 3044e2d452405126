"""
Site navigation tree built from the URL segments of titled pages.

A page whose last segment is ``index`` stands in for its folder: the folder
entry takes the index page's title, link and order.
"""

import sys
from dataclasses import dataclass, field
from typing import Tuple

SMALL_WORDS = {'a', 'an', 'and', 'as', 'at', 'but', 'by', 'for', 'in', 'nor', 'of', 'on', 'or', 'so', 'the', 'to', 'up', 'yet'}


@dataclass(frozen=True)
class NavEntry:
    name: str
    href: str
    items: Tuple['NavEntry', ...] = ()
    order: int = sys.maxsize
    is_selected: bool = False


@dataclass
class _Node:
    segment: str
    children: dict = field(default_factory=dict)
    has_page: bool = False
    is_index: bool = False
    title: str = None
    url: str = None
    order: int = sys.maxsize


def folder_title(segment):
    """Turn a URL segment into a title: ``getting-started`` -> ``Getting Started``."""
    placeholder = '\0'
    words = segment.replace('--', placeholder).replace('-', ' ').replace(placeholder, '-').split()
    titled = []
    for i, word in enumerate(words):
        if i > 0 and word.lower() in SMALL_WORDS:
            titled.append(word.lower())
        else:
            titled.append(word[:1].upper() + word[1:])
    return ' '.join(titled)


def normalize_href(href):
    if href is None:
        return None
    return href.rstrip('/').lower() or '/'


def href_equals(first, second):
    return normalize_href(first) == normalize_href(second)


def _sort(entries):
    return sorted(entries, key=lambda entry: (entry.order, entry.name.lower()))


def _build_entries(node, current_url):
    return _sort(_build_entry(child, current_url) for child in node.children.values())


def _build_entry(node, current_url):
    children = _build_entries(node, current_url)
    any_selected = any(child.is_selected for child in children)

    if node.has_page:
        return NavEntry(
            name=node.title,
            href=node.url,
            items=tuple(children),
            order=node.order,
            is_selected=href_equals(node.url, current_url) or any_selected,
        )

    index_node = next((child for child in node.children.values() if child.has_page and child.is_index), None)
    if index_node is not None:
        index_entry = next((child for child in children if href_equals(child.href, index_node.url)), None)
        if index_entry is not None:
            items = [child for child in children if child is not index_entry] + list(index_entry.items)
            items = _sort(items)
            return NavEntry(
                name=index_node.title,
                href=index_node.url,
                items=tuple(items),
                order=index_node.order,
                is_selected=href_equals(index_node.url, current_url) or any(item.is_selected for item in items),
            )

    return NavEntry(
        name=folder_title(node.segment),
        href=None,
        items=tuple(children),
        order=min((child.order for child in children), default=sys.maxsize),
        is_selected=any_selected,
    )


def build_navigation(pages, current_url, base_url=''):
    """Build the navigation tree for every page whose metadata has a title."""
    base_url = base_url.rstrip('/')
    root = _Node(segment='')

    for page in pages:
        metadata = page.metadata
        if metadata is None or not metadata.title:
            continue

        relative_path = page.url.strip('/')
        segments = [s for s in relative_path.split('/') if s]

        node = root
        for segment in segments:
            key = segment.lower()
            if key not in node.children:
                node.children[key] = _Node(segment=segment)
            node = node.children[key]

        node.has_page = True
        node.title = metadata.title
        node.order = metadata.order
        node.url = f"{base_url}/{relative_path}"
        node.is_index = bool(segments) and segments[-1].lower() == 'index'

    return _build_entries(root, current_url)
