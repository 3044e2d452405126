"""Test configuration and fixtures for Inkwell tests."""

import os
import shutil
import sys
import tempfile
import threading
from pathlib import Path
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inkwell_pkg.exceptions import RenderFetchError


class FakeRenderer:
    """Renderer returning canned HTML, failing for selected URLs."""

    def __init__(self, failing=(), delays=None):
        self.failing = set(failing)
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    def render(self, url):
        with self._lock:
            self.calls.append(url)
        event = self.delays.get(url)
        if event is not None:
            event.wait(5)
        if url in self.failing:
            raise RenderFetchError(f"Response status code does not indicate success: 500 for {url}", url=url, status_code=500)
        return f"<html><body>{url}</body></html>"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def content_dir(temp_dir):
    """Create a content tree with nested posts, a draft and media."""
    content_dir = Path(temp_dir) / 'content'
    (content_dir / '2024' / '04').mkdir(parents=True)
    (content_dir / 'media').mkdir()

    (content_dir / 'hello-world.md').write_text("""---
title: Hello World
description: First post
date: 2024-04-01
tags: [Python, Static Sites]
uid: hello
---

# Hello World

Intro paragraph.

## Setup

![Diagram](diagram.png)
""", encoding='utf-8')

    (content_dir / '2024' / '04' / 'Deep Dive.md').write_text("""---
title: Deep Dive
date: 2024-04-15
tags: [python]
---

# Deep Dive

![Shared](../../media/a.png)

See [the intro](sub/img.png) and [docs](https://x.com/a.png).
""", encoding='utf-8')

    (content_dir / 'draft.md').write_text("""---
title: Not Ready
isDraft: true
tags: [secret]
---

# Draft
""", encoding='utf-8')

    (content_dir / 'media' / 'a.png').write_bytes(b'\x89PNG\r\n\x1a\n')
    (content_dir / 'notes.txt').write_text("not markdown", encoding='utf-8')

    return str(content_dir)


@pytest.fixture
def output_dir(temp_dir):
    """Path of a not-yet-created output directory."""
    return str(Path(temp_dir) / 'output')


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    session = Mock()
    session.headers = {}
    return session


@pytest.fixture
def site_settings(content_dir, output_dir):
    """Valid settings for a site over the sample content tree."""
    return {
        'output': output_dir,
        'content': [{'path': content_dir, 'url': 'blog', 'pattern': '*.md', 'tags_url': 'tags'}],
        'assets': [],
        'excluded_paths': [],
        'pages': [],
        'index_page_html': 'index.html',
        'app_url': None,
        'request_timeout': 30,
        'site_url': 'https://example.com',
        'site_title': 'Example',
        'site_description': 'An example site',
        'max_workers': 4,
        'render_timeout': None,
        'watch': False,
        'log_dir': None,
    }
