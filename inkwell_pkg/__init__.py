"""
Inkwell - turns markdown content and pages rendered by a running application
into a static website.

Inkwell ingests markdown files with YAML front matter, builds a table of
contents for each page, rewrites relative links and media paths, and writes
every page of the site, including tag pages, declared routes and endpoints,
to an output directory alongside copied static assets, a sitemap and an RSS
feed.
"""

__version__ = "1.0.0"

from .cache import InvalidatingCache
from .content import ContentIngestionPipeline, ContentSet, MarkdownContentService
from .core import Site
from .generator import GenerationReport, OutputGenerator
from .markdown_parser import MarkdownParser
from .notifier import ChangeNotifier, ContentChangedBus
from .renderer import HttpRenderer, Renderer
from .routes import Endpoint, RouteProvider, StaticRouteProvider

__all__ = [
    'Site', 'InvalidatingCache', 'ContentChangedBus', 'ChangeNotifier', 'MarkdownParser',
    'ContentIngestionPipeline', 'ContentSet', 'MarkdownContentService', 'OutputGenerator',
    'GenerationReport', 'Renderer', 'HttpRenderer', 'RouteProvider', 'StaticRouteProvider', 'Endpoint',
]
