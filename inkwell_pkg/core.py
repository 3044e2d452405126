import logging
import os
import time
from datetime import datetime

from .aggregator import PageAggregator
from .content import MarkdownContentService
from .exceptions import ConfigurationError
from .feeds import write_feeds
from .generator import OutputGenerator
from .markdown_parser import MarkdownParser
from .models import FrontMatter
from .navigation import build_navigation
from .notifier import ChangeNotifier, ContentChangedBus
from .paths import slugify
from .renderer import HttpRenderer
from .settings import SiteSettings, content_sets, validate


class SummaryFilter(logging.Filter):
    """Filter to allow only build summary INFO messages, plus warnings and errors, in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total pages written:",
            "Total pages skipped:",
            "Total files copied:",
            "All pages generated in",
            "Generating RSS feed",
            "Generating XML sitemap",
            "content directories for changes",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class Site:
    """
    Wires content services, the page aggregator and the output generator
    together for one configured site.
    """

    def __init__(self, settings, renderer=None, route_provider=None, front_matter_cls=FrontMatter,
                 deserializer=None, pre_process=None, tag_encoder=slugify):
        validate(settings)
        self.settings = settings
        self.setup_logging()

        self._owns_renderer = False
        if renderer is None:
            if not settings.get('app_url'):
                raise ConfigurationError("'app_url' is required when no renderer is given")
            renderer = HttpRenderer(settings['app_url'], timeout=settings.get('request_timeout') or 30)
            self._owns_renderer = True
        self.renderer = renderer

        self.bus = ContentChangedBus()
        self.content_services = []
        for content_set in content_sets(settings):
            parser = MarkdownParser(
                pre_process=pre_process,
                deserializer=deserializer,
                toc_min_level=content_set.toc_min_level,
                toc_max_level=content_set.toc_max_level,
            )
            self.content_services.append(MarkdownContentService(
                content_set, parser, front_matter_cls,
                bus=self.bus, tag_encoder=tag_encoder, max_workers=settings.get('max_workers'),
            ))

        self.aggregator = PageAggregator(
            self.content_services,
            route_provider=route_provider,
            index_page_html=settings.get('index_page_html', 'index.html'),
            extra_pages=settings.get('pages') or [],
            assets=settings.get('assets') or [],
        )
        self.generator = OutputGenerator(
            renderer,
            settings['output'],
            excluded_paths=settings.get('excluded_paths') or [],
            max_workers=settings.get('max_workers') or 8,
            timeout=settings.get('render_timeout'),
        )
        self.notifier = None

    @classmethod
    def from_config(cls, config_dir=None, overrides=None, **kwargs):
        """Create a Site from inkwell.yml/.yaml/.json in ``config_dir``."""
        loader = SiteSettings(config_dir)
        loader.load_settings()
        settings = loader.merge_with_args(overrides or {})
        return cls(settings, **kwargs)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Inkwell')
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(SummaryFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            # File handler for all logs
            log_dir = self.settings.get('log_dir')
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('inkwell_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
                self.logger.addHandler(file_handler)

    def get_all_pages(self):
        pages = []
        for service in self.content_services:
            pages.extend(service.get_all_pages())
        return pages

    def get_cross_references(self):
        references = []
        for service in self.content_services:
            references.extend(service.get_cross_references())
        return references

    def navigation(self, current_url, base_url=''):
        return build_navigation(self.aggregator.content_pages(), current_url, base_url)

    def build(self):
        """Main build process."""
        start_time = time.time()
        self.logger.debug("Starting site build...")

        pages = self.aggregator.pages_to_generate()
        copies = self.aggregator.content_to_copy()
        report = self.generator.generate(pages, copies)

        if self.settings.get('site_url'):
            write_feeds(pages, self.settings, self.generator.output_root)

        self.logger.info(f"Total pages written: {len(report.written)}")
        self.logger.info(f"Total pages skipped: {len(report.skipped)}")
        self.logger.info(f"Total files copied: {report.copied}")
        self.logger.info(f"Site build completed in {time.time() - start_time:.2f} seconds")
        return report

    def watch(self):
        """Start watching every content root; changes invalidate the content caches."""
        if self.notifier is None:
            self.notifier = ChangeNotifier(self.bus)
            for service in self.content_services:
                self.notifier.watch(service.content_set.path)
        self.notifier.start()
        return self.notifier

    def close(self):
        """Cleanup resources (unsubscribe caches, stop watching, close the renderer)."""
        if self.notifier is not None:
            self.notifier.stop()
            self.notifier = None
        for service in self.content_services:
            service.close()
        close = getattr(self.renderer, 'close', None)
        if callable(close):
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
