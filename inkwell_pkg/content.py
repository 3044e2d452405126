"""
Markdown content ingestion.

ContentIngestionPipeline walks one content set, parses every markdown file
independently and joins the results into a url -> ContentPage index.
MarkdownContentService keeps that index in an InvalidatingCache that is
emptied whenever the change bus fires.
"""

import fnmatch
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from .cache import InvalidatingCache
from .exceptions import ContentProcessingError, FileAccessError
from .markdown_parser import MarkdownParser
from .models import ContentPage, ContentToCopy, CrossReference, FrontMatter, PageToGenerate, Tag
from .paths import base_url_for, file_path_to_url, site_path, slugify

# Content sets smaller than this are parsed on the calling thread
PARALLEL_THRESHOLD = 12


@dataclass
class ContentSet:
    """A content directory published under one URL root."""
    path: str
    url: str = 'blog'
    pattern: str = '*.md'
    tags_url: str = 'tags'
    toc_min_level: int = 1
    toc_max_level: int = 6

    @property
    def url_root(self):
        return self.url.strip('/')


@dataclass
class ParsedFile:
    file_path: str
    url: str
    parsed: object
    tag_names: tuple


class TagRegistry:
    """Hands out exactly one Tag per encoded name."""

    def __init__(self, tags_url='tags', encoder=slugify):
        self.tags_url = tags_url.strip('/')
        self.encoder = encoder
        self._tags = {}

    def get_or_create(self, name):
        encoded = self.encoder(name)
        if not encoded:
            return None
        tag = self._tags.get(encoded)
        if tag is None:
            tag = Tag(name=name, encoded_name=encoded, navigate_url=site_path(self.tags_url, encoded))
            self._tags[encoded] = tag
        return tag

    def tags(self):
        return list(self._tags.values())


class ContentIngestionPipeline:
    def __init__(self, content_set, parser, front_matter_cls=FrontMatter, tag_encoder=slugify, max_workers=None):
        self.content_set = content_set
        self.parser = parser
        self.front_matter_cls = front_matter_cls
        self.tag_encoder = tag_encoder
        self.max_workers = max_workers
        self.logger = logging.getLogger('Inkwell.Content')

    def discover(self):
        """Return every file under the content root matching the pattern, sorted."""
        root = self.content_set.path
        if not os.path.isdir(root):
            raise FileAccessError("Content directory does not exist.", root)

        def on_error(error):
            self.logger.warning(f"Skipping inaccessible path {error.filename}: {error.strerror}")

        files = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            for filename in filenames:
                if fnmatch.fnmatch(filename, self.content_set.pattern):
                    files.append(os.path.join(dirpath, filename))
        return sorted(files)

    def process_file(self, file_path):
        """
        Read and parse one content file.

        Returns None for drafts. Raises FileAccessError or
        ContentProcessingError when the file cannot be turned into a page.
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (IOError, OSError) as e:
            raise FileAccessError(f"Failed to read content file: {e}.", file_path)
        except UnicodeDecodeError as e:
            raise ContentProcessingError(f"Content file is not valid UTF-8: {e}.", file_path)

        base_url = base_url_for(file_path, self.content_set.path, self.content_set.url_root)
        try:
            parsed = self.parser.parse(text, self.front_matter_cls, source=file_path, base_url=base_url)
        except Exception as e:
            raise ContentProcessingError(f"Failed to parse markdown: {e}.", file_path)

        if getattr(parsed.front_matter, 'is_draft', False):
            self.logger.debug(f"Skipping draft {file_path}")
            return None

        url = file_path_to_url(file_path, self.content_set.path)
        if not url:
            raise ContentProcessingError("File name produces an empty URL.", file_path)

        tag_names = getattr(parsed.front_matter, 'tags', None) or ()
        if isinstance(tag_names, str):
            tag_names = (tag_names,)
        return ParsedFile(file_path, url, parsed, tuple(str(name) for name in tag_names))

    def _process_sequential(self, files):
        results = {}
        for file_path in files:
            try:
                results[file_path] = self.process_file(file_path)
            except (FileAccessError, ContentProcessingError) as e:
                self.logger.error(str(e))
            except Exception as e:
                self.logger.error(str(ContentProcessingError(f"Unexpected error: {e}.", file_path)))
        return results

    def _process_parallel(self, files):
        results = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.process_file, file_path): file_path for file_path in files}
            for future in as_completed(futures):
                file_path = futures[future]
                try:
                    results[file_path] = future.result()
                except (FileAccessError, ContentProcessingError) as e:
                    self.logger.error(str(e))
                except Exception as e:
                    self.logger.error(str(ContentProcessingError(f"Unexpected error: {e}.", file_path)))
        return results

    def join(self, files, results):
        """Build the page index in file order, sharing one Tag per encoded name."""
        registry = TagRegistry(self.content_set.tags_url, self.tag_encoder)
        pages = {}

        for file_path in files:
            item = results.get(file_path)
            if item is None:
                continue

            tags = []
            for name in item.tag_names:
                tag = registry.get_or_create(name)
                if tag is not None and tag not in tags:
                    tags.append(tag)

            page = ContentPage(
                url=item.url,
                navigate_url=site_path(self.content_set.url_root, item.url),
                body=item.parsed.html,
                markdown=item.parsed.markdown,
                front_matter=item.parsed.front_matter,
                tags=tuple(tags),
                toc=item.parsed.toc,
                source_path=file_path,
            )
            if item.url in pages:
                self.logger.warning(
                    f"URL collision on '{item.url}': {file_path} replaces {pages[item.url].source_path}"
                )
            pages[item.url] = page

        return pages

    def process(self):
        """Ingest the whole content set into a url -> ContentPage dict."""
        try:
            files = self.discover()
        except FileAccessError as e:
            self.logger.error(str(e))
            return {}

        if not files:
            self.logger.warning(f"No content files found in {self.content_set.path}")
            return {}

        if len(files) >= PARALLEL_THRESHOLD and self.max_workers != 1:
            self.logger.debug(f"Using thread pool for {len(files)} files in {self.content_set.path}")
            results = self._process_parallel(files)
        else:
            self.logger.debug(f"Using single-threaded processing for {len(files)} files in {self.content_set.path}")
            results = self._process_sequential(files)

        pages = self.join(files, results)
        self.logger.debug(f"Ingested {len(pages)} pages from {self.content_set.path}")
        return pages


class MarkdownContentService:
    """Cached access to the pages, tags and copy items of one content set."""

    def __init__(self, content_set, parser=None, front_matter_cls=FrontMatter, bus=None, tag_encoder=slugify, max_workers=None):
        self.content_set = content_set
        if parser is None:
            parser = MarkdownParser(toc_min_level=content_set.toc_min_level, toc_max_level=content_set.toc_max_level)
        self.pipeline = ContentIngestionPipeline(content_set, parser, front_matter_cls, tag_encoder, max_workers)
        self.cache = InvalidatingCache(self.pipeline.process, name=f"content:{content_set.path}")
        self.bus = bus
        if bus is not None:
            bus.subscribe(self.cache.invalidate)
        self.logger = logging.getLogger('Inkwell.Content')

    def get_all_pages(self):
        return self.cache.get_all()

    def get_page(self, url):
        return self.cache.get_by_key(url.strip('/'))

    def get_tags(self):
        seen = {}
        for page in self.cache.get_all():
            for tag in page.tags:
                seen.setdefault(tag.encoded_name, tag)
        return list(seen.values())

    def get_tag(self, encoded_name):
        """Return ``(tag, pages)`` for an encoded tag name, or None."""
        tag = None
        pages = []
        for page in self.cache.get_all():
            for page_tag in page.tags:
                if page_tag.encoded_name == encoded_name:
                    tag = page_tag
                    pages.append(page)
                    break
        if tag is None:
            return None
        return tag, pages

    def get_cross_references(self):
        references = []
        for page in self.cache.get_all():
            title = getattr(page.front_matter, 'title', None) or page.url
            references.append(CrossReference(uid=getattr(page.front_matter, 'uid', None), title=title, url=page.navigate_url))
        return references

    def content_pages_to_generate(self):
        pages = []
        for page in self.cache.get_all():
            as_metadata = getattr(page.front_matter, 'as_metadata', None)
            pages.append(PageToGenerate(
                url=page.navigate_url,
                output_file=f"{page.navigate_url.lstrip('/')}.html",
                metadata=as_metadata() if as_metadata else None,
            ))
        return pages

    def tag_pages_to_generate(self):
        tags_url = self.content_set.tags_url.strip('/')
        return [
            PageToGenerate(url=tag.navigate_url, output_file=f"{tags_url}/{tag.encoded_name}.html")
            for tag in self.get_tags()
        ]

    def pages_to_generate(self):
        return self.content_pages_to_generate() + self.tag_pages_to_generate()

    def content_to_copy(self):
        if not os.path.isdir(self.content_set.path):
            self.logger.warning(f"Content directory not found: {self.content_set.path}")
            return []
        return [ContentToCopy(self.content_set.path, self.content_set.url_root)]

    def close(self):
        if self.bus is not None:
            self.bus.unsubscribe(self.cache.invalidate)
