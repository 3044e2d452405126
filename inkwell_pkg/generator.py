"""
Static output generation.

The output root is rebuilt from scratch on every run: static content is
copied first, then every page is rendered concurrently and written under the
output root. A failing copy item or page is logged and skipped; it never
aborts the run.
"""

import logging
import os
import shutil
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from .exceptions import RenderFetchError


@dataclass
class GenerationReport:
    written: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    copied: int = 0
    elapsed: float = 0.0

    @property
    def total_pages(self):
        return len(self.written) + len(self.skipped)


def normalize_relative(path):
    """Output-relative path with '/' separators and no leading or trailing slash."""
    parts = [p for p in path.replace('\\', '/').split('/') if p and p != '.']
    return '/'.join(parts)


class OutputGenerator:
    def __init__(self, renderer, output_root, excluded_paths=(), max_workers=8, timeout=None):
        self.renderer = renderer
        self.output_root = os.path.abspath(output_root)
        self.excluded_paths = {normalize_relative(p) for p in excluded_paths if normalize_relative(p)}
        self.max_workers = max_workers
        self.timeout = timeout
        self.logger = logging.getLogger('Inkwell.Generator')

    def is_excluded(self, relative_path):
        """True when the path or one of its parent directories is excluded."""
        if not self.excluded_paths:
            return False
        parts = relative_path.split('/')
        for i in range(1, len(parts) + 1):
            if '/'.join(parts[:i]) in self.excluded_paths:
                return True
        return False

    def output_path(self, relative_path):
        """Absolute path under the output root, or None if it would escape it."""
        target = os.path.abspath(os.path.join(self.output_root, relative_path.lstrip('/\\')))
        if target != self.output_root and not target.startswith(self.output_root + os.sep):
            return None
        return target

    def reset_output_root(self):
        if os.path.exists(self.output_root):
            shutil.rmtree(self.output_root)
        os.makedirs(self.output_root)

    def plan_copy(self, item):
        """
        Expand one ContentToCopy into ``(directories, files)``.

        ``files`` holds ``(source, output-relative target)`` pairs. Excluded
        targets and everything below an excluded directory are left out.
        """
        target = normalize_relative(item.target_path)
        if target and self.is_excluded(target):
            self.logger.debug(f"Excluded from copy: {target}")
            return [], []

        source = item.source_path
        if os.path.isfile(source):
            if not target:
                target = os.path.basename(source)
            return [os.path.dirname(target)], [(source, target)]

        if not os.path.isdir(source):
            self.logger.error(f"Source path '{source}' does not exist")
            return [], []

        directories = [target]
        files = []
        for dirpath, dirnames, filenames in os.walk(source):
            relative_dir = os.path.relpath(dirpath, source)
            out_dir = normalize_relative('/'.join([target, relative_dir.replace(os.sep, '/')]))
            if out_dir and self.is_excluded(out_dir):
                dirnames[:] = []
                continue
            directories.append(out_dir)
            dirnames.sort()
            for filename in sorted(filenames):
                out_file = normalize_relative(f"{out_dir}/{filename}")
                if self.is_excluded(out_file):
                    continue
                files.append((os.path.join(dirpath, filename), out_file))
        return directories, files

    def create_directories(self, directories):
        for directory in sorted(set(directories)):
            path = self.output_path(directory)
            if path is None:
                self.logger.warning(f"Skipping directory outside the output root: {directory}")
                continue
            os.makedirs(path, exist_ok=True)

    def copy_files(self, files):
        copied = 0
        for source, target in files:
            destination = self.output_path(target)
            if destination is None:
                self.logger.warning(f"Skipping copy outside the output root: {target}")
                continue
            # Parent directories were created up front; a missing one was excluded
            if not os.path.isdir(os.path.dirname(destination)):
                continue
            try:
                shutil.copy2(source, destination)
                copied += 1
                self.logger.debug(f"Copied {source} -> {destination}")
            except (IOError, OSError) as e:
                self.logger.error(f"Error copying from '{source}' to '{destination}': {e}")
        return copied

    def _fetch(self, page):
        """Render one page, giving up after ``self.timeout`` seconds."""
        if not self.timeout:
            return self.renderer.render(page.url)

        result = {}

        def target():
            try:
                result['html'] = self.renderer.render(page.url)
            except Exception as e:
                result['error'] = e

        # A hung render keeps its daemon thread; the pool worker moves on
        worker = threading.Thread(target=target, name=f"inkwell-render {page.url}", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            raise RenderFetchError(f"Page did not render within {self.timeout}s.", url=page.url)
        if 'error' in result:
            raise result['error']
        return result['html']

    def _render_page(self, index, page, write_lock, outcomes):
        try:
            html = self._fetch(page)
        except Exception as e:
            status = getattr(e, 'status_code', None)
            self.logger.warning(f"Failed to retrieve page at {page.url}. StatusCode:{status}. Error: {e}")
            return

        if not isinstance(html, str):
            self.logger.warning(f"Skipping page {page.url}: renderer returned {type(html).__name__}, not str")
            return

        destination = self.output_path(page.output_file)
        if destination is None:
            self.logger.warning(f"Skipping page {page.url}: output file {page.output_file} is outside the output root")
            return

        with write_lock:
            try:
                os.makedirs(os.path.dirname(destination), exist_ok=True)
                with open(destination, 'w', encoding='utf-8') as f:
                    f.write(html)
            except (IOError, OSError) as e:
                self.logger.error(f"Failed to write page {page.url} to {destination}: {e}")
                return
            outcomes[index] = destination
        self.logger.debug(f"Generated {page.url} into {page.output_file}")

    def render_pages(self, pages):
        """
        Render and write pages concurrently. Returns ``(written, skipped)``.

        ``self.timeout`` bounds each page on its own, counted from when its
        render starts; a page that runs over is skipped and never written.
        """
        if not pages:
            return [], []

        write_lock = threading.Lock()
        outcomes = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._render_page, i, page, write_lock, outcomes) for i, page in enumerate(pages)]
            for future in as_completed(futures):
                exception = future.exception()
                if exception is not None:
                    self.logger.error(f"Unexpected error while generating a page: {exception}")

        written = [page.output_file for i, page in enumerate(pages) if i in outcomes]
        skipped = [page.url for i, page in enumerate(pages) if i not in outcomes]
        return written, skipped

    def generate(self, pages, copies=()):
        """Rebuild the output root from copy items and rendered pages."""
        start_time = time.time()
        self.reset_output_root()

        directories = []
        copy_plan = []
        for item in copies:
            try:
                item_dirs, item_files = self.plan_copy(item)
            except (IOError, OSError) as e:
                self.logger.error(f"Error copying from '{item.source_path}' to '{item.target_path}': {e}")
                continue
            directories.extend(item_dirs)
            copy_plan.extend(item_files)
        for page in pages:
            directories.append(normalize_relative(os.path.dirname(page.output_file.lstrip('/\\'))))

        self.create_directories(directories)
        copied = self.copy_files(copy_plan)
        written, skipped = self.render_pages(list(pages))

        elapsed = time.time() - start_time
        self.logger.info(f"All pages generated in {int(elapsed * 1000)}ms")
        return GenerationReport(written=written, skipped=skipped, copied=copied, elapsed=elapsed)
