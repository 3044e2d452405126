"""
Content change notification.

A ContentChangedBus fans a "content changed" signal out to subscribers, and a
ChangeNotifier feeds that bus from watchdog file system events. Subscribers
run on the publishing thread (a watchdog worker thread for file events), so
they are expected to be quick flag flips such as InvalidatingCache.invalidate.
"""

import logging
import os
import threading

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer


class ContentChangedBus:
    def __init__(self):
        self._subscribers = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger('Inkwell.Notifier')

    def subscribe(self, callback):
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @property
    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    def publish(self, reason=None):
        """Invoke every subscriber synchronously on the calling thread."""
        with self._lock:
            subscribers = list(self._subscribers)

        self.logger.debug(f"Content changed ({reason or 'external'}), notifying {len(subscribers)} subscribers")
        for callback in subscribers:
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Change subscriber {callback!r} failed: {e}")


class ContentEventHandler(FileSystemEventHandler):
    """Forwards create, modify, delete and move events to the bus."""

    def __init__(self, bus):
        self.bus = bus

    def handle(self, path, is_directory, kind):
        # Directory mtime changes accompany every file event inside them
        if is_directory and kind == 'modified':
            return
        self.bus.publish(f"{kind}: {path}")

    def on_created(self, event):
        self.handle(event.src_path, event.is_directory, 'created')

    def on_modified(self, event):
        self.handle(event.src_path, event.is_directory, 'modified')

    def on_deleted(self, event):
        self.handle(event.src_path, event.is_directory, 'deleted')

    def on_moved(self, event):
        self.handle(event.dest_path, event.is_directory, 'moved')


class ChangeNotifier:
    """
    Watches content directories and publishes to a ContentChangedBus.

    Use as a context manager, or call start() and stop(), so the watcher
    threads are released deterministically.
    """

    def __init__(self, bus, observer_factory=None):
        self.bus = bus
        self.observer_factory = observer_factory or Observer
        self.handler = ContentEventHandler(bus)
        self.watched_paths = []
        self._observer = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger('Inkwell.Notifier')

    @property
    def is_running(self):
        return self._observer is not None

    def watch(self, path):
        """Watch a directory recursively. Returns False when it was skipped."""
        resolved = os.path.realpath(path)
        if not os.path.isdir(resolved):
            self.logger.warning(f"Not watching missing directory: {path}")
            return False

        with self._lock:
            if resolved in self.watched_paths:
                return True
            self.watched_paths.append(resolved)
            if self._observer is not None:
                self._observer.schedule(self.handler, resolved, recursive=True)

        self.logger.debug(f"Watching {resolved}")
        return True

    def start(self):
        with self._lock:
            if self._observer is not None:
                return
            observer = self.observer_factory()
            for path in self.watched_paths:
                observer.schedule(self.handler, path, recursive=True)
            observer.start()
            self._observer = observer
        self.logger.info(f"Watching {len(self.watched_paths)} content directories for changes")

    def stop(self):
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()
            self.logger.debug("Stopped watching content directories")

    def notify_external_change(self, reason='external'):
        """Signal a change that did not come from the file system."""
        self.bus.publish(reason)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
