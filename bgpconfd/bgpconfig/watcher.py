"""
Config File Watcher

Watches the directory holding the config file and reports changes to
that one file. Watching the directory rather than the file keeps
working across editors that save through a temp file and rename.
"""

import logging
import os
from typing import Callable, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .errors import ConfigWatchError

logger = logging.getLogger("BGPConfig.Watcher")

WATCHED_EVENT_TYPES = (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED)


class ConfigFileEventHandler(FileSystemEventHandler):
    """Filters directory events down to writes of the config file"""

    def __init__(self, path: str, on_change: Callable[[str], None]):
        self.path = os.path.abspath(path)
        self.on_change = on_change

    def _matches(self, event: FileSystemEvent) -> bool:
        if event.is_directory or event.event_type not in WATCHED_EVENT_TYPES:
            return False
        paths = [event.src_path]
        if event.event_type == EVENT_TYPE_MOVED:
            paths = [getattr(event, "dest_path", "")]
        return any(p and os.path.abspath(os.fsdecode(p)) == self.path for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self._matches(event):
            return
        logger.warning(f"[Config] Config file changed: {self.path} ({event.event_type})")
        self.on_change(self.path)


class ConfigFileWatcher:
    """
    watchdog observer for one config file

    on_change runs on the observer thread; pass something thread-safe
    such as ReloadLoop.notify_file_changed.
    """

    def __init__(self, path: str, on_change: Callable[[str], None]):
        self.path = os.path.abspath(path)
        self._handler = ConfigFileEventHandler(self.path, on_change)
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """
        Start watching

        Raises:
            ConfigWatchError: The directory cannot be watched
        """
        if self._observer is not None:
            return

        observer = Observer()
        try:
            observer.schedule(self._handler, os.path.dirname(self.path), recursive=False)
            observer.start()
        except OSError as e:
            raise ConfigWatchError(f"cannot watch config file {self.path}: {e}", self.path) from e

        self._observer = observer
        logger.info(f"[Config] Watching {self.path} for changes")

    def stop(self) -> None:
        """Stop watching and join the observer thread"""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
        logger.info(f"[Config] Stopped watching {self.path}")
