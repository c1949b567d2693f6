"""
Config Reload Loop

Turns "the file may have changed" notifications into an ordered stream
of validated snapshots for a single consumer.

State machine:

    INIT -> LOADING
    LOADING --ok--> PUBLISHED -> AWAITING_EVENT
    LOADING --not found, first load, below retry ceiling--> (delay) LOADING
    LOADING --error, first load--> FATAL
    LOADING --error, after a publish--> AWAITING_EVENT (keep current)
    AWAITING_EVENT --notification--> LOADING

Notifications are coalesced: any number of them arriving while a load is
in flight collapse into one pending reload serviced afterwards. File
watcher notifications and explicit reload requests are handled alike.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .constants import (
    CONFIG_QUEUE_SIZE,
    MAX_NOT_FOUND_RETRIES,
    NOT_FOUND_RETRY_DELAY,
)
from .errors import ConfigError, ConfigFatalError, ConfigNotFoundError
from .loader import SnapshotLoader
from .models import BgpConfigSet

logger = logging.getLogger("BGPConfig.Reload")


class ReloadState(Enum):
    """Reload loop states"""
    INIT = "init"
    AWAITING_EVENT = "awaiting_event"
    LOADING = "loading"
    PUBLISHED = "published"
    FATAL = "fatal"


@dataclass
class ReloadStats:
    """Reload loop statistics"""
    loads: int = 0
    reloads: int = 0
    failures: int = 0
    not_found_retries: int = 0
    notifications: int = 0
    last_error: Optional[str] = None
    last_loaded_at: Optional[datetime] = None
    started_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loads": self.loads,
            "reloads": self.reloads,
            "failures": self.failures,
            "not_found_retries": self.not_found_retries,
            "notifications": self.notifications,
            "last_error": self.last_error,
            "last_loaded_at": self.last_loaded_at.isoformat() if self.last_loaded_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
        }


class ReloadLoop:
    """
    Config reload control loop

    The only writer of the current snapshot and the only caller of the
    loader. Snapshots are handed over through a single-slot queue; a slow
    consumer blocks further reloads until it catches up.
    """

    def __init__(
        self,
        loader: SnapshotLoader,
        config_queue: Optional[asyncio.Queue] = None,
        max_not_found_retries: int = MAX_NOT_FOUND_RETRIES,
        retry_delay: float = NOT_FOUND_RETRY_DELAY,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        """
        Initialize reload loop

        Args:
            loader: Snapshot source
            config_queue: Handoff queue to the consumer (single slot by default)
            max_not_found_retries: First-load attempts before giving up
            retry_delay: Fixed delay between first-load attempts (seconds)
            loop: Event loop that will run the reload loop, for file change
                notifications arriving before run() starts
        """
        self.loader = loader
        if config_queue is None:
            config_queue = asyncio.Queue(maxsize=CONFIG_QUEUE_SIZE)
        self.config_queue: asyncio.Queue = config_queue
        self.max_not_found_retries = max_not_found_retries
        self.retry_delay = retry_delay

        self.state = ReloadState.INIT
        self.current: Optional[BgpConfigSet] = None
        self.stats = ReloadStats()

        self._pending = asyncio.Event()
        self._loop = loop
        self._not_found_count = 0

    @property
    def has_published(self) -> bool:
        return self.current is not None

    @property
    def reload_pending(self) -> bool:
        return self._pending.is_set()

    def request_reload(self) -> None:
        """Ask for a reload; must be called from the event loop thread"""
        self.stats.notifications += 1
        logger.debug(f"[Config] Reload requested (state={self.state.value})")
        self._pending.set()

    def notify_file_changed(self, path: str = "") -> None:
        """Report a file change; safe to call from any thread"""
        if self._loop is None:
            # No loop to hand over to yet, the first load reads the file anyway
            logger.debug(f"[Config] Ignoring change to {path or self.loader.path} before start")
            return
        logger.debug(f"[Config] File change reported for {path or self.loader.path}")
        self._loop.call_soon_threadsafe(self.request_reload)

    async def run(self) -> None:
        """
        Run until the process ends

        Raises:
            ConfigFatalError: The initial configuration could not be loaded
        """
        self._loop = asyncio.get_running_loop()
        self.stats.started_at = datetime.now()

        while True:
            self._set_state(ReloadState.LOADING)
            try:
                config_set = await self._loop.run_in_executor(None, self.loader.load)
            except ConfigError as e:
                if self._should_retry(e):
                    await asyncio.sleep(self.retry_delay)
                    continue
                self._load_failed(e)
            except Exception as e:
                logger.error(
                    f"[Config] Unexpected error loading {self.loader.path}: {e}",
                    exc_info=True
                )
                self._load_failed(e)
            else:
                await self._publish(config_set)

            self._set_state(ReloadState.AWAITING_EVENT)
            await self._pending.wait()
            logger.info(f"[Config] Reload the config file {self.loader.path}")

    def _set_state(self, state: ReloadState) -> None:
        logger.debug(f"[Config] {self.state.value} -> {state.value}")
        self.state = state
        if state == ReloadState.LOADING:
            # Any notification from here on needs another load
            self._pending.clear()

    def _should_retry(self, error: ConfigError) -> bool:
        if self.has_published or not isinstance(error, ConfigNotFoundError):
            return False

        self._not_found_count += 1
        logger.warning(
            f"[Config] Config file {self.loader.path} not loaded "
            f"(attempt {self._not_found_count}/{self.max_not_found_retries})"
        )
        if self._not_found_count < self.max_not_found_retries:
            self.stats.not_found_retries += 1
            return True

        logger.error(f"[Config] Config file {self.loader.path} not loaded (max times exceeded)")
        return False

    def _load_failed(self, error: Exception) -> None:
        self.stats.failures += 1
        self.stats.last_error = str(error)

        if not self.has_published:
            self._set_state(ReloadState.FATAL)
            logger.critical(f"[Config] Can't read config file {self.loader.path}: {error}")
            raise ConfigFatalError(
                f"can't read config file {self.loader.path}: {error}", self.loader.path
            ) from error

        logger.warning(f"[Config] Can't reload config file {self.loader.path}: {error}")

    async def _publish(self, config_set: BgpConfigSet) -> None:
        self._set_state(ReloadState.PUBLISHED)
        first = not self.has_published

        await self.config_queue.put(config_set)

        self.current = config_set
        self.stats.loads += 1
        self.stats.last_loaded_at = datetime.now()
        if first:
            logger.info(f"[Config] Finished reading the config file {self.loader.path}")
        else:
            self.stats.reloads += 1
            logger.info(f"[Config] Reloaded the config file {self.loader.path}")
