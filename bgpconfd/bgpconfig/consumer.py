"""
Config Consumer

Pulls snapshots from the reload loop, diffs each one against the last
snapshot that was successfully applied and hands the changes to the
reconciliation callback.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .diff import ConfigChanges, compute_changes
from .models import BgpConfigSet

logger = logging.getLogger("BGPConfig.Consumer")

ApplyCallback = Callable[[Optional[BgpConfigSet], BgpConfigSet, ConfigChanges], Awaitable[None]]


class ConfigConsumer:
    """
    Single consumer of the reload loop's queue

    The retained snapshot only moves forward once the apply callback
    returns, so a failed apply is diffed again against the next snapshot.
    """

    def __init__(
        self,
        config_queue: asyncio.Queue,
        apply_changes: Optional[ApplyCallback] = None
    ):
        self.config_queue = config_queue
        self.apply_changes = apply_changes
        self.current: Optional[BgpConfigSet] = None
        self.applied_count = 0

    async def consume_one(self) -> ConfigChanges:
        """
        Take the next snapshot and apply it

        Returns:
            Changes between the previously applied snapshot and the new one
        """
        new = await self.config_queue.get()
        try:
            changes = compute_changes(self.current, new)
            if self.current is None:
                logger.info(
                    f"[Config] Initial config: {len(new.neighbors)} neighbors, "
                    f"{len(new.peer_groups)} peer-groups"
                )
            elif changes.has_changes:
                logger.info(f"[Config] Config changed: {changes.summary()}")
            else:
                logger.info("[Config] Config reloaded without changes")

            if self.apply_changes is not None:
                await self.apply_changes(self.current, new, changes)

            self.current = new
            self.applied_count += 1
            return changes
        finally:
            self.config_queue.task_done()

    async def run(self) -> None:
        """Consume snapshots until cancelled"""
        while True:
            try:
                await self.consume_one()
            except Exception as e:
                logger.error(f"[Config] Failed to apply config: {e}", exc_info=True)
