#!/usr/bin/env python3
"""
bgpconfd - BGP configuration hot-reload daemon

Loads the BGP config file, keeps watching it, and reports the peer-group,
neighbor and routing policy changes each reload brings.

Usage - watch a YAML config:
    python3 bgpconfd.py -f /etc/bgpd/bgpd.yaml

Usage - TOML config without an extension, reload only on SIGHUP:
    python3 bgpconfd.py -f /etc/bgpd/bgpd.conf -t toml --no-watch
    kill -HUP <pid>

Usage - parse once and print the defaulted config:
    python3 bgpconfd.py -f /etc/bgpd/bgpd.toml --dump
"""

import asyncio
import argparse
import logging
import signal
import sys
from typing import Optional

import yaml

from bgpconfig import (
    BgpConfigSet,
    ConfigChanges,
    ConfigConsumer,
    ConfigError,
    ConfigFatalError,
    ConfigFileWatcher,
    ConfigWatchError,
    ReloadLoop,
    SnapshotLoader,
)
from bgpconfig.constants import CONFIG_TYPE_AUTO, CONFIG_TYPES, NOT_FOUND_RETRY_DELAY


def setup_logging(log_level: str = "INFO"):
    """
    Setup logging configuration

    Args:
        log_level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


async def log_changes(
    current: Optional[BgpConfigSet],
    new: BgpConfigSet,
    changes: ConfigChanges
) -> None:
    """Stand-in reconciliation: report what would be applied"""
    logger = logging.getLogger("Reconcile")

    if current is None:
        for neighbor in new.neighbors:
            logger.info(f"Add neighbor {neighbor.key} (AS {neighbor.config.peer_as})")
        return

    for pg in changes.peer_groups.added:
        logger.info(f"Add peer-group {pg.key}")
    for pg in changes.peer_groups.deleted:
        logger.info(f"Delete peer-group {pg.key}")
    for pg in changes.peer_groups.updated:
        logger.info(f"Update peer-group {pg.key}")
    for neighbor in changes.neighbors.added:
        logger.info(f"Add neighbor {neighbor.key} (AS {neighbor.config.peer_as})")
    for neighbor in changes.neighbors.deleted:
        logger.info(f"Delete neighbor {neighbor.key}")
    for neighbor in changes.neighbors.updated:
        logger.info(f"Update neighbor {neighbor.key}")
    if changes.policy_changed:
        logger.info("Replace routing policy")


async def run_daemon(args: argparse.Namespace):
    """
    Run the reload loop and the consumer until a signal or a fatal error

    Args:
        args: Command line arguments

    Raises:
        ConfigFatalError: The initial configuration could not be loaded
    """
    logger = logging.getLogger("BGPConfD")

    loop = asyncio.get_running_loop()
    loader = SnapshotLoader(args.config_file, args.config_type)
    reload_loop = ReloadLoop(loader, retry_delay=args.retry_delay, loop=loop)
    consumer = ConfigConsumer(reload_loop.config_queue, apply_changes=log_changes)

    logger.info(f"Config file {loader.path} ({loader.config_type})")

    watcher = None
    if not args.no_watch:
        watcher = ConfigFileWatcher(loader.path, reload_loop.notify_file_changed)
        try:
            watcher.start()
        except ConfigWatchError as e:
            logger.warning(f"{e}; reload with SIGHUP only")
            watcher = None

    stop = asyncio.Event()

    def signal_handler(signum):
        logger.info(f"Received signal {signum}, shutting down...")
        stop.set()

    loop.add_signal_handler(signal.SIGHUP, reload_loop.request_reload)
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

    reload_task = asyncio.create_task(reload_loop.run())
    consumer_task = asyncio.create_task(consumer.run())
    stop_task = asyncio.create_task(stop.wait())
    tasks = [reload_task, consumer_task, stop_task]

    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        if reload_task in done:
            # Only ends by raising
            reload_task.result()
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if watcher:
            watcher.stop()
        logger.info(f"Reload stats: {reload_loop.stats.to_dict()}")


def dump_config(args: argparse.Namespace) -> int:
    """Load once and print the defaulted config"""
    try:
        config_set = SnapshotLoader(args.config_file, args.config_type).load()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(yaml.safe_dump(config_set.to_dict(), sort_keys=False), end="")
    return 0


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="BGP configuration hot-reload daemon",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument("-f", "--config-file", required=True,
                        help="Path to the BGP config file")
    parser.add_argument("-t", "--config-type", default=CONFIG_TYPE_AUTO,
                        choices=list(CONFIG_TYPES) + [CONFIG_TYPE_AUTO],
                        help="Config file format; a .toml/.yaml/.yml/.json extension "
                             "takes precedence (default: auto)")
    parser.add_argument("--retry-delay", type=float, default=NOT_FOUND_RETRY_DELAY,
                        help=f"Seconds between startup attempts while the config file "
                             f"is missing (default: {NOT_FOUND_RETRY_DELAY})")
    parser.add_argument("--no-watch", action="store_true",
                        help="Don't watch the file; reload on SIGHUP only")
    parser.add_argument("--dump", action="store_true",
                        help="Parse the config once, print it and exit")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: INFO)")

    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.dump:
        sys.exit(dump_config(args))

    try:
        asyncio.run(run_daemon(args))
    except ConfigFatalError:
        # Already reported at critical level by the reload loop
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
