"""
Config Reload Demo

Runs the reload loop against a temporary config file, edits the file a
few times (including a broken edit) and prints the change sets the
consumer computes for each reload.
"""

import asyncio
import logging
import os
import sys
import tempfile

# Add the source root to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "bgpconfd"))

from bgpconfig import (
    BgpConfigSet,
    ConfigChanges,
    ConfigConsumer,
    ConfigFileWatcher,
    ReloadLoop,
    SnapshotLoader,
)


BASE_CONFIG = """\
global:
  config:
    as: 65000
    router-id: 10.0.0.1
peer-groups:
  - config:
      peer-group-name: transit
      peer-as: 65100
neighbors:
  - config:
      neighbor-address: 10.0.0.2
      peer-group: transit
  - config:
      neighbor-address: 10.0.0.3
      peer-as: 65000
"""

EDITS = [
    # Move the transit group to a new AS and add a peer
    BASE_CONFIG.replace("65100", "65101") + """\
  - config:
      neighbor-address: 10.0.0.4
      peer-as: 65200
""",
    # Typo: unknown key, rejected and the previous config stays
    BASE_CONFIG.replace("peer-as: 65000", "peer-ass: 65000"),
    # Drop the iBGP peer and add a policy
    BASE_CONFIG.split("  - config:\n      neighbor-address: 10.0.0.3")[0] + """\
policy-definitions:
  - name: reject-all
    statements:
      - actions:
          route-disposition: reject-route
""",
]


async def print_changes(current: BgpConfigSet, new: BgpConfigSet, changes: ConfigChanges):
    print(f"\n=== {changes.summary()}")
    for pg in changes.peer_groups.updated:
        print(f"  ~ peer-group {pg.key} (AS {pg.config.peer_as})")
    for n in changes.neighbors.added:
        print(f"  + neighbor {n.key} (AS {n.config.peer_as}, {n.config.peer_type})")
    for n in changes.neighbors.deleted:
        print(f"  - neighbor {n.key}")
    for n in changes.neighbors.updated:
        print(f"  ~ neighbor {n.key}")


async def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "bgpd.yaml")
        with open(path, "w") as f:
            f.write(BASE_CONFIG)

        reload_loop = ReloadLoop(SnapshotLoader(path), loop=asyncio.get_running_loop())
        consumer = ConfigConsumer(reload_loop.config_queue, apply_changes=print_changes)
        watcher = ConfigFileWatcher(path, reload_loop.notify_file_changed)
        watcher.start()

        tasks = [
            asyncio.create_task(reload_loop.run()),
            asyncio.create_task(consumer.run()),
        ]
        try:
            await asyncio.sleep(1)
            for edit in EDITS:
                with open(path, "w") as f:
                    f.write(edit)
                await asyncio.sleep(1)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            watcher.stop()

        print(f"\nReload stats: {reload_loop.stats.to_dict()}")


if __name__ == "__main__":
    asyncio.run(main())
