import argparse
import asyncio
import logging

import yaml

from statecast.bootstrap.config.settings import StatecastConfig
from statecast.bootstrap.deps import build_discovery, build_observer, build_session
from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.ports.discovery import Endpoint
from statecast.infra.file_capturer import FileCapturer

logger = logging.getLogger("bootstrap.commands")


async def observe(config: StatecastConfig, stop_event: asyncio.Event) -> None:
    spawner = TaskSpawner(asyncio.get_running_loop())
    server = build_observer(config, spawner)
    await server.run(stop_event)


async def send(config: StatecastConfig, args: argparse.Namespace, stop_event: asyncio.Event) -> None:
    """Connect like the application would, send one snapshot, and leave."""
    try:
        state = yaml.safe_load(args.state.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as ex:
        raise SystemExit(f"Unable to load state from '{args.state}': {ex}")

    spawner = TaskSpawner(asyncio.get_running_loop())
    session = build_session(config, spawner, capturer=FileCapturer(args.image))
    discovery = build_discovery(config)
    connected = asyncio.Event()

    async def on_found(endpoint: Endpoint):
        connection = await session.on_discovered(endpoint)
        connected.set()
        return connection

    spawner.spawn(discovery.run(on_found, stop_event), name="discovery")

    try:
        try:
            await asyncio.wait_for(connected.wait(), timeout=args.timeout)
        except asyncio.TimeoutError:
            raise SystemExit(f"Observer at {config.client.endpoint} is unreachable")

        try:
            session.send(args.action, state)
        except RuntimeError as ex:
            raise SystemExit(str(ex))
        await session.flush()
        logger.info(f"Snapshot '{args.action}' sent to {config.client.endpoint}")
    finally:
        stop_event.set()
        session.close()
        await spawner.join(timeout=1.0)
