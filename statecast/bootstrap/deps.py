import json
from functools import lru_cache
from typing import Callable

from pydantic import ValidationError

from statecast.bootstrap.config.settings import StatecastConfig
from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.helpers.utils import parse_address
from statecast.core.models.config import ObserverConfig, StreamConfig
from statecast.core.models.message import Snapshot, StateUpdate
from statecast.core.ports.capture import Capturer
from statecast.core.ports.codec import Codec
from statecast.core.session.observer import ObserverSession
from statecast.core.session.session import Session
from statecast.core.throttling.backoff import ExponentialBackoff
from statecast.core.transport.server import ObserverServer
from statecast.core.transport.streams import TcpEndpoint
from statecast.infra.json_codec import JsonCodec
from statecast.infra.msgpack_codec import MsgPackCodec
from statecast.infra.snapshot_store import DirectorySnapshotStore
from statecast.infra.static_discovery import StaticDiscovery


@lru_cache
def get_config() -> StatecastConfig:
    try:
        return StatecastConfig()  # type: ignore[call-arg]
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(map(str, err['loc']))}: {err['msg']}")
        raise SystemExit("\n".join(msg))


def build_codec(config: StatecastConfig) -> Codec:
    if config.codec == "json":
        return JsonCodec()
    return MsgPackCodec()


def build_stream_config(config: StatecastConfig) -> StreamConfig:
    stream = config.stream
    return StreamConfig(
        chunk_size=stream.chunk_size,
        write_quantum=stream.write_quantum,
        max_message_size=stream.max_message_size,
    )


def build_observer_config(config: StatecastConfig) -> ObserverConfig:
    observer = config.observer
    return ObserverConfig(
        host=observer.host,
        port=observer.port,
        backlog=observer.backlog,
        timeout_graceful_shutdown=observer.timeout_graceful_shutdown,
        history_size=observer.history_size,
        snapshot_dir=observer.snapshot_dir,
    )


def build_observer(
    config: StatecastConfig,
    spawner: TaskSpawner,
    on_message: Callable[[Snapshot], None] | None = None,
) -> ObserverServer:
    observer_config = build_observer_config(config)
    store = None
    if observer_config.snapshot_dir is not None:
        store = DirectorySnapshotStore(observer_config.snapshot_dir)

    session = ObserverSession(
        codec=build_codec(config),
        spawner=spawner,
        history_size=observer_config.history_size,
        snapshot_sink=store,
        config=build_stream_config(config),
        on_message=on_message,
    )
    return ObserverServer(config=observer_config, session=session, spawner=spawner)


def build_session(
    config: StatecastConfig,
    spawner: TaskSpawner,
    capturer: Capturer | None = None,
    on_message: Callable[[StateUpdate], None] | None = None,
) -> Session:
    return Session(
        codec=build_codec(config),
        spawner=spawner,
        capturer=capturer,
        config=build_stream_config(config),
        on_message=on_message,
    )


def build_discovery(config: StatecastConfig) -> StaticDiscovery:
    host, port = parse_address(config.client.endpoint)
    backoff = config.client.backoff
    return StaticDiscovery(
        endpoint=TcpEndpoint(host, port),
        backoff=ExponentialBackoff(
            initial=backoff.initial,
            maximum=backoff.maximum,
            factor=backoff.factor,
            jitter=backoff.jitter,
        ),
    )
