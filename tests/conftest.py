import asyncio
import os
from typing import Generator

import pytest
import pytest_asyncio
import yaml

from statecast.bootstrap.config.settings import StatecastConfig
from statecast.core.helpers.spawn import TaskSpawner
from tests.fake.fake_codec import FakeCodec
from tests.fake.fake_stream import FakeSink, FakeSource
from tests.helpers import FakeStatecastConfig


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def sink():
    return FakeSink()


@pytest_asyncio.fixture
async def spawner():
    spawner = TaskSpawner(asyncio.get_running_loop())
    yield spawner
    await spawner.join(timeout=1.0)


@pytest.fixture
def config_data(tmp_path) -> dict:
    return {
        "codec": "msgpack",
        "stream": {
            "chunk_size": 512,
            "write_quantum": 256,
            "max_message_size": 1024 * 1024,
        },
        "observer": {
            "host": "127.0.0.1",
            "port": 0,
            "backlog": 4,
            "timeout_graceful_shutdown": 1,
            "history_size": 8,
            "snapshot_dir": str(tmp_path / "snapshots"),
        },
        "client": {
            "endpoint": "127.0.0.1:7206",
            "backoff": {
                "initial": 0.01,
                "maximum": 0.1,
                "factor": 2.0,
                "jitter": 0,
            },
        },
    }


@pytest.fixture
def config_file(tmp_path, config_data):
    file = tmp_path / "statecast.yaml"
    file.write_text(yaml.dump(config_data))
    return file


@pytest.fixture
def statecast_config(config_file, monkeypatch) -> Generator[StatecastConfig, None, None]:
    monkeypatch.setenv("TEST_STATECASTCONFIG", str(config_file))
    for key in list(os.environ):
        if key.startswith("STATECAST_"):
            monkeypatch.delenv(key)
    yield FakeStatecastConfig()
