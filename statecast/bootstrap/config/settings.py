from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from statecast.bootstrap.config.loader import get_configfile
from statecast.core.helpers.utils import parse_address


class StreamSettings(BaseModel):
    chunk_size: Annotated[
        int,
        Field(
            description="Maximum number of bytes requested per read on the inbound stream.",
            default=1024,
            gt=0
        )
    ]

    write_quantum: Annotated[
        int,
        Field(
            description=(
                "Maximum number of bytes handed to the outbound stream per write.\n"
                "The writer yields to the event loop between two writes."
            ),
            default=1024,
            gt=0
        )
    ]

    max_message_size: Annotated[
        int,
        Field(
            description=(
                "Largest frame payload accepted in either direction.\n"
                "An inbound frame declaring a larger length is a protocol violation\n"
                "and closes the connection."
            ),
            default=16 * 1024 * 1024,
            gt=0,
            le=2**31 - 1
        )
    ]


class ObserverSettings(BaseModel):
    host: Annotated[
        str,
        Field(
            description="Bind address of the observer.",
            default="127.0.0.1"
        )
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port the debugged application connects to.",
            default=7206
        )
    ]

    backlog: Annotated[
        int,
        Field(
            description="Maximum number of pending TCP connections.",
            default=16
        )
    ]

    timeout_graceful_shutdown: Annotated[
        float,
        Field(
            description="Maximum time allowed for graceful shutdown.",
            default=5.0
        )
    ]

    history_size: Annotated[
        int,
        Field(
            description="Number of received snapshots kept in memory.",
            default=256,
            gt=0
        )
    ]

    snapshot_dir: Annotated[
        Path | None,
        Field(
            description=(
                "Directory receiving every snapshot (image + state as YAML).\n"
                "Snapshots are only kept in memory when unset."
            ),
            default=None
        )
    ]


class BackoffSettings(BaseModel):
    initial: Annotated[float, Field(description="First retry delay, in seconds.", default=0.5, gt=0)]
    maximum: Annotated[float, Field(description="Upper bound of the retry delay, in seconds.", default=30.0, gt=0)]
    factor: Annotated[float, Field(description="Growth factor of the retry delay.", default=2.0, ge=1)]
    jitter: Annotated[float, Field(description="Maximum random jitter added to each delay.", default=1.2, ge=0)]


class ClientSettings(BaseModel):
    endpoint: Annotated[
        str,
        Field(
            description=(
                "Address (host:port) of the observer the application streams to.\n"
                "Stands in for service discovery when the observer address is known."
            ),
            default="127.0.0.1:7206"
        )
    ]

    backoff: Annotated[
        BackoffSettings,
        Field(
            description="Retry policy while the observer is unreachable.",
            default_factory=BackoffSettings
        )
    ]

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        parse_address(v)
        return v


class StatecastConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STATECAST_",
        env_nested_delimiter="__",
        extra="allow"
    )

    codec: Annotated[
        Literal["msgpack", "json"],
        Field(
            description=(
                "Payload codec. Both peers must use the same one: the wire format\n"
                "does not identify it."
            ),
            default="msgpack"
        )
    ]

    stream: Annotated[
        StreamSettings,
        Field(
            description="Reader, writer and framing limits of a connection.",
            default_factory=StreamSettings
        )
    ]

    observer: Annotated[
        ObserverSettings,
        Field(
            description="Observer server configuration.",
            default_factory=ObserverSettings
        )
    ]

    client: Annotated[
        ClientSettings,
        Field(
            description="Application side configuration.",
            default_factory=ClientSettings
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=get_configfile()),
        )
