import asyncio

from statecast.bootstrap.commands import observe, send
from statecast.bootstrap.config.loader import get_cli_args
from statecast.bootstrap.deps import get_config
from statecast.core.helpers.utils import setup_signal_handler, setup_logging


def main():
    cli = get_cli_args()
    setup_logging(cli.log_level)
    config = get_config()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    try:
        with setup_signal_handler() as stop_event:
            if cli.command == "observe":
                loop.run_until_complete(observe(config, stop_event))
            else:
                loop.run_until_complete(send(config, cli, stop_event))
    except KeyboardInterrupt:
        pass
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            loop.close()


if __name__ == "__main__":
    main()
