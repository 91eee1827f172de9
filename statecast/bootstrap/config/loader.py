import argparse
import os
from functools import lru_cache
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statecast",
        description=(
            "Stream application state snapshots to a remote observer.\n\n"
            "The observer records every snapshot (action, state, rendered image)\n"
            "sent by the debugged application and can push states back to it."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a statecast configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "DEBUG    → frame and stream level tracing.\n"
            "INFO     → connections and snapshots (default).\n"
            "WARNING  → only warnings and errors.\n"
            "ERROR    → only errors.\n"
            "CRITICAL → only critical failures."
        ),
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "observe",
        help="Run the observer until interrupted."
    )

    send = commands.add_parser(
        "send",
        help="Send one snapshot to the observer, as the application would."
    )
    send.add_argument("action", type=str, help="Action label of the snapshot")
    send.add_argument(
        "--state",
        type=Path,
        required=True,
        help="YAML file holding the state to send"
    )
    send.add_argument(
        "--image",
        type=Path,
        required=True,
        help="Rendered image (PNG) to attach to the snapshot"
    )
    send.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for the observer to become reachable (default: 10)"
    )

    return parser


@lru_cache
def get_cli_args() -> argparse.Namespace:
    return build_parser().parse_args()


@lru_cache
def get_configfile() -> Path:
    args = get_cli_args()

    # Priority: CLI > ENV > default file in current working directory
    raw = args.config or os.getenv("STATECASTCONFIG")

    if raw is None:
        file = Path.cwd() / "statecast.yaml"
    else:
        file = Path(raw)

    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the STATECASTCONFIG environment variable\n"
            "  - Or place a 'statecast.yaml' file in the current working directory."
        )

    return file
