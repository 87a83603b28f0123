"""Client entry point."""

import argparse
import asyncio
import logging
import os

from blessed import Terminal

from ..common.constants import DEFAULT_HOST, DEFAULT_PLAYER_NAME, DEFAULT_PORT
from .log_buffer import LogBuffer
from .session import ClientConfig, GameClient, Role
from .terminal_ui import TerminalUI


def setup_logging(log_file: str | None, log_buffer: LogBuffer) -> None:
    """Configure logging with in-memory buffer and optional file output."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Always add the in-memory buffer for TUI display
    log_buffer.setLevel(logging.DEBUG)
    root.addHandler(log_buffer)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        root.addHandler(file_handler)

    # asyncio debug chatter is not interesting in the TUI
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def main() -> None:
    parser = argparse.ArgumentParser(description="DonCEy Kong Jr Client")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Server host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Server port")
    parser.add_argument(
        "--name",
        default=os.environ.get("USER", DEFAULT_PLAYER_NAME),
        help="Player name sent with JOIN",
    )
    parser.add_argument(
        "--role",
        choices=[Role.PLAYER.value, Role.SPECTATOR.value],
        help="Start the first session in this role instead of showing the menu",
    )
    parser.add_argument(
        "--log", help="Log file path (in addition to in-memory log buffer)"
    )
    args = parser.parse_args()

    log_buffer = LogBuffer(maxlen=200)
    setup_logging(args.log, log_buffer)

    config = ClientConfig(host=args.host, port=args.port, name=args.name)
    initial_role = Role(args.role) if args.role else Role.NONE

    term = Terminal()
    ui = TerminalUI(term, log_buffer)
    client = GameClient(config, ui)

    try:
        with term.fullscreen(), term.cbreak(), term.hidden_cursor():
            asyncio.run(client.run(initial_role))
    except KeyboardInterrupt:
        pass
    finally:
        ui.cleanup()


if __name__ == "__main__":
    main()
