"""The Lattice CLI entry point.

Provides subcommands for running the Socket.IO server, playing locally from a
terminal, printing a generated floor, and managing GameConfig rows. Accepts
configuration via flags and environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()

# Disable colors if output is not a real terminal (e.g., during pytest capture)
try:
    _COLOR_ENABLED = sys.stdout.isatty()
except (AttributeError, ValueError):  # pragma: no cover - environment dependent
    _COLOR_ENABLED = False

__version__ = "0.1.0"


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    The Lattice Game Server

    Run the real-time Flask-SocketIO server, play a game from the terminal, or
    inspect generated floors. Configuration can be provided via CLI flags or
    environment variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST               Bind address for the web server (default: 0.0.0.0)
          PORT               Port for the web server (default: 5000)
          DATABASE_URL       SQLAlchemy database URI (default: sqlite:///instance/lattice.db)
          LATTICE_MAX_FLOOR  Deepest floor before victory (default: 5)
          OPENAI_API_KEY     Enables narrative enhancement (optional)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Bind to localhost only and use a different database
          python run.py server --host 127.0.0.1 --db sqlite:///instance/dev.db

          # Print floor 2 of seed 12345
          python run.py dungeon --seed 12345 --floor 2

          # Play as alice in this terminal
          python run.py play alice

          # Override the max floor at runtime
          python run.py config-set max_floor 7
        """
    )

    parser = argparse.ArgumentParser(
        prog="lattice",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"The Lattice {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # server subcommand
    server_parser = subparsers.add_parser(
        "server",
        help="Run the Socket.IO web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the real-time Flask/Socket.IO server",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--db",
        dest="db_uri",
        default=None,
        help="Database URI (default: env DATABASE_URL or sqlite:///instance/lattice.db)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    # dungeon subcommand
    dungeon_parser = subparsers.add_parser(
        "dungeon",
        help="Print a generated floor as JSON",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Generate one floor for a seed and print its rooms, placements and reachability.",
    )
    dungeon_parser.add_argument("--seed", type=int, required=True, help="Dungeon seed")
    dungeon_parser.add_argument("--floor", type=int, default=1, help="Floor number (default: 1)")
    dungeon_parser.set_defaults(command="dungeon")

    # play subcommand
    play_parser = subparsers.add_parser(
        "play",
        help="Play a game in this terminal",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Start a fresh game for USERNAME and read commands from stdin. Type 'quit' to leave.",
    )
    play_parser.add_argument("username", help="Player handle")
    play_parser.set_defaults(command="play")

    # config-get
    cfg_get_parser = subparsers.add_parser(
        "config-get",
        help="Print a GameConfig value by key",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    cfg_get_parser.add_argument("key", help="Config key")
    cfg_get_parser.set_defaults(command="config-get")

    # config-set
    cfg_set_parser = subparsers.add_parser(
        "config-set",
        help="Set a GameConfig key to a value (raw string)",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    cfg_set_parser.add_argument("key", help="Config key (max_floor, narrative_timeout)")
    cfg_set_parser.add_argument("value", help="Raw value")
    cfg_set_parser.set_defaults(command="config-set")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    args = parser.parse_args(argv)
    return args


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    # Resolve configuration from CLI flags or env vars
    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))
    env_db = os.getenv("DATABASE_URL")

    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)
    db_uri_cli = getattr(args, "db_uri", None)

    # Make DATABASE_URL available to the Flask app BEFORE importing it
    if db_uri_cli:
        os.environ["DATABASE_URL"] = db_uri_cli

    db_banner = db_uri_cli or env_db or "auto (instance/lattice.db)"
    mode = (getattr(args, "command", None) or "server").lower()

    if mode == "dungeon":
        from lattice.server import describe_dungeon

        summary = describe_dungeon(args.seed, args.floor, int(os.getenv("LATTICE_MAX_FLOOR", "5")))
        print(json.dumps(summary, indent=2))
        return 0 if summary["ok"] else 1

    if mode == "config-get":
        from lattice import create_app
        from lattice.models.models import GameConfig

        app = create_app()
        with app.app_context():
            val = GameConfig.get(getattr(args, "key"))
            if val is None:
                print("[NOT FOUND]")
                return 1
            print(val)
            return 0

    if mode == "config-set":
        from lattice import create_app
        from lattice.models.models import GameConfig

        app = create_app()
        with app.app_context():
            GameConfig.set(getattr(args, "key"), getattr(args, "value"))
            print("[OK]")
            return 0

    if mode == "play":
        from lattice.server import start_play_shell

        return start_play_shell(args.username)

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoints only after environment is ready
    from lattice.logging_utils import log
    from lattice.server import start_server

    title = (
        f"{Fore.CYAN}{Style.BRIGHT}THE LATTICE Server Bootup{Style.RESET_ALL}"
        if _COLOR_ENABLED
        else "THE LATTICE Server Bootup"
    )

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val: str | int) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    narrative = "openai" if os.getenv("OPENAI_API_KEY") else "fallback text"
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Mode:'):12} {value(mode.upper())}",
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Database:'):12} {value(db_banner)}",
        f"  {label('WebSockets:'):12} {value('enabled')}",
        f"  {label('Narrative:'):12} {value(narrative)}",
        divider,
        "",
    ]
    print("\n".join(lines))
    log.info(event="startup", mode=mode, host=host, port=port, db=db_banner)

    start_server(host=host, port=port, debug=getattr(args, "debug", False))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
