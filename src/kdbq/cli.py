from __future__ import annotations

import argparse
import importlib
import json
from functools import partial
from typing import Any, Callable, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter
from kdb_query import (
    ClientSettings,
    Connection,
    QueryExecutionFailed,
    RemoteProcess,
    SyncQueryExecutor,
    TargetProcessUnavailable,
)
from kdb_query.logging_utils import configure_logging
from kdb_query.settings import LOG_LEVEL_ENV

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m kdbq")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def _parse_argument(raw: str) -> tuple[str, Any]:
    """Split a ``name=value`` flag, decoding the value as JSON when possible.

    Example:
        ```python
        assert _parse_argument("size=100") == ("size", 100)
        ```
    """
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected name=value, got {raw!r}")
    try:
        return name.strip(), json.loads(value)
    except json.JSONDecodeError:
        return name.strip(), value


def load_connection_factory(path: str) -> Callable[[RemoteProcess], Connection]:
    """Import a ``module:callable`` connection factory.

    Example:
        ```python
        factory = load_connection_factory("mytransport.kdb:connect")
        ```
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Connection factory must look like 'module:callable', got {path!r}")
    module = importlib.import_module(module_name)
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ValueError(f"{path!r} is not a callable connection factory")
    return factory


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for running kdb+ queries.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m kdbq",
        description=(
            "kdb-query CLI\n"
            "Run one synchronous query against a kdb+ process.\n"
            "The transport is supplied by a connection factory you provide."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m kdbq --connection mytransport:connect query '2+2'\n"
            "  python -m kdbq --connection mytransport:connect --host rdb --port 5011 \\\n"
            "      query 'select from trade where sym=s' --arg s='\"AAPL\"'\n"
            "  python -m kdbq --config kdbq.toml settings"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--config",
        help=(
            "Path to a TOML settings file.\n"
            "Reads the [client] table; flags below override it."
        ),
    )
    parser.add_argument("--host", help="kdb+ host (default from settings: localhost).")
    parser.add_argument("--port", type=int, help="kdb+ port (default from settings: 5000).")
    parser.add_argument(
        "--connection",
        help=(
            "Import path of a connection factory, 'module:callable'.\n"
            "Called as factory(RemoteProcess) and must return a Connection."
        ),
    )
    parser.add_argument(
        "--reconnect",
        choices=["block", "retry", "fail-fast"],
        help=(
            "Reconnect policy when the connection is down.\n"
            "block waits indefinitely, retry backs off, fail-fast gives up."
        ),
    )
    parser.add_argument(
        "--log-level",
        help=f"Log level (default: the settings file, then ${LOG_LEVEL_ENV}, then INFO).",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    query_cmd = sub.add_parser(
        "query",
        help="Run one synchronous query.",
        description=(
            "Send a query and print the raw result.\n"
            "Exits 1 when the query fails, 2 when the process is unavailable."
        ),
        epilog=(
            "Examples:\n"
            "  python -m kdbq --connection mytransport:connect query 'til 5'\n"
            "  python -m kdbq --connection mytransport:connect query '{x+y}' --arg x=1 --arg y=2"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    query_cmd.add_argument("query")
    query_cmd.add_argument(
        "--arg",
        dest="arguments",
        action="append",
        type=_parse_argument,
        default=[],
        metavar="NAME=VALUE",
        help="Query argument; the value is decoded as JSON when possible. Repeatable.",
    )

    sub.add_parser(
        "settings",
        help="Show the effective client settings.",
        description="Print settings after applying the config file and flags.",
        formatter_class=_HELP_FORMATTER,
    )

    return parser


def build_settings(args: argparse.Namespace) -> ClientSettings:
    """Merge the optional settings file with command-line overrides.

    Example:
        ```python
        settings = build_settings(args)
        ```
    """
    base = ClientSettings.from_file(args.config) if args.config else ClientSettings()
    return ClientSettings(
        host=args.host or base.host,
        port=args.port or base.port,
        reconnect_mode=args.reconnect or base.reconnect_mode,
        max_attempts=base.max_attempts,
        backoff_seconds=base.backoff_seconds,
        max_backoff_seconds=base.max_backoff_seconds,
        log_level=args.log_level or base.log_level,
        config_path=base.config_path,
    )


def _print_settings(settings: ClientSettings) -> None:
    """Render effective settings in a rich table.

    Example:
        ```python
        _print_settings(ClientSettings())
        ```
    """
    table = Table(title="Client Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("process", str(settings.remote_process()))
    table.add_row("reconnect_mode", settings.reconnect_mode)
    table.add_row("max_attempts", str(settings.max_attempts))
    table.add_row("backoff_seconds", str(settings.backoff_seconds))
    table.add_row("max_backoff_seconds", str(settings.max_backoff_seconds))
    table.add_row("log_level", settings.log_level)
    table.add_row("config_path", settings.config_path or "-")
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `kdbq` CLI command handler.

    Example:
        ```python
        code = main(["--connection", "mytransport:connect", "query", "2+2"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        settings = build_settings(args)
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(settings.log_level, rich=True)

    if args.command == "settings":
        _print_settings(settings)
        return 0

    if args.command == "query":
        if not args.connection:
            parser.error("--connection is required for 'query'")
        try:
            factory = load_connection_factory(args.connection)
        except (ImportError, ValueError) as exc:
            parser.error(str(exc))
        connection = factory(settings.remote_process())
        executor = SyncQueryExecutor(connection, reconnect_policy=settings.reconnect_policy())
        try:
            result = executor.execute(args.query, dict(args.arguments) or None)
        except QueryExecutionFailed as exc:
            _CONSOLE.print(
                Panel.fit(
                    f"[bold]{exc.failure.kind} failure[/bold] on {exc.process}\n{exc.failure.message}",
                    title="Query Failed",
                    border_style="red",
                )
            )
            return 1
        except TargetProcessUnavailable as exc:
            _CONSOLE.print(Panel.fit(str(exc), style="bold red"))
            return 2
        _CONSOLE.print(
            Panel.fit(
                Pretty(result),
                title=f"{settings.remote_process()} | {executor.last_timing}",
                border_style="green",
            )
        )
        return 0

    parser.error("Unhandled command")
    return 2
