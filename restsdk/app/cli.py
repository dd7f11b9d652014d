"""Command-line interface for issuing a single request."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Callable, Sequence

from ..core import DispatchError, HttpMethod, RequestDescriptor
from ..settings import CONFIG_ENV_VAR, DispatcherSettings, build_dispatcher, load_config
from ..utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(structured=not args.log_plain, stream=sys.stderr)

    handler: Callable[[argparse.Namespace], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="restsdk", description="restsdk CLI")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command")
    _add_request_command(subparsers)
    return parser


def _add_request_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    request_parser = subparsers.add_parser("request", help="Send one request and print the body")
    request_parser.add_argument(
        "method",
        type=str.upper,
        choices=[member.name for member in HttpMethod],
        help="HTTP method",
    )
    request_parser.add_argument("uri", help="URI appended to the host, e.g. /ping")
    request_parser.add_argument("--host", help="Base URL; overrides the configured host")
    request_parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        action="append",
        default=[],
        metavar="KEY:VALUE",
        help="Request header (repeatable)",
    )
    request_parser.add_argument(
        "-q",
        "--query",
        dest="query",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable, order preserved)",
    )
    body_group = request_parser.add_mutually_exclusive_group()
    body_group.add_argument("--json", dest="json_body", help="JSON object sent as the body")
    body_group.add_argument("--data", dest="raw_body", help="Raw string sent as the body")
    request_parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")
    request_parser.add_argument(
        "--debug",
        action="store_true",
        help="Log the outgoing request and response status",
    )
    request_parser.set_defaults(handler=_handle_request)


def _split_pair(raw: str, separator: str, *, option: str) -> tuple[str, str]:
    key, sep, value = raw.partition(separator)
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"{option} expects KEY{separator}VALUE, got {raw!r}")
    return key.strip(), value.strip() if separator == ":" else value


def _resolve_settings(args: argparse.Namespace) -> DispatcherSettings:
    if args.config or os.environ.get(CONFIG_ENV_VAR):
        settings = load_config(args.config)
        if args.host:
            settings.host = args.host
        return settings
    if not args.host:
        raise ValueError(f"--host is required when neither --config nor {CONFIG_ENV_VAR} is set")
    return DispatcherSettings(host=args.host)


def _parse_body(args: argparse.Namespace) -> Any:
    if args.json_body is not None:
        body = json.loads(args.json_body)
        if not isinstance(body, dict):
            raise ValueError("--json expects a JSON object")
        return body
    return args.raw_body


def _handle_request(args: argparse.Namespace) -> int:
    try:
        settings = _resolve_settings(args)
        descriptor = RequestDescriptor(
            method=args.method,
            uri=args.uri,
            headers=dict(_split_pair(item, ":", option="--header") for item in args.headers),
            query=[_split_pair(item, "=", option="--query") for item in args.query],
            body=_parse_body(args),
            timeout=args.timeout,
            debug=args.debug,
        )
    except (argparse.ArgumentTypeError, FileNotFoundError, ValueError) as exc:
        LOGGER.error(
            "Invalid request arguments: %s",
            exc,
            extra={"event": "cli.invalid_arguments"},
        )
        return 2

    LOGGER.info(
        "Sending request",
        extra={
            "event": "cli.command",
            "command": "request",
            "method": descriptor.method.name,
            "host": settings.host,
            "uri": descriptor.uri,
        },
    )
    with build_dispatcher(settings) as dispatcher:
        try:
            text = dispatcher.execute(descriptor)
        except DispatchError as exc:
            LOGGER.error("Request failed: %s", exc, extra={"event": "cli.request_failed"})
            return 1

    sys.stdout.write(text)
    if text and not text.endswith("\n"):
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
