"""Command-line front end for one-off requests."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Sequence

from ..core import HttpRequest, HttpRequestError, ValidationError
from ..settings import ClientSettings, load_settings
from ..utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        structured=not args.log_plain,
        stream=sys.stderr,
    )

    handler: Callable[[argparse.Namespace], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="httprequest", description="httprequest CLI")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug events")

    subparsers = parser.add_subparsers(dest="command")

    get_parser = subparsers.add_parser("get", help="Fetch a URL")
    _add_request_options(get_parser)
    get_parser.set_defaults(handler=_handle_get)

    send_parser = subparsers.add_parser("send", help="Send a payload to a URL")
    _add_request_options(send_parser)
    send_parser.add_argument(
        "--method",
        default="POST",
        help="HTTP method (GET, POST, PUT, DELETE)",
    )
    payload = send_parser.add_mutually_exclusive_group()
    payload.add_argument(
        "--data",
        action="append",
        metavar="KEY=VALUE",
        default=[],
        help="Form field; repeat for several fields",
    )
    payload.add_argument("--raw", help="Send this string as the request body", default=None)
    send_parser.set_defaults(handler=_handle_send)

    return parser


def _add_request_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Absolute http(s) URL")
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="HEADER",
        help="'Name: value' or a bare 'Name'; repeatable",
    )
    parser.add_argument("--auth", metavar="SCHEME:USER[:PASS]", default=None)
    parser.add_argument("--proxy", metavar="URL", default=None)
    parser.add_argument("--proxy-auth", metavar="USER[:PASS]", default=None)
    parser.add_argument("--timeout", type=int, default=None)
    parser.add_argument("--http-version", choices=("1.0", "1.1"), default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--user-agent", default=None)
    parser.add_argument("--content-type", default=None)
    parser.add_argument(
        "--fallback",
        action="store_true",
        help="Use the built-in socket transport even if requests is installed",
    )
    parser.add_argument(
        "-i",
        "--include",
        action="store_true",
        help="Print status code and received headers before the body",
    )


def _parse_field(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {raw!r}")
    return key, value


def _build_client(args: argparse.Namespace, settings: ClientSettings) -> HttpRequest:
    client = HttpRequest(args.url, native=not args.fallback, settings=settings)
    for header in args.header:
        name, sep, value = header.partition(":")
        client.set_header(name.strip(), value.strip() if sep else None)
    if args.auth:
        scheme, _, credentials = args.auth.partition(":")
        user, sep, password = credentials.partition(":")
        client.set_auth(scheme, user, password if sep else None)
    if args.proxy:
        user = password = None
        if args.proxy_auth:
            user, sep, pwd = args.proxy_auth.partition(":")
            password = pwd if sep else None
        client.set_proxy(args.proxy, user, password)
    if args.timeout is not None:
        client.set_timeout(args.timeout)
    if args.http_version:
        client.set_http_version(args.http_version)
    if args.port is not None:
        client.set_port(args.port)
    if args.user_agent:
        client.set_user_agent(args.user_agent)
    if args.content_type:
        client.set_content_type(args.content_type)
    return client


def _emit(client: HttpRequest, body: str, include: bool) -> None:
    if include:
        print(client.get_http_status_code())
        for line in client.get_received_headers().lines():
            print(line)
        print()
    sys.stdout.write(body)
    if body and not body.endswith("\n"):
        sys.stdout.write("\n")


def _run(args: argparse.Namespace, payload: object) -> int:
    try:
        settings = load_settings(args.config)
    except FileNotFoundError as exc:
        LOGGER.error("%s", exc, extra={"event": "cli.error"})
        return 2

    try:
        with _build_client(args, settings) as client:
            if args.command == "send":
                client.set_http_method(args.method)
            body = client.send(payload)
            _emit(client, body, args.include)
    except ValidationError as exc:
        print(f"httprequest: {exc}", file=sys.stderr)
        return 2
    except HttpRequestError as exc:
        LOGGER.error(
            "Request failed",
            extra={"event": "cli.error", "command": args.command, "error": str(exc)},
        )
        print(f"httprequest: {exc}", file=sys.stderr)
        return 1
    return 0


def _handle_get(args: argparse.Namespace) -> int:
    return _run(args, None)


def _handle_send(args: argparse.Namespace) -> int:
    if args.raw is not None:
        return _run(args, args.raw)
    try:
        fields = [_parse_field(item) for item in args.data]
    except argparse.ArgumentTypeError as exc:
        print(f"httprequest: {exc}", file=sys.stderr)
        return 2
    return _run(args, fields or None)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
