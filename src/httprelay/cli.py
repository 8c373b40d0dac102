#!/usr/bin/env python3
"""
CLI entry point for the HTTP relay.

Executes a single request, either directly against a base URI or through
the proxy endpoint table, and prints the requested representation.

Usage:
    python -m httprelay.cli request GET /users --base-uri https://api.example.com
    python -m httprelay.cli --config relay.yaml proxy users /users/1 --representation json
    python -m httprelay.cli --config relay.yaml proxy users /users -X POST --data name=luke
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import RelayConfig, build_cache_store
from .connectors import HttpConnector, ProxyConnector
from .core.envelope import ResponseEnvelope
from .core.exceptions import ConfigurationError, HttpExecutionError
from .core.logging import configure_logging
from .core.models import InboundRequest, Representation


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EXECUTION_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
    )


def parse_pairs(values: Optional[List[str]], separator: str) -> Dict[str, str]:
    """
    Parse repeated KEY<sep>VALUE options into a dict.

    Raises:
        argparse.ArgumentTypeError: If a value lacks the separator
    """
    pairs: Dict[str, str] = {}
    for value in values or []:
        key, sep, rest = value.partition(separator)
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(
                f"Expected KEY{separator}VALUE, got: {value}"
            )
        pairs[key.strip()] = rest.strip()
    return pairs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httprelay",
        description="Execute HTTP requests with status validation and caching",
    )
    parser.add_argument("--config", type=Path, help="Path to YAML config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_request_options(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--data", "-d", action="append", metavar="KEY=VALUE",
            help="Request field (repeatable)",
        )
        subparser.add_argument(
            "--header", "-H", action="append", metavar="NAME:VALUE",
            help="Request header (repeatable)",
        )
        subparser.add_argument(
            "--representation", "-r",
            choices=[r.value for r in Representation],
            default=Representation.JSON.value,
            help="Representation to print (default: json)",
        )

    request_parser = subparsers.add_parser("request", help="Execute a plain request")
    request_parser.add_argument("method", help="HTTP method")
    request_parser.add_argument("url", help="URL relative to the base URI")
    request_parser.add_argument("--base-uri", help="Base URI (overrides config)")
    add_request_options(request_parser)

    proxy_parser = subparsers.add_parser("proxy", help="Call a configured endpoint")
    proxy_parser.add_argument("endpoint", help="Endpoint name from the config")
    proxy_parser.add_argument("path", help="Path on the endpoint")
    proxy_parser.add_argument("--method", "-X", default="GET", help="HTTP method (default: GET)")
    add_request_options(proxy_parser)

    return parser


def render(value: Any) -> str:
    """Render a representation for printing."""
    if value is None:
        return ""
    if isinstance(value, ResponseEnvelope):
        return json.dumps(
            {
                "status_code": value.status_code,
                "reason_phrase": value.reason_phrase,
                "headers": value.headers,
                "cache_hit": value.cache_hit,
            },
            indent=2,
        )
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False)
    return str(value)


def run(args: argparse.Namespace) -> Any:
    """Run the parsed command and return the representation."""
    config = RelayConfig(args.config) if args.config else RelayConfig()
    data = parse_pairs(args.data, "=")
    headers = parse_pairs(args.header, ":")
    cache_store = build_cache_store(config)

    try:
        if args.command == "request":
            connector_config = config.get_connector_config()
            if args.base_uri:
                connector_config.base_uri = args.base_uri
            connector = HttpConnector.from_config(connector_config, cache_store=cache_store)
            try:
                envelope = connector.execute(args.method, args.url, data, headers)
                return connector.get_response(envelope, args.representation)
            finally:
                connector.close()

        proxy = ProxyConnector.from_config(config, cache_store=cache_store)
        try:
            return proxy.call(
                InboundRequest(method=args.method.upper(), path=args.path),
                args.method,
                args.endpoint,
                args.path,
                data,
                headers,
                args.representation,
            )
        finally:
            proxy.close()
    finally:
        if cache_store is not None:
            cache_store.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        result = run(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except HttpExecutionError as e:
        print(f"Request failed ({e.status_code}): {e}", file=sys.stderr)
        return EXIT_EXECUTION_ERROR

    print(render(result))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
