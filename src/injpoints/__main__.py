"""Command-line entry point: ``python -m injpoints``."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from aiohttp import web

from injpoints.app import create_app
from injpoints.config import STORE_BACKENDS, InjPointsConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="injpoints", description="Run the injpoints HTTP service.")
    parser.add_argument("--host", help="Bind address (default: INJPOINTS_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="TCP port (default: INJPOINTS_PORT or 8080)")
    parser.add_argument("--store", choices=sorted(STORE_BACKENDS), help="Document backend")
    parser.add_argument("--data-dir", help="Root directory of the file backend")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.store:
        overrides["store_backend"] = args.store
    if args.data_dir:
        overrides["data_dir"] = args.data_dir

    config = InjPointsConfig.from_env(**overrides)
    web.run_app(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
