"""
CLI entrypoint for running ShadowFlow FastAPI service.
"""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from apps.api.main.app import create_app


def _build_parser() -> argparse.ArgumentParser:
    """
    Build command-line parser for API process.

    Args:
        None.
    Returns:
        argparse.ArgumentParser: Configured parser.
    Assumptions:
        Defaults are suitable for local development; the API serves a local UI only.
    Raises:
        None.
    Side Effects:
        None.
    """
    parser = argparse.ArgumentParser(prog="shadowflow-api")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--config", default=None, help="Path to shadowflow.yaml")
    parser.add_argument("--log-level", default="INFO", help="Root log level")
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Run API process using uvicorn.

    Args:
        argv: Optional command arguments without program name.
    Returns:
        int: Process exit code.
    Assumptions:
        Import path `apps.api.main.app` is available in PYTHONPATH.
    Raises:
        FileNotFoundError: If runtime config is missing.
        ValueError: If runtime config is invalid.
    Side Effects:
        Configures logging and starts HTTP server loop.
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(environ=os.environ, config_path=args.config)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
