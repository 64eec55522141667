"""
w3loot Web Server Entry Point

`w3loot-web` and `w3loot serve` both start the upload API through run_server().
Unset options fall back to the `server` section of the w3loot config, so
W3LOOT_HOST / W3LOOT_PORT and config files apply to both commands.
"""

import argparse
import logging

import uvicorn

from w3loot.core.config import configure_logging, get_config

logger = logging.getLogger(__name__)

LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]


def run_server(
    host: str | None = None,
    port: int | None = None,
    reload: bool = False,
    workers: int | None = None,
    log_level: str | None = None,
) -> None:
    """Configure logging and hand the API app to uvicorn."""
    config = get_config()
    configure_logging(config.logging)

    host = host or config.server.host
    port = port or config.server.port
    # The reloader supervises a single process
    workers = 1 if reload else (workers or config.server.workers)
    log_level = (log_level or config.logging.level).lower()

    logger.info("Starting w3loot web server on http://%s:%s (%d worker(s))", host, port, workers)

    uvicorn.run(
        "w3loot.api:app",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="w3loot-web",
        description="Serve the w3loot replay upload API",
    )
    parser.add_argument("--host", help="Bind address (config: server.host)")
    parser.add_argument("--port", type=int, help="Bind port (config: server.port)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument("--workers", type=int, help="Worker processes (config: server.workers)")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="uvicorn log level")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    run_server(
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
