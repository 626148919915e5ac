"""Start a complete overlay (directory, relays, users) in one process."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from fastapi import FastAPI

from onion_overlay.core.settings import Settings, settings
from onion_overlay.main import create_directory_app, create_relay_app, create_user_app

logger = logging.getLogger(__name__)

_STARTUP_POLL_SECONDS = 0.05


def _server(app: FastAPI, config: Settings, port: int) -> uvicorn.Server:
    return uvicorn.Server(
        uvicorn.Config(app, host=config.host, port=port, log_level=config.log_level.lower())
    )


async def _wait_started(server: uvicorn.Server, task: asyncio.Task[None]) -> None:
    while not server.started:
        if task.done():
            task.result()
            raise RuntimeError("Server exited before it started")
        await asyncio.sleep(_STARTUP_POLL_SECONDS)


async def launch_network(relays: int, users: int, config: Settings = settings) -> None:
    """Run the directory first, then every relay and user, until cancelled."""
    directory = _server(create_directory_app(config), config, config.directory_port)
    directory_task = asyncio.create_task(directory.serve())
    await _wait_started(directory, directory_task)
    logger.info("Directory is listening on port %d", config.directory_port)

    servers = [
        _server(create_relay_app(node_id, config), config, config.relay_base_port + node_id)
        for node_id in range(relays)
    ]
    servers += [
        _server(create_user_app(user_id, config), config, config.recipient_base_port + user_id)
        for user_id in range(users)
    ]
    tasks = [directory_task, *(asyncio.create_task(server.serve()) for server in servers)]
    logger.info("Launched %d relays and %d users", relays, users)
    await asyncio.gather(*tasks)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a local onion overlay")
    subparsers = parser.add_subparsers(dest="command", required=True)

    launch = subparsers.add_parser("launch", help="Start directory, relays and users")
    launch.add_argument("--relays", type=int, default=10, help="Number of relays (default: 10)")
    launch.add_argument("--users", type=int, default=2, help="Number of users (default: 2)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    for name, count in (("relays", args.relays), ("users", args.users)):
        if not 0 <= count <= settings.address_span:
            parser.error(f"--{name} must be between 0 and {settings.address_span}")

    try:
        asyncio.run(launch_network(args.relays, args.users))
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
