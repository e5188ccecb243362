"""
Main entry point for the wallet gateway.
"""

import asyncio
import signal
import sys

from loguru import logger

from wallet_gateway.config import get_settings
from wallet_gateway.errors import ConfigurationError
from wallet_gateway.rpc import validate_connection
from wallet_gateway.server import GatewayServer


def setup_logging(level: str) -> None:
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )


async def run_gateway() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info("Starting Wallet Gateway")
    logger.info(f"Network: {settings.network}")
    logger.info(f"Node RPC: {settings.rpc_url}")
    logger.info(f"HTTP server: {settings.http_host}:{settings.http_port}")
    logger.info(f"Allowed origin: {settings.cors_origin}")

    try:
        validate_connection(settings.rpc_url, settings.rpc_user, settings.rpc_password)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e.message}")
        logger.error("Set RPC_URL, RPC_USER and RPC_PASSWORD (environment or .env file)")
        sys.exit(1)

    server = GatewayServer(settings)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler)

    try:
        await server.start()
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Gateway cancelled")
    except Exception as e:
        logger.error(f"Gateway error: {e}")
        raise
    finally:
        await server.stop()


def main() -> None:
    try:
        asyncio.run(run_gateway())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
