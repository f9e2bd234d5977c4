#!/usr/bin/env python3
"""
Chat Client Application

Terminal client for the chat service. Loads the configuration, connects to
the server and runs the interactive session until the user exits or a
SIGINT/SIGTERM arrives.

Exit status is 0 on a clean shutdown and 1 when the configuration is
missing or the server cannot be reached.
"""

import asyncio
import logging
import signal
import sys

from .config import ClientConfig, load_config
from .console import ConsoleReader
from .errors import ConfigError, DialFailedError, UserAbort
from .prompts import SIGNAL_RECEIVED
from .protocol import ProtocolAdapter
from .session import SessionController
from .transport import dial_with_retry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: ClientConfig) -> None:
    """Log to a file so records do not interleave with the prompt."""
    level = getattr(logging, config.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(config.log_file, mode="a")],
    )


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop, cancel: asyncio.Event
) -> None:
    """Set ``cancel`` on SIGINT or SIGTERM."""

    def on_signal() -> None:
        if not cancel.is_set():
            logger.info(SIGNAL_RECEIVED)
            print(f"\n{SIGNAL_RECEIVED}")
            cancel.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal)
        except (NotImplementedError, RuntimeError):
            # Event loops without add_signal_handler (e.g. on Windows)
            signal.signal(
                sig, lambda *_: loop.call_soon_threadsafe(on_signal)
            )


async def run_client(config: ClientConfig) -> None:
    """
    Connect and run one interactive session.

    Raises:
        DialFailedError: If the server cannot be reached
    """
    cancel = asyncio.Event()
    install_signal_handlers(asyncio.get_running_loop(), cancel)

    try:
        transport = await dial_with_retry(
            config.server_url,
            config.auth_token,
            read_timeout=config.read_timeout,
            retries=config.dial_retries,
            delay=config.dial_retry_delay,
            cancel=cancel,
        )
    except UserAbort:
        logger.info("Cancelled before connecting")
        return

    controller = SessionController(
        ProtocolAdapter(transport),
        cancel,
        ConsoleReader(),
        reply_timeout=config.read_timeout,
    )
    await controller.run()


def main():
    """Main entry point for the chat client."""
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config)
    logger.info("Starting chat client...")

    try:
        asyncio.run(run_client(config))
    except DialFailedError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nExiting...")
    sys.exit(0)


if __name__ == "__main__":
    main()
