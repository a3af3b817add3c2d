#!/usr/bin/env python3
"""
Main entry point for the IRC relay bot
"""

import asyncio
import logging
import sys

from relaybot.bot.manager import run_relay
from relaybot.config import get_configuration
from relaybot.errors import ConfigurationError, log_error
from relaybot.logging_config import LoggerConfigurator
from relaybot.logs.logger import logger


def health_check() -> int:
    """Validate the configuration without connecting anywhere."""
    try:
        config = get_configuration()
    except ConfigurationError as e:
        logger.log_event("app", "health_failed", level=logging.ERROR, error=str(e))
        return 1
    logger.log_event("app", "health_ok", networks=len(config.networks))
    return 0


async def main() -> None:
    """Main function"""
    config = get_configuration()
    await run_relay(config)


if __name__ == "__main__":
    LoggerConfigurator().configure()

    # Simple health check mode
    if len(sys.argv) > 1 and sys.argv[1] == "--health-check":
        sys.exit(health_check())

    try:
        asyncio.run(main())
    except ConfigurationError as e:
        logger.log_event("app", "config_error", level=logging.CRITICAL, error=str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logging.info("Application terminated by user")
        sys.exit(0)
    except Exception as e:
        log_error("Top-level error", e)
        logging.critical(f"Critical error occurred: {e}", exc_info=True)
        sys.exit(1)
