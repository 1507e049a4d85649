#!/usr/bin/env python3
"""
Calendar Fetcher - Main Entry Point

Polls a Google Calendar on a fixed interval and republishes the upcoming,
filtered event list. This entry point logs every published list.
"""

import sys
import signal
import threading

from utils.logging import logger
from utils.error_handling import ConfigurationError
from config import load_fetch_config, log_startup_config
from fetcher import CalendarFetcher

shutdown_requested = threading.Event()

def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info(f"Received signal {signum}, initiating shutdown...")
    shutdown_requested.set()

def log_received_events(fetcher):
    events = fetcher.get_events()
    logger.info(f"Calendar '{fetcher.name}' published {len(events)} events:")
    for event in events:
        when = "all day" if event.full_day_event else event.start_date.strftime("%H:%M")
        logger.info(f"  {event.start_date:%Y-%m-%d} {when}  {event.title}")

def log_fetch_error(fetcher, error):
    logger.error(f"Calendar '{fetcher.name}' fetch failed: {error}")

def main():
    """Main application entry point."""
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("=" * 60)
    logger.info("Calendar Fetcher Starting")
    logger.info("=" * 60)

    try:
        config = load_fetch_config()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    log_startup_config(config)

    fetcher = CalendarFetcher(config, on_receive=log_received_events, on_error=log_fetch_error)
    try:
        fetcher.start_fetch()
        while not shutdown_requested.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Fetcher stopped by user")
    finally:
        fetcher.stop()
        logger.info("Calendar Fetcher Shutdown Complete")

if __name__ == "__main__":
    main()
