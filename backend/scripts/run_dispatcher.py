"""Run a pool of issue delivery dispatchers until SIGINT/SIGTERM.

Usage (from ``backend/``)::

    python -m scripts.run_dispatcher [--concurrency N]

Start as many of these processes as needed; they coordinate only through
row locks in the database.
"""

import argparse
import logging
import signal
import threading
from types import FrameType

from newsletter.core.config import settings
from newsletter.services.issue_delivery_dispatcher import run_dispatcher_pool

logger = logging.getLogger("newsletter.dispatcher")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Deliver queued newsletter issues.")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.DISPATCHER_CONCURRENCY,
        help="Number of dispatcher threads in this process",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s",
    )

    stop_event = threading.Event()

    def _request_stop(signum: int, frame: FrameType | None) -> None:
        logger.info("Received signal %d, stopping dispatchers", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    threads = run_dispatcher_pool(args.concurrency, stop_event)
    for thread in threads:
        thread.join()
    logger.info("All dispatchers stopped")


if __name__ == "__main__":
    main()
