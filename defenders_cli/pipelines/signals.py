"""Route SIGINT/SIGTERM into a monitor's cancel event."""

import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from defenders_cli.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def cancel_on_signals(cancel_event: threading.Event) -> Iterator[threading.Event]:
    """
    Set ``cancel_event`` when SIGINT or SIGTERM arrives while the block runs.

    Original handlers are restored on exit. Outside the main thread signal
    handlers cannot be installed and the block runs without them.
    """

    def _handler(signum, frame) -> None:
        logger.debug(f"Received signal {signum}, cancelling monitor")
        cancel_event.set()

    originals: dict[int, object] = {}
    try:
        for signum in (signal.SIGINT, signal.SIGTERM):
            originals[signum] = signal.signal(signum, _handler)
    except ValueError as e:
        logger.debug(f"Signal handlers not installed: {e}")

    try:
        yield cancel_event
    finally:
        for signum, original in originals.items():
            signal.signal(signum, original)
