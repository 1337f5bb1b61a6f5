from __future__ import annotations
from typing import Callable
import logging, threading

from .channel import Channel
from .errors import TransportError

logger = logging.getLogger("mmpipe.poller")

class Poller:
    """
    Periodically call Channel.receive() and hand every payload to `on_payload`,
    oldest first. A failed poll is logged and retried on the next tick.
    """

    def __init__(self, channel: Channel, on_payload: Callable[[bytes], None], every_seconds: float = 5.0):
        self._channel = channel
        self._on_payload = on_payload
        self._every = max(0.01, float(every_seconds))
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, daemon=True)

    def start(self) -> None:
        self._stop.clear()
        if not self._thread.is_alive():
            self._thread = threading.Thread(target=self._loop, daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout=timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def poll_now(self) -> int:
        """Run one receive cycle. Returns the number of payloads delivered."""
        payloads = self._channel.receive()
        for data in payloads:
            try:
                self._on_payload(data)
            except Exception:
                logger.exception(f"Payload handler failed on {len(data)} bytes")
        return len(payloads)

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_now()
            except TransportError as e:
                logger.warning(f"Poll failed: {e}")
            except Exception:
                logger.exception("Unexpected error while polling")
            self._stop.wait(self._every)
