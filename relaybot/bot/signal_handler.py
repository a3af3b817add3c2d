"""Shutdown flag flipped by SIGINT/SIGTERM and polled by the manager loop."""

import signal

from ..logs.logger import logger

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    def __init__(self) -> None:
        self.shutdown_initiated = False
        self.received: int | None = None

    def stop(self) -> None:
        self.shutdown_initiated = True

    def _on_signal(self, signum: int, _frame: object | None) -> None:
        # first signal wins; later ones only repeat the request
        if self.received is not None:
            return
        self.received = signum
        logger.log_event("app", "signal", signal=signal.Signals(signum).name)
        self.stop()

    def setup_signal_handlers(self) -> None:
        for signum in SHUTDOWN_SIGNALS:
            signal.signal(signum, self._on_signal)
