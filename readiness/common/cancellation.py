"""Cancellation signal for a readiness run.

Usage::

    from readiness.common.cancellation import CancellationToken

    token = CancellationToken.install_signal_handlers()
    report = Runner(cancel_token=token).execute(context)
    token.log_exit()
"""
from __future__ import annotations

import logging
import signal
import threading
import time
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe stop flag shared between the signal handler and the runner.

    The runner polls ``requested`` between waits; ``wait()`` lets callers
    block until cancellation or a timeout, whichever comes first.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str = ""
        self._start_ts = time.time()
        self._previous: Dict[int, Any] = {}

    @classmethod
    def install_signal_handlers(cls) -> "CancellationToken":
        """Create a token that is cancelled on ``SIGTERM``/``SIGINT``.

        Must be called from the main thread.
        """
        token = cls()
        for signum in (signal.SIGTERM, signal.SIGINT):
            token._previous[signum] = signal.signal(signum, token._handle)
        return token

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _handle(self, signum: int, _frame: object) -> None:
        self.cancel(signal.Signals(signum).name)

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.warning("Received %s, stopping readiness evaluation", reason)

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def log_exit(self) -> None:
        elapsed = time.time() - self._start_ts
        logger.info(
            "Readiness run exiting after %.1fs (signal=%s)",
            elapsed,
            self._reason or "none",
        )
