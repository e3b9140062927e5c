"""Reference host: one dedicated worker thread owns the execution context."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from .host import HostBridge

logger = logging.getLogger(__name__)


def _default_context() -> Any:
    return {}


class ThreadedHost:
    """Drains a HostBridge on a private thread whenever it is signalled.

    ``context_provider`` is called on the host thread before each drain and
    returns the active host context, or None when nothing is open.
    """

    def __init__(
        self,
        bridge: HostBridge,
        context_provider: Callable[[], Any] = _default_context,
        name: str = "tether-host",
    ) -> None:
        self._bridge = bridge
        self._context_provider = context_provider
        self._name = name
        self._wake = threading.Event()
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopping.is_set()

    @property
    def thread_id(self) -> int | None:
        return self._thread.ident if self._thread else None

    def start(self) -> ThreadedHost:
        if self.running:
            return self
        self._stopping.clear()
        self._wake.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        self._bridge.attach(self)
        logger.debug("Host thread %s started", self._name)
        return self

    def stop(self, timeout: float = 5.0) -> None:
        self._bridge.detach(self)
        self._stopping.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Host thread %s did not stop within %.1fs", self._name, timeout)
        self._thread = None

    def request_execution(self) -> bool:
        if not self.running:
            return False
        self._wake.set()
        return True

    def _run(self) -> None:
        while True:
            self._wake.wait()
            self._wake.clear()
            if self._stopping.is_set():
                break
            try:
                context = self._context_provider()
            except Exception:
                logger.exception("Host context provider failed")
                context = None
            try:
                self._bridge.drain(context)
            except Exception:
                logger.exception("Host drain failed")

    def __enter__(self) -> ThreadedHost:
        return self.start()

    def __exit__(self, *exc: object) -> None:
        self.stop()
