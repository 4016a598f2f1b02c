# Overview: Fire-and-forget delivery of audit events off the request path.

from __future__ import annotations

import atexit
import queue
import threading
from typing import Callable, Optional

_STOP = object()


class AuditDispatcher:
    """
    Hands audit payloads to a writer callable.

    Async mode: payloads go into an in-process queue drained by a single
    daemon thread, each write inside a fresh application context.
    Sync mode: the writer runs inline. Either way a failing write is
    logged and dropped; publish() never raises.
    """

    def __init__(self):
        self._app = None
        self._writer: Optional[Callable[[dict], None]] = None
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._async = False

    def init_app(self, app, writer: Callable[[dict], None]) -> None:
        self._app = app
        self._writer = writer
        self._async = bool(app.config.get("AUDIT_LOG_ASYNC", True))
        app.extensions["audit_dispatcher"] = self
        if self._async:
            self._start()

    def _start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name="audit-log-writer")
        self._thread.start()
        atexit.register(self.stop)

    def publish(self, payload: dict) -> None:
        if self._writer is None:
            return
        if self._async:
            self._queue.put(payload)
        else:
            self._deliver(payload)

    def _deliver(self, payload: dict) -> None:
        try:
            self._writer(payload)
        except Exception:
            self._app.logger.exception("Failed to write operation log entry")

    def _run(self) -> None:
        while True:
            payload = self._queue.get()
            try:
                if payload is _STOP:
                    return
                with self._app.app_context():
                    self._deliver(payload)
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued payload has been handled."""
        if self._async:
            self._queue.join()

    def stop(self) -> None:
        if self._thread is None or not self._thread.is_alive():
            return
        self._queue.put(_STOP)
        self._thread.join(timeout=5)
        self._thread = None
