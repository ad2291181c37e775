"""Background image loading with callbacks delivered on the caller's thread."""

from __future__ import annotations

import logging
import threading
from collections import deque
from functools import partial
from typing import Any, Callable

log = logging.getLogger(__name__)

LoadCallback = Callable[[str, Any], None]


class AsyncTextureLoader:
    """Loads images on a worker thread and queues their callbacks.

    Callbacks never run on the worker; ``dispatch_main_callbacks`` runs them
    on whichever thread calls it. Requests for a path that is already queued
    are dropped.
    """

    def __init__(self, load_image: Callable[[str], Any]) -> None:
        self._load_image = load_image
        self._queue: deque[tuple[str, LoadCallback]] = deque()
        self._pending: set[str] = set()
        self._condition = threading.Condition()
        self._running = False
        self._thread: threading.Thread | None = None
        self._callbacks: deque[Callable[[], None]] = deque()
        self._callback_lock = threading.Lock()

    def request_load(self, path: str, callback: LoadCallback) -> None:
        with self._condition:
            if path in self._pending:
                return
            self._queue.append((path, callback))
            self._pending.add(path)
            self._condition.notify()

    def start(self) -> None:
        with self._condition:
            if self._thread is not None and self._thread.is_alive():
                return
            self._running = True
        self._thread = threading.Thread(target=self._run, name="tile-loader", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        with self._condition:
            self._running = False
            self._condition.notify_all()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join()

    def dispatch_main_callbacks(self, max_count: int) -> int:
        """Run at most ``max_count`` finished callbacks; return how many ran."""
        done = 0
        while done < max_count:
            with self._callback_lock:
                if not self._callbacks:
                    break
                callback = self._callbacks.popleft()
            callback()
            done += 1
        return done

    def __enter__(self) -> AsyncTextureLoader:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _run(self) -> None:
        while True:
            with self._condition:
                self._condition.wait_for(lambda: self._queue or not self._running)
                if not self._running:
                    break
                path, callback = self._queue.popleft()
                self._pending.discard(path)
            try:
                image = self._load_image(path)
            except Exception:
                log.exception("failed to load: %s", path)
                continue
            if image is None:
                log.error("failed to load: %s", path)
                continue
            with self._callback_lock:
                self._callbacks.append(partial(callback, path, image))