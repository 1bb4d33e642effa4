import logging
import queue
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    One worker thread draining one queue. Every handler that touches the
    session is posted here, so handlers never run concurrently.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[Optional[tuple]]" = queue.Queue(maxsize=maxsize)
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._thread = threading.Thread(target=self._loop, name="dispatcher", daemon=True)
        self._thread.start()

    def post(self, fn: Callable, *args):
        self._queue.put((fn, args))

    def join(self):
        """Block until every posted handler has run."""
        self._queue.join()

    def stop(self):
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join()
        self._thread = None

    def _loop(self):
        while True:
            task = self._queue.get()
            try:
                if task is None:
                    break
                fn, args = task
                fn(*args)
            except Exception:
                logger.exception("Handler failed")
            finally:
                self._queue.task_done()
