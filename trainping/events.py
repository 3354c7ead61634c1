import queue
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Reply:
    address: str
    rtt: float      # msec
    sequence: int


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class EngineDone:
    error: Optional[BaseException] = None


class _Wakeup:
    pass


class EventQueue:
    """
    Single-reader multiplexer for the engine callbacks and the operator
    interrupt.

    Engine threads push Reply/Idle/EngineDone items; the campaign pops them
    one at a time. An interrupt sets a flag and pushes a wake-up item, and the
    flag is consulted after every dequeue, so it overrides anything still
    queued. SimpleQueue.put is reentrant, which makes interrupt() safe to call
    from a signal handler.

    source, when given, is called whenever the queue runs dry so that an
    engine without a thread of its own can produce its next event.
    """

    def __init__(self, source=None):
        self._queue = queue.SimpleQueue()
        self._interrupted = threading.Event()
        self._source = source

    def put(self, event):
        self._queue.put(event)

    def interrupt(self):
        self._interrupted.set()
        self._queue.put(_Wakeup())

    @property
    def interrupted(self):
        return self._interrupted.is_set()

    def get(self):
        """Block until the next event; None once interrupted."""
        if self.interrupted:
            return None
        if self._source is not None and self._queue.empty():
            self._source()
        event = self._queue.get()
        if self.interrupted or isinstance(event, _Wakeup):
            return None
        return event
