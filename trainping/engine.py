from abc import ABC, abstractmethod

from trainping.constants import PAYLOAD_DEFAULT

import logging
logger = logging.getLogger("trainping")


class ProbeEngine(ABC):
    """
    Transmits probes toward the configured target and reports back through
    three callbacks, all of which the consumer assigns before start():

        on_reply(address, rtt_ms, sequence)  once per echo actually received
        on_idle()                            once per completed train/cycle
        on_done(error)                       engine stopped on its own

    `sent` counts every probe transmitted so far and `size` is the nominal
    payload size in bytes.

    Engines that run on their own thread leave `pump` as None. Others provide
    pump(), which the consumer calls when it has no event left to handle.
    """

    pump = None

    def __init__(self):
        self.on_reply = None
        self.on_idle = None
        self.on_done = None
        self.sent = 0
        self.size = PAYLOAD_DEFAULT
        self.config = None

    def configure(self, config):
        self.config = config
        if config.pattern:
            self.size = config.pattern[0]

    @abstractmethod
    def start(self):
        """Begin transmitting in the background. Must not block."""
        raise NotImplementedError

    @abstractmethod
    def stop(self):
        """Release all resources. Safe to call more than once."""
        raise NotImplementedError

    def _emit_reply(self, address, rtt, sequence):
        if self.on_reply is not None:
            self.on_reply(address, rtt, sequence)

    def _emit_idle(self):
        if self.on_idle is not None:
            self.on_idle()

    def _emit_done(self, error=None):
        if error is not None:
            logger.debug("engine terminated: %s", error)
        if self.on_done is not None:
            self.on_done(error)
