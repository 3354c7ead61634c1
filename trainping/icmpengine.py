import random
import threading

from icmplib import ICMPv4Socket, ICMPv6Socket, ICMPRequest, ICMPLibError, TimeoutExceeded

from trainping.engine import ProbeEngine
from trainping.constants import TRANSPORT_RAW
from trainping.utils import now, format_time


import logging
logger = logging.getLogger("trainping")

ECHO_REPLY_TYPES = (0, 129)   # ICMPv4, ICMPv6
POLL_SLICE = 0.1              # sec, bounds how long stop() may wait


class IcmpEngine(ProbeEngine):
    """
    Probe engine on top of icmplib: icmplib builds the echo requests and owns
    the sockets, this class only schedules trains and turns replies into
    callbacks. Runs in a background thread until stopped or until the socket
    fails.
    """

    def __init__(self):
        ProbeEngine.__init__(self)
        self.running = False
        self.privileged = True
        self.identifier = random.randint(0, 0xffff)
        self.sizes = [self.size]
        self.sequence = 0
        self.pending = {}
        self.thread = None

    def configure(self, config):
        ProbeEngine.configure(self, config)
        self.privileged = config.transport == TRANSPORT_RAW
        if config.pattern:
            self.sizes = list(config.pattern)

    def start(self):
        if self.config is None:
            raise RuntimeError("engine started before configure()")
        self.running = True
        self.thread = threading.Thread(target=self.run, name="trainping-engine", daemon=True)
        self.thread.start()

    def stop(self):
        self.running = False
        thread, self.thread = self.thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def open_socket(self):
        if self.config.ipversion == 6:
            return ICMPv6Socket(address=self.config.source, privileged=self.privileged)
        return ICMPv4Socket(address=self.config.source, privileged=self.privileged)

    def run(self):
        try:
            sock = self.open_socket()
        except ICMPLibError as e:
            self.running = False
            self._emit_done(e)
            return

        error = None
        try:
            while self.running:
                self.run_cycle(sock)
        except (ICMPLibError, OSError) as e:
            logger.error("probing %s failed: %s", self.config.address, e)
            error = e
        finally:
            sock.close()

        if self.running:
            # ended on its own, not through stop()
            self.running = False
            self._emit_done(error)

    def cycle_length(self):
        cfg = self.config
        if cfg.rate > 0:
            gap = random.expovariate(cfg.rate / 60000.0)
        elif cfg.gamma > 0:
            gap = random.uniform(cfg.interval - cfg.gamma, cfg.interval + cfg.gamma)
        else:
            gap = cfg.interval
        span = (cfg.train_size - 1) * cfg.train_interval
        return max(gap, span, 0) / 1000.0

    def run_cycle(self, sock):
        cfg = self.config
        start = now()
        deadline = start + self.cycle_length()
        schedule = [start + i * cfg.train_interval / 1000.0 for i in range(cfg.train_size)]

        while self.running:
            t = now()
            while schedule and schedule[0] <= t:
                schedule.pop(0)
                self.send(sock)
            if t >= deadline:
                break
            wake = min(schedule[0], deadline) if schedule else deadline
            self.receive(sock, min(max(wake - t, 0.001), POLL_SLICE))

        if self.running:
            # whatever is still outstanding is lost for this cycle
            self.pending.clear()
            self._emit_idle()

    def send(self, sock):
        seq = self.sequence
        wire_seq = seq & 0xffff
        size = self.sizes[seq % len(self.sizes)]

        request = ICMPRequest(destination=self.config.address, id=self.identifier,
                              sequence=wire_seq, payload_size=size)
        sock.send(request)
        self.pending[wire_seq] = (seq, now())
        self.sequence += 1
        self.sent += 1
        logger.debug("Sent to %s [seq=%d size=%d]", self.config.address, seq, size)

    def receive(self, sock, timeout):
        try:
            reply = sock.receive(None, timeout)
        except TimeoutExceeded:
            return

        if reply.sequence not in self.pending:
            return
        if self.privileged and reply.id != self.identifier:
            return
        if reply.type not in ECHO_REPLY_TYPES:
            logger.info("ICMP type %d code %d from %s [seq=%d]",
                        reply.type, reply.code, reply.source, reply.sequence)
            return

        seq, sent_at = self.pending.pop(reply.sequence)
        rtt = max(0, 1000 * (reply.time - sent_at))
        logger.debug("Reply from %s [seq=%d rtt=%s]", reply.source, seq, format_time(rtt).strip())
        self._emit_reply(reply.source, rtt, seq)
