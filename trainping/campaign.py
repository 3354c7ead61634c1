import enum
import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

import click

from trainping.config import Policy
from trainping.constants import ICMP_HEADER, IP_HEADER, ECHO_TTL
from trainping.events import EventQueue, Reply, Idle, EngineDone
from trainping.export import SequenceExport, ExportError
from trainping.statistics import pingStatistics, Summary
from trainping.tracker import ReplyTracker
from trainping.utils import now


import logging
logger = logging.getLogger("trainping")


class State(enum.Enum):
    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


@dataclass
class CampaignResult:
    policy: Policy
    transmitted: int
    received: int
    sent: int
    unreachable: int
    elapsed: float
    summary: Optional[Summary]
    interrupted: bool = False
    error: Optional[BaseException] = None


@contextmanager
def interrupt_scope(handler, signums=(signal.SIGINT, signal.SIGTERM)):
    """
    Route SIGINT/SIGTERM to handler() for the duration of the block and put
    the previous handlers back on every exit path. Signals can only be
    caught from the main thread, elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = {}
    try:
        for signum in signums:
            previous[signum] = signal.signal(signum, lambda s, f: handler())
        yield
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


class BoundedCycles:
    """
    One reply slot per target, reported at every cycle boundary. The run is
    over once `count` cycles were accounted for.
    """

    kind = Policy.BOUNDED_CYCLES

    def __init__(self, campaign):
        self.campaign = campaign
        self.count = campaign.config.count
        self.tracker = ReplyTracker([campaign.config.address])
        self.sent = 0
        self.received = 0
        self.unreachable = 0

    def complete(self):
        return self.sent >= self.count

    def on_reply(self, reply):
        self.received += 1
        self.campaign.stats.add(reply.rtt)
        self.tracker.record(reply.address, reply)
        self.campaign.export.record(reply.sequence, reply.rtt)
        return False

    def on_idle(self):
        for target, reply in self.tracker.drain():
            if reply is None:
                self.campaign.echo("%s : unreachable" % target)
                self.unreachable += 1
            else:
                # sequence numbers are shown 1-based in this mode
                self.campaign.echo_reply(target, reply.sequence + 1, reply.rtt)
            self.sent += 1
        return self.complete()

    @property
    def transmitted(self):
        return self.sent


class TrainCapture:
    """
    Every reply is printed as it arrives; cycle boundaries only detect empty
    trains and decide termination.
    """

    kind = Policy.TRAIN_CAPTURE

    def __init__(self, campaign):
        self.campaign = campaign
        self.count = campaign.config.count
        self.train_size = campaign.config.train_size
        self.sent = self.train_size
        self.received = 0
        self.crec = 0
        self.unreachable = 0

    def complete(self):
        return False

    def reached(self):
        # NOTE: integer divisions; a train with a lost reply keeps
        # received // train_size from ever matching count
        engine = self.campaign.engine
        return (engine.sent // self.train_size >= self.count
                and self.received // self.train_size == self.count)

    def on_reply(self, reply):
        self.campaign.echo_reply(reply.address, reply.sequence, reply.rtt)
        self.campaign.stats.add(reply.rtt)
        self.received += 1
        self.crec += 1
        self.campaign.export.record(reply.sequence, reply.rtt)
        return self.reached()

    def on_idle(self):
        if self.reached():
            return True
        self.sent += self.train_size
        if self.crec == 0:
            self.campaign.echo("%s : unreachable" % self.campaign.config.hostname)
            self.unreachable += 1
        self.crec = 0
        return False

    @property
    def transmitted(self):
        return self.campaign.engine.sent


POLICIES = {
    Policy.BOUNDED_CYCLES: BoundedCycles,
    Policy.TRAIN_CAPTURE: TrainCapture,
}


class Campaign:
    """
    Drives one measurement run: starts the engine, handles its events one
    at a time until the policy, the engine or the operator ends the run, then
    stops the engine, prints the report and, when config.export is set,
    writes the sequence/RTT export.

    The engine is configured here and must not have been started yet.
    """

    def __init__(self, engine, config, echo=click.echo):
        self.engine = engine
        self.config = config
        self.echo = echo
        self.state = State.STARTING
        self.events = EventQueue(source=engine.pump)
        self.stats = pingStatistics()
        self.export = SequenceExport()
        self.policy = POLICIES[config.policy](self)
        self.error = None

        engine.configure(config)
        engine.on_reply = lambda address, rtt, seq: self.events.put(Reply(address, rtt, seq))
        engine.on_idle = lambda: self.events.put(Idle())
        engine.on_done = lambda error: self.events.put(EngineDone(error))

    def interrupt(self):
        self.events.interrupt()

    def echo_reply(self, address, sequence, rtt):
        self.echo("%d bytes from %s: icmp_seq=%d ttl=%d time=%.2f ms" % (
            self.engine.size + ICMP_HEADER, address, sequence, ECHO_TTL, rtt))

    def run(self):
        cfg = self.config
        logger.info("campaign to %s (%s): policy=%s count=%d train=%d",
                    cfg.hostname, cfg.address, self.policy.kind.value, cfg.count, cfg.train_size)
        self.echo("PING %s (%s) %d(%d) bytes of data." % (
            cfg.hostname, cfg.address, self.engine.size, self.engine.size + ICMP_HEADER + IP_HEADER))

        start = now()
        try:
            with interrupt_scope(self.interrupt):
                self.engine.start()
                self.state = State.RUNNING
                self.loop()
        finally:
            self.state = State.DRAINING
            self.engine.stop()

        elapsed = now() - start
        summary = self.stats.dump(cfg.hostname, self.policy.transmitted, self.policy.received, elapsed)
        try:
            self.finish()
        finally:
            self.state = State.TERMINATED

        return CampaignResult(
            policy=self.policy.kind,
            transmitted=self.policy.transmitted,
            received=self.policy.received,
            sent=self.policy.sent,
            unreachable=self.policy.unreachable,
            elapsed=elapsed,
            summary=summary,
            interrupted=self.events.interrupted,
            error=self.error)

    def finish(self):
        if not self.config.export:
            return
        try:
            self.export.flush(self.config.export_path)
        except OSError as e:
            raise ExportError(self.config.export_path, e) from e

    def loop(self):
        while not self.policy.complete():
            event = self.events.get()
            if event is None:
                logger.info("interrupted")
                return

            if isinstance(event, EngineDone):
                if event.error is not None:
                    self.error = event.error
                    self.echo("Ping failed: %s" % event.error)
                logger.info("engine finished")
                return
            if isinstance(event, Reply):
                done = self.policy.on_reply(event)
            else:
                done = self.policy.on_idle()
            if done:
                return
