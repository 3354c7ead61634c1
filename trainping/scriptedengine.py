from trainping.engine import ProbeEngine
from trainping.events import Reply, Idle, EngineDone


class ScriptedEngine(ProbeEngine):
    """
    script: list of Reply / Idle / EngineDone items, or callables, replayed
    in order. Nothing is emitted by start(); every pump() emits the next
    event, together with the callables around it, so `sent` only moves as
    fast as the consumer handles events. Every Idle accounts for one train
    worth of transmitted probes. An exhausted script ends like an engine
    finishing on its own.
    """

    def __init__(self, script=()):
        ProbeEngine.__init__(self)
        self.script = list(script)
        self.train_size = 1
        self.started = False
        self.stopped = 0

    def configure(self, config):
        ProbeEngine.configure(self, config)
        self.train_size = config.train_size

    def start(self):
        self.started = True

    def stop(self):
        self.stopped += 1

    def pump(self):
        if not self.started:
            return
        self._run_callables()
        if not self.script:
            self._emit_done()
            return

        step = self.script.pop(0)
        if isinstance(step, Reply):
            self._emit_reply(step.address, step.rtt, step.sequence)
        elif isinstance(step, Idle):
            self.sent += self.train_size
            self._emit_idle()
        elif isinstance(step, EngineDone):
            self._emit_done(step.error)
        else:
            raise TypeError("unsupported script step: %r" % (step,))
        self._run_callables()

    def _run_callables(self):
        while self.script and callable(self.script[0]):
            self.script.pop(0)()
