import logging
logger = logging.getLogger("trainping")


class ExportError(Exception):
    """The export file could not be written."""

    def __init__(self, path, reason):
        Exception.__init__(self, "cannot create %s: %s" % (path, reason))
        self.path = path
        self.reason = reason


class SequenceExport:
    """
    Sequence number -> RTT (msec) for every answered probe. A sequence that
    is recorded twice keeps the last RTT.
    """

    def __init__(self):
        self.table = {}

    def __len__(self):
        return len(self.table)

    def record(self, sequence, rtt):
        self.table[sequence] = rtt

    def items(self):
        return sorted(self.table.items())

    def flush(self, path):
        with open(path, "w") as f:
            for sequence, rtt in self.items():
                f.write("%d\t%.2f\n" % (sequence, rtt))
        logger.info("%d sequences written to %s", len(self.table), path)
