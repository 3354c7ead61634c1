class ReplyTracker:
    """
    One reply slot per target for the current cycle. A filled slot holds the
    last reply seen from that target since the previous drain().
    """

    def __init__(self, targets):
        self.slots = dict.fromkeys(targets)

    def __len__(self):
        return len(self.slots)

    def record(self, address, reply):
        if address in self.slots:
            self.slots[address] = reply

    def drain(self):
        """Return [(target, reply or None), ...] and empty every slot."""
        observations = list(self.slots.items())
        for target in self.slots:
            self.slots[target] = None
        return observations
