import click

from collections import namedtuple


Summary = namedtuple("Summary", "min max mean mdev")


class pingStatistics:

    def __init__(self):
        self.samples = []

    @property
    def count(self):
        return len(self.samples)

    def add(self, rtt):
        self.samples.append(rtt)

    def summarize(self):
        """
        min/max/mean of all RTT samples, plus mdev: the mean squared
        deviation from the mean (a variance, no square root is taken).
        None while no sample has been added.
        """
        if self.count == 0:
            return None

        mean = sum(self.samples) / self.count
        mdev = sum((rtt - mean) * (rtt - mean) for rtt in self.samples) / self.count
        return Summary(min(self.samples), max(self.samples), mean, mdev)

    def dump(self, hostname, transmitted, received, elapsed):
        if transmitted:
            # fraction, not percent, even though a '%' is printed
            loss = float(transmitted - received) / transmitted
        else:
            loss = float("nan")

        click.echo("--- %s ping statistics ---" % hostname)
        click.echo("%d packets transmitted, %d received, %.2f%% packet loss, time %dms" % (
            transmitted, received, loss, int(elapsed * 1000)))

        summary = self.summarize()
        if summary is not None:
            click.echo("rtt min/avg/max/mdev = %.3f/%.3f/%.3f/%.3f ms" % (
                summary.min, summary.mean, summary.max, summary.mdev))
        else:
            click.echo("no statistics available (no replies)", err=True)
        return summary
