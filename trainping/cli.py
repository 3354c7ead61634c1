#!/usr/bin/env python3

from trainping.campaign import Campaign
from trainping.config import CampaignConfig
from trainping.constants import (COUNT_DEFAULT, INTERVAL_DEFAULT, TRAIN_SIZE_DEFAULT,
                                 TRAIN_INTERVAL_DEFAULT, GAMMA_DEFAULT, RATE_DEFAULT,
                                 TRANSPORT_RAW, TRANSPORT_DATAGRAM, EXPORT_FILENAME)
from trainping.export import ExportError
from trainping.icmpengine import IcmpEngine
from trainping.utils import resolve_addr, parse_pattern

import click
import click_log
import functools
import socket

from logging.handlers import TimedRotatingFileHandler


import logging
logger = logging.getLogger("trainping")
click_logger = click_log.basic_config(logger)

# callable returning a fresh, unconfigured ProbeEngine
engine_factory = IcmpEngine


class AliasedGroup(click.Group):

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        matches = [x for x in self.list_commands(ctx)
                   if x.startswith(cmd_name)]
        if not matches:
            return None
        elif len(matches) == 1:
            return click.Group.get_command(self, ctx, matches[0])
        ctx.fail('Please be more specific \n%s' % '\n'.join(sorted(matches)))


def usage_error(ctx, message=None):
    """Print usage to stderr and leave with exit code 1."""
    if message:
        click.echo("Error: %s" % message, err=True)
    click.echo(ctx.get_help(), err=True)
    ctx.exit(1)


def probe_params(func):
    @click.argument('hostname', metavar='hostname', required=False)
    @click.argument('source', metavar='[source]', required=False)
    @click.option('-u', '--udp', is_flag=True, help='use non-privileged datagram ICMP sockets')
    @click.option('-d', '--debug', is_flag=True, help='log every probe sent and received')
    @click.option('-c', '--count', metavar='probes', default=COUNT_DEFAULT, type=click.IntRange(0, None),
                  help='number of cycles to measure')
    @click.option('-i', '--interval', metavar='msec', default=INTERVAL_DEFAULT, type=click.IntRange(1, None),
                  help='average spacing between trains')
    @click.option('-t', '--train-size', metavar='probes', default=TRAIN_SIZE_DEFAULT, type=click.IntRange(1, None),
                  help='number of probes in a single train')
    @click.option('-I', '--train-interval', metavar='msec', default=TRAIN_INTERVAL_DEFAULT,
                  type=click.IntRange(0, None), help='spacing between probes within a train')
    @click.option('-g', '--gamma', metavar='msec', default=GAMMA_DEFAULT, type=click.IntRange(0, None),
                  help='bound of the uniform jitter added to the train spacing')
    @click.option('-s', '--source', 'source_address', metavar='address', default=None, help='source address')
    @click.option('-p', '--pattern', metavar='sizes', default='',
                  help='payload sizes to cycle through, comma separated (no spaces)')
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)
    return wrapper


def build_config(ctx, hostname, source, udp, debug, count, interval, train_size,
                 train_interval, gamma, source_address, pattern, **extra):
    if not hostname:
        usage_error(ctx)

    try:
        sizes = parse_pattern(pattern)
    except ValueError:
        usage_error(ctx, "invalid size pattern '%s'" % pattern)

    try:
        address, ipversion = resolve_addr(hostname)
    except (socket.gaierror, UnicodeError) as e:
        click.echo("%s: %s" % (hostname, e), err=True)
        ctx.exit(1)

    if debug:
        logger.setLevel(logging.DEBUG)

    return CampaignConfig(
        hostname=hostname,
        address=address,
        ipversion=ipversion,
        source=source_address or source,
        transport=TRANSPORT_DATAGRAM if udp else TRANSPORT_RAW,
        count=count,
        interval=interval,
        train_size=train_size,
        train_interval=train_interval,
        gamma=gamma,
        pattern=sizes,
        debug=debug,
        **extra)


def run_campaign(config):
    campaign = Campaign(engine_factory(), config)
    try:
        return campaign.run()
    except ExportError as e:
        logger.critical("%s", e)
        raise click.ClickException(str(e))


@click.group(cls=AliasedGroup)
@click_log.simple_verbosity_option(logger)
@click.option("-q", "--quiet", "quiet", is_flag=True)
@click.option("-l", "--logfile", "logfile", type=click.Path())
def cli(quiet, logfile):
    """Latency measurement campaigns using trains of ICMP echo probes."""

    loglevel = logger.level
    if quiet:
        logger.setLevel(logging.CRITICAL)

    if loglevel >= logging.DEBUG and logfile:
        file_handler = TimedRotatingFileHandler(
            filename=logfile, when='midnight', backupCount=31)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        file_handler.setLevel(loglevel)
        logger.addHandler(file_handler)


@cli.command('ping')
@probe_params
@click.pass_context
def ping(ctx, **params):
    """Send <count> cycles of probes and report one line per cycle."""
    run_campaign(build_config(ctx, export=False, **params))


@cli.command('capture')
@probe_params
@click.option('-r', '--rate', metavar='events/min', default=RATE_DEFAULT, type=click.FloatRange(0, None),
              help='average number of trains per minute (exponential spacing, 0 = off)')
@click.option('-o', '--output', 'export_path', metavar='file', default=EXPORT_FILENAME, type=click.Path(),
              help='sequence/RTT export file, rewritten on every run')
@click.pass_context
def capture(ctx, rate, export_path, **params):
    """Send trains of probes, print every reply and export sequence/RTT pairs."""
    run_campaign(build_config(ctx, rate=rate, export_path=export_path, export=True, **params))


if __name__ == "__main__":
    cli()
