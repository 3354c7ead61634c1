import time
import socket


def resolve_addr(host):
    """ Resolve a hostname to a single IP address.
        Works with:
            IPv6 address or name (any ':' in host, brackets allowed);
            IPv4 address or name.
        Returns (address, ipversion). Raises socket.gaierror.
    """
    if ':' in host:
        family, ipversion = socket.AF_INET6, 6
        host = host.strip('[]')
    else:
        family, ipversion = socket.AF_INET, 4

    addresses = socket.getaddrinfo(host, None, family)
    return addresses[0][4][0], ipversion


def parse_pattern(value):
    """
    Parse a comma separated list of payload sizes ("56,512,1400").
    Raises ValueError on anything that is not a non-negative integer.
    """
    if not value:
        return ()
    sizes = []
    for item in value.split(','):
        size = int(item)
        if size < 0:
            raise ValueError("negative size in pattern: %d" % size)
        sizes.append(size)
    return tuple(sizes)


def now():
    return time.time()


def format_time(ms):
    if abs(ms) > 60000:
        return "%7.1fmin" % float(ms / 60000)
    if abs(ms) > 10000:
        return "%7.1fsec" % float(ms / 1000)
    if abs(ms) > 1000:
        return "%7.2fsec" % float(ms / 1000)
    if abs(ms) > 1:
        return "%8.2fms" % ms
    return "%8dus" % int(ms * 1000)
