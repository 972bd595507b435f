"""
Decoders for the two PowerDNS control socket reply formats.

pdns_server answers ``SHOW *`` with ``name=value`` pairs separated by commas:

    corrupt-packets=0,deferred-cache-inserts=0,latency=0,...,udp6-queries=0,

pdns_recursor answers ``get name1 name2 ...`` with the values only, one per
requested name, in request order. Names must therefore be taken from the
command that produced the reply.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple


class RawStat(NamedTuple):
    """Brief: One undecoded (name, value) pair taken from a reply."""

    name: str
    value: str


def decode_comma_pairs(reply: str) -> Iterator[RawStat]:
    """
    Yield (name, value) pairs from a pdns_server reply.

    Inputs:
        reply: Reply text, e.g. "a=1,b=2,".

    Outputs:
        Iterator of RawStat in reply order.

    Tokens without '=' mark the end of usable data and stop decoding; tokens
    with an empty value are skipped.

    Example:
        >>> list(decode_comma_pairs("a=1,b=,c=3,"))
        [RawStat(name='a', value='1'), RawStat(name='c', value='3')]
        >>> list(decode_comma_pairs("a=1,garbage,b=2"))
        [RawStat(name='a', value='1')]
    """
    for token in reply.split(","):
        if not token:
            continue
        name, sep, value = token.partition("=")
        if not sep:
            break
        if not value:
            continue
        yield RawStat(name, value)


def decode_positional(command: str, reply: str) -> Iterator[RawStat]:
    """
    Pair the names requested by a recursor command with the values returned.

    Inputs:
        command: The exact command that was sent, e.g. "get foo bar".
        reply: Whitespace separated values returned for that command.

    Outputs:
        Iterator of RawStat in request order, stopping at whichever of the
        two sequences runs out first.

    Example:
        >>> list(decode_positional("get foo bar baz", "1 2"))
        [RawStat(name='foo', value='1'), RawStat(name='bar', value='2')]
    """
    names = command.split()[1:]
    for name, value in zip(names, reply.split()):
        yield RawStat(name, value)
