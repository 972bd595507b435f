"""
Static mapping from PowerDNS statistic names to canonical metric identities.

The table is an ordered tuple and lookups return the first exact match, so
entry order decides precedence when the authoritative server and the recursor
happen to emit the same raw name. Server entries come first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class LookupEntry:
    """
    Single row of the lookup table.

    Inputs:
      - raw_name: Statistic name as emitted by pdns_server or pdns_recursor.
      - metric_kind: Canonical metric kind (a types.db entry such as
        'dns_question' or 'latency').
      - sub_label: Optional type instance distinguishing several statistics
        that share one metric kind.

    Outputs:
      - Immutable LookupEntry instance.
    """

    raw_name: str
    metric_kind: str
    sub_label: Optional[str] = None


LOOKUP_TABLE: Tuple[LookupEntry, ...] = (
    # Authoritative server: questions
    LookupEntry("recursing-questions", "dns_question", "recurse"),
    LookupEntry("tcp-queries", "dns_question", "tcp"),
    LookupEntry("udp-queries", "dns_question", "udp"),
    # Authoritative server: answers
    LookupEntry("recursing-answers", "dns_answer", "recurse"),
    LookupEntry("tcp-answers", "dns_answer", "tcp"),
    LookupEntry("udp-answers", "dns_answer", "udp"),
    # Authoritative server: caches
    LookupEntry("packetcache-hit", "cache_result", "packet-hit"),
    LookupEntry("packetcache-miss", "cache_result", "packet-miss"),
    LookupEntry("packetcache-size", "cache_size", "packet"),
    LookupEntry("query-cache-hit", "cache_result", "query-hit"),
    LookupEntry("query-cache-miss", "cache_result", "query-miss"),
    LookupEntry("latency", "latency", None),
    # Authoritative server: everything else
    LookupEntry("corrupt-packets", "io_packets", "corrupt"),
    LookupEntry("deferred-cache-inserts", "counter", "cache-deferred_insert"),
    LookupEntry("deferred-cache-lookup", "counter", "cache-deferred_lookup"),
    LookupEntry("qsize-a", "cache_size", "answers"),
    LookupEntry("qsize-q", "cache_size", "questions"),
    LookupEntry("servfail-packets", "io_packets", "servfail"),
    LookupEntry("timedout-packets", "io_packets", "timeout"),
    LookupEntry("udp4-answers", "dns_answer", "udp4"),
    LookupEntry("udp4-queries", "dns_question", "queries-udp4"),
    LookupEntry("udp6-answers", "dns_answer", "udp6"),
    LookupEntry("udp6-queries", "dns_question", "queries-udp6"),
    # Recursor: answers by rcode
    LookupEntry("noerror-answers", "dns_rcode", "NOERROR"),
    LookupEntry("nxdomain-answers", "dns_rcode", "NXDOMAIN"),
    LookupEntry("servfail-answers", "dns_rcode", "SERVFAIL"),
    # Recursor: CPU time in milliseconds
    LookupEntry("sys-msec", "cpu", "system"),
    LookupEntry("user-msec", "cpu", "user"),
    # Recursor: question-to-answer latency
    LookupEntry("qa-latency", "latency", None),
    # Recursor: cache
    LookupEntry("cache-entries", "cache_size", None),
    LookupEntry("cache-hits", "cache_result", "hit"),
    LookupEntry("cache-misses", "cache_result", "miss"),
    # Recursor: all end-user questions
    LookupEntry("questions", "dns_qtype", "total"),
)


def resolve(raw_name: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Resolve a raw statistic name to (metric_kind, sub_label).

    Inputs:
      - raw_name: Statistic name taken from a control socket reply.

    Outputs:
      - (metric_kind, sub_label) for the first matching entry, or None when
        the statistic is not collected.

    Example:
      >>> resolve("questions")
      ('dns_qtype', 'total')
      >>> resolve("unknown-stat-xyz") is None
      True
    """
    for entry in LOOKUP_TABLE:
        if entry.raw_name == raw_name:
            return entry.metric_kind, entry.sub_label
    return None
