"""
Brief: Tests for the comma-pair and positional reply decoders.

Inputs:
  - None

Outputs:
  - None
"""

from pdnsstats.decoders import RawStat, decode_comma_pairs, decode_positional


def _pairs(it):
    return [tuple(p) for p in it]


def test_comma_pairs_basic():
    assert _pairs(decode_comma_pairs("a=1,b=2,c=3")) == [
        ("a", "1"),
        ("b", "2"),
        ("c", "3"),
    ]


def test_comma_pairs_trailing_comma():
    assert _pairs(decode_comma_pairs("a=1,")) == [("a", "1")]


def test_comma_pairs_stops_at_token_without_equals():
    assert _pairs(decode_comma_pairs("a=1,garbage,b=2")) == [("a", "1")]


def test_comma_pairs_skips_empty_value():
    assert _pairs(decode_comma_pairs("a=,b=2")) == [("b", "2")]


def test_comma_pairs_splits_on_first_equals_only():
    assert _pairs(decode_comma_pairs("a=b=c")) == [("a", "b=c")]


def test_comma_pairs_empty_reply_and_empty_tokens():
    assert _pairs(decode_comma_pairs("")) == []
    assert _pairs(decode_comma_pairs(",,a=1,,b=2,")) == [("a", "1"), ("b", "2")]


def test_comma_pairs_real_server_reply():
    reply = (
        "corrupt-packets=0,deferred-cache-inserts=0,latency=12,"
        "udp-queries=1234,udp6-queries=5,"
    )
    stats = list(decode_comma_pairs(reply))
    assert stats[2] == RawStat("latency", "12")
    assert [s.name for s in stats][-1] == "udp6-queries"
    assert len(stats) == 5


def test_positional_pairs_names_from_command():
    assert _pairs(decode_positional("get foo bar baz", "1 2 3")) == [
        ("foo", "1"),
        ("bar", "2"),
        ("baz", "3"),
    ]


def test_positional_short_reply():
    assert _pairs(decode_positional("get foo bar baz", "1 2")) == [
        ("foo", "1"),
        ("bar", "2"),
    ]


def test_positional_long_reply_stops_at_names():
    assert _pairs(decode_positional("get foo", "1 2 3")) == [("foo", "1")]


def test_positional_mixed_whitespace():
    reply = "10\t20\r\n30\n"
    assert _pairs(decode_positional("get  a\tb c", reply)) == [
        ("a", "10"),
        ("b", "20"),
        ("c", "30"),
    ]


def test_positional_verb_only_or_empty():
    assert _pairs(decode_positional("get", "1 2")) == []
    assert _pairs(decode_positional("", "1")) == []
    assert _pairs(decode_positional("get a", "")) == []
