"""
Brief: Tests for the submission adapter and numeric prefix parsing.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import math

import pytest

from pdnsstats.dispatch.types_db import DataSource, MetricSchema
from pdnsstats.submit import Submitter, parse_float_prefix, parse_integer_prefix

from conftest import FakeDispatcher


def _submitter(dispatcher):
    return Submitter(dispatcher, clock=lambda: 1234.5, hostname="ns1")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("42", 42),
        ("  7", 7),
        ("-3", -3),
        ("+5", 5),
        ("0", 0),
        ("0x1f", 31),
        ("010", 8),
        ("089", 0),
        ("12abc", 12),
        ("0x", 0),
        ("N/A", None),
        ("", None),
        ("-", None),
    ],
)
def test_parse_integer_prefix(text, expected):
    assert parse_integer_prefix(text) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1.5", 1.5),
        ("2", 2.0),
        (".5", 0.5),
        ("3.", 3.0),
        ("1e3", 1000.0),
        ("1e", 1.0),
        ("-0.25ms", -0.25),
        ("N/A", None),
        ("", None),
    ],
)
def test_parse_float_prefix(text, expected):
    assert parse_float_prefix(text) == expected


def test_parse_float_prefix_inf_and_nan():
    assert parse_float_prefix("inf") == math.inf
    assert math.isnan(parse_float_prefix("NaN"))


def test_submit_counter_value(fake_dispatcher):
    sub = _submitter(fake_dispatcher)
    assert sub.submit("local", "udp-queries", "1234") is True

    (obs,) = fake_dispatcher.observations
    assert obs.time == 1234.5
    assert obs.host == "ns1"
    assert obs.plugin == "powerdns"
    assert obs.plugin_instance == "local"
    assert obs.metric_kind == "dns_question"
    assert obs.type_instance == "udp"
    assert obs.values == (1234,)
    assert isinstance(obs.values[0], int)
    assert obs.identifier == "ns1/powerdns-local/dns_question-udp"


def test_submit_gauge_value_without_sub_label(fake_dispatcher):
    sub = _submitter(fake_dispatcher)
    assert sub.submit("rec", "qa-latency", "1520.5") is True

    (obs,) = fake_dispatcher.observations
    assert obs.metric_kind == "latency"
    assert obs.type_instance is None
    assert obs.values == (1520.5,)
    assert obs.identifier == "ns1/powerdns-rec/latency"


def test_submit_unresolved_name_touches_nothing(fake_dispatcher):
    sub = _submitter(fake_dispatcher)
    assert sub.submit("rec", "unknown-stat-xyz", "1") is False
    assert fake_dispatcher.lookups == []
    assert fake_dispatcher.observations == []


def test_submit_non_numeric_gauge_is_dropped(fake_dispatcher, caplog):
    caplog.set_level(logging.ERROR)
    sub = _submitter(fake_dispatcher)
    assert sub.submit("local", "latency", "N/A") is False
    assert fake_dispatcher.observations == []
    assert "floating point" in caplog.text


def test_submit_non_numeric_counter_is_dropped(fake_dispatcher, caplog):
    caplog.set_level(logging.ERROR)
    sub = _submitter(fake_dispatcher)
    assert sub.submit("local", "udp-queries", "lots") is False
    assert fake_dispatcher.observations == []
    assert "integer" in caplog.text


def test_submit_unknown_schema_is_dropped(caplog):
    caplog.set_level(logging.ERROR)
    dispatcher = FakeDispatcher(schemas={})
    sub = _submitter(dispatcher)
    assert sub.submit("local", "udp-queries", "1") is False
    assert dispatcher.lookups == ["dns_question"]
    assert dispatcher.observations == []
    assert "dns_question" in caplog.text


def test_submit_arity_mismatch_is_dropped(fake_dispatcher, caplog):
    """
    Brief: io_packets has two data sources, so its statistics are rejected.

    Inputs:
      - corrupt-packets, which maps to io_packets

    Outputs:
      - None: Asserts drop and error log
    """
    caplog.set_level(logging.ERROR)
    sub = _submitter(fake_dispatcher)
    assert sub.submit("local", "corrupt-packets", "3") is False
    assert fake_dispatcher.observations == []
    assert "2 data sources" in caplog.text


def test_submit_gauge_schema_override():
    schemas = {
        "dns_question": MetricSchema("dns_question", (DataSource("value", "GAUGE"),))
    }
    dispatcher = FakeDispatcher(schemas=schemas)
    sub = _submitter(dispatcher)
    assert sub.submit("local", "udp-queries", "2.5") is True
    assert dispatcher.observations[0].values == (2.5,)


def test_submit_dispatch_failure_is_contained(caplog):
    caplog.set_level(logging.ERROR)
    dispatcher = FakeDispatcher(fail=True)
    sub = _submitter(dispatcher)
    assert sub.submit("local", "udp-queries", "1") is False
    assert "backend down" in caplog.text


def test_submit_continues_after_bad_value(fake_dispatcher):
    sub = _submitter(fake_dispatcher)
    results = [
        sub.submit("local", "udp-queries", "x"),
        sub.submit("local", "tcp-queries", "2"),
    ]
    assert results == [False, True]
    assert [o.type_instance for o in fake_dispatcher.observations] == ["tcp"]
