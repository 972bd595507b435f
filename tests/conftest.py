"""
Brief: Global pytest configuration and shared fixtures.

Inputs:
  - None

Outputs:
  - None
"""

import os
import shutil
import sys
import tempfile

import pytest

# Ensure 'src' is on sys.path so 'pdnsstats' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


@pytest.fixture
def sock_dir():
    """
    Brief: Short-lived directory with a short path for AF_UNIX sockets.

    Inputs:
      - None

    Outputs:
      - str: directory path (pytest's tmp_path can exceed the 108-byte
        sun_path limit)
    """
    d = tempfile.mkdtemp(prefix="pds")
    yield d
    shutil.rmtree(d, ignore_errors=True)


class FakeDispatcher:
    """
    Brief: Dispatcher double recording schema lookups and observations.

    Inputs:
      - schemas: mapping of metric kind to MetricSchema (or None)

    Outputs:
      - instance exposing lookups/observations lists
    """

    def __init__(self, schemas=None, fail=False):
        from pdnsstats.dispatch.types_db import TypesDB

        self.types_db = TypesDB() if schemas is None else TypesDB(schemas)
        self.lookups = []
        self.observations = []
        self.fail = fail

    def lookup_schema(self, metric_kind):
        self.lookups.append(metric_kind)
        return self.types_db.get(metric_kind)

    def dispatch(self, observation):
        if self.fail:
            raise RuntimeError("backend down")
        self.observations.append(observation)

    def close(self):
        pass


@pytest.fixture
def fake_dispatcher():
    """
    Brief: FakeDispatcher backed by the built-in metric schemas.

    Outputs:
      - FakeDispatcher
    """
    return FakeDispatcher()


@pytest.fixture
def restore_root_logger():
    """
    Brief: Undo init_logging() changes to the root logger after a test.

    Outputs:
      - None
    """
    import logging

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)
