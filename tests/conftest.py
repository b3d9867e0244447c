"""
Shared fixtures for the log test server tests.

Loggers write into an in-memory stream so tests can parse the JSON lines
they produce.
"""
import io
import json
import time

import pytest

from logtestserver.emitter import SYNTHETIC_MSG
from logtestserver.structured_log import StructuredLogger


class LogCapture:
    def __init__(self):
        self.stream = io.StringIO()
        self.logger = StructuredLogger("info", stream=self.stream)

    def records(self):
        return [json.loads(line) for line in self.stream.getvalue().splitlines() if line]

    def synthetic(self):
        return [r for r in self.records() if r["msg"] == SYNTHETIC_MSG]

    def errors(self):
        return [r for r in self.records() if r["level"] == "ERROR"]

    def with_msg(self, msg):
        return [r for r in self.records() if r["msg"] == msg]


@pytest.fixture
def capture():
    return LogCapture()


@pytest.fixture
def wait_for():
    def _wait_for(predicate, timeout=2.0, interval=0.01):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait_for
