import pytest

from pytest_fasttrap.tracker import SpeedTracker


class FakeCase:
    def __init__(self, nodeid, threshold=None):
        self.nodeid = nodeid
        self.threshold = threshold

    def runtest(self):
        pass


class FakeSuite:
    def __init__(self, nodeid):
        self.nodeid = nodeid

    def collect(self):
        return []


def _make_tracker(**options):
    lines = []
    tracker = SpeedTracker(
        options,
        resolve_override=lambda t: t.threshold,
        write=lines.append,
    )
    return tracker, lines


def _run_session(tracker, durations_ms):
    # one top-level suite holding a module suite with a test per duration
    tracker.on_suite_start()
    tracker.on_suite_start(FakeSuite("test_mod.py"))
    for i, ms in enumerate(durations_ms):
        tracker.on_test_end(FakeCase(f"test_mod.py::test_{i}"), ms / 1000)
    tracker.on_suite_end(FakeSuite("test_mod.py"))
    tracker.on_suite_end()


# Session scoped so hypothesis tests can use them too.


@pytest.fixture(scope="session")
def fake_case():
    return FakeCase


@pytest.fixture(scope="session")
def fake_suite():
    return FakeSuite


@pytest.fixture(scope="session")
def make_tracker():
    return _make_tracker


@pytest.fixture(scope="session")
def run_session():
    return _run_session
