from __future__ import annotations

from typing import List, Optional

import pytest

from .config import DEFAULT_FAST_THRESHOLD, DEFAULT_REPORT_LENGTH, FastTrapConfig
from .tracker import SpeedTracker


MARKER = "fast_threshold"
TRACKER_KEY = "_fasttrap_tracker"
OPEN_SUITES_KEY = "_fasttrap_open_suites"


def pytest_addoption(parser):  # pragma: no cover - exercised via integration
    group = parser.getgroup("fast-trap")
    group.addoption(
        "--fast-threshold",
        action="store",
        dest="fast_threshold",
        type=int,
        default=DEFAULT_FAST_THRESHOLD,
        help="Tests finishing within this many milliseconds are reported as fast (default 500)",
    )
    group.addoption(
        "--fast-report-length",
        action="store",
        dest="fast_report_length",
        type=int,
        default=DEFAULT_REPORT_LENGTH,
        help="Maximum number of fast tests listed in the report (default 10)",
    )
    group.addoption(
        "--fast-trap-verbose",
        action="store_true",
        dest="fast_trap_verbose",
        default=False,
        help="Print pytest-fasttrap diagnostics to console for debugging",
    )


def resolve_marker_threshold(item) -> Optional[int]:
    """Threshold declared with ``@pytest.mark.fast_threshold(ms)``.

    The closest marker wins, so a mark on the test function beats one on its
    class, which beats one on the module. Only the first positional value of
    that marker counts; without one, the ``ms=`` keyword is used. A value that
    is not a whole number raises ``ValueError`` and the global threshold applies.
    """
    get_marker = getattr(item, "get_closest_marker", None)
    if get_marker is None:
        return None
    mark = get_marker(MARKER)
    if mark is None:
        return None
    if mark.args:
        value = mark.args[0]
    else:
        value = mark.kwargs.get("ms")
    if value is None:
        return None
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{MARKER} needs whole milliseconds, got {value!r}")
    return int(value)


def _console_writer(config):
    reporter = config.pluginmanager.get_plugin("terminalreporter")
    if reporter is None:
        return print
    return reporter.write_line


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config):  # pragma: no cover - integration
    config.addinivalue_line(
        "markers",
        f"{MARKER}(ms): treat this test as fast when it finishes within ms milliseconds",
    )
    cfg = FastTrapConfig.from_options(config)
    tracker = SpeedTracker(
        cfg,
        resolve_override=resolve_marker_threshold,
        # terminal reporter is registered after tryfirst configure hooks, look it up lazily
        write=lambda line: _console_writer(config)(line),
    )
    setattr(config, TRACKER_KEY, tracker)
    setattr(config, OPEN_SUITES_KEY, [])


def get_tracker(config) -> Optional[SpeedTracker]:
    return getattr(config, TRACKER_KEY, None)


@pytest.hookimpl(tryfirst=True)
def pytest_sessionstart(session):  # pragma: no cover - integration
    tracker = get_tracker(session.config)
    if tracker is not None:
        tracker.on_suite_start(session)


def _suite_chain(item) -> List:
    # collectors between the session and the item, outermost first
    return item.listchain()[1:-1]


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_protocol(item, nextitem):  # pragma: no cover - integration
    config = item.config
    tracker = get_tracker(config)
    open_suites: List = getattr(config, OPEN_SUITES_KEY, [])
    if tracker is not None:
        for node in _suite_chain(item):
            if node not in open_suites:
                open_suites.append(node)
                tracker.on_suite_start(node)
        tracker.on_test_start(item)
    yield
    if tracker is None:
        return
    keep = _suite_chain(nextitem) if nextitem is not None else []
    while open_suites and open_suites[-1] not in keep:
        tracker.on_suite_end(open_suites.pop())


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):  # pragma: no cover - integration
    outcome = yield
    tracker = get_tracker(item.config)
    if tracker is None:
        return
    rep = outcome.get_result()
    try:
        _dispatch_report(tracker, item, rep)
    except Exception as exc:
        tracker.debug(f"could not process {rep.when} report for {item.nodeid}: {exc}")


def _dispatch_report(tracker: SpeedTracker, item, rep) -> None:
    duration = getattr(rep, "duration", None)
    if hasattr(rep, "wasxfail"):
        # Pytest may report xfail internal outcome as 'failed' or 'skipped' depending on version/strictness.
        if rep.outcome in {"failed", "skipped"}:
            tracker.add_incomplete(item, rep.wasxfail, duration)
        else:
            tracker.add_risky(item, rep.wasxfail, duration)
        item._fasttrap_excluded = True
        return
    if rep.skipped:
        tracker.add_skipped(item, rep.longrepr, duration)
        item._fasttrap_excluded = True
        return
    if rep.failed:
        if rep.when == "call":
            tracker.add_failure(item, rep.longrepr, duration)
        else:
            tracker.add_error(item, rep.longrepr, duration)
        item._fasttrap_excluded = True
        return
    if rep.when == "call":
        item._fasttrap_elapsed = duration
    elif rep.when == "teardown":
        if getattr(item, "_fasttrap_excluded", False):
            return
        elapsed = getattr(item, "_fasttrap_elapsed", None)
        if elapsed is not None:
            tracker.on_test_end(item, elapsed)


@pytest.hookimpl(trylast=True)
def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - integration
    config = session.config
    tracker = get_tracker(config)
    if tracker is None:
        return
    open_suites: List = getattr(config, OPEN_SUITES_KEY, [])
    # collectors still open when the run was interrupted
    while open_suites:
        tracker.on_suite_end(open_suites.pop())
    tracker.on_suite_end(session)
