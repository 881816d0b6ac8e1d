from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

from .config import FastTrapConfig
from .report import FastTestReport, build_report, format_report, to_milliseconds

LOG_PREFIX = "[pytest-fasttrap]"


@runtime_checkable
class TestCase(Protocol):
    """A concrete, runnable test (pytest Items qualify, Collectors do not)."""

    nodeid: str

    def runtest(self) -> None: ...


OverrideResolver = Callable[[Any], Optional[int]]
LabelMaker = Callable[[Any], str]
Writer = Callable[[str], None]


def default_label(test) -> str:
    return str(test.nodeid)


class SpeedTracker:
    """Collects tests that finish within their threshold and reports the slowest of them.

    Runner agnostic: the host calls ``on_suite_start`` / ``on_suite_end`` around
    every (possibly nested) suite and ``on_test_end`` for each finished test.
    Once the outermost suite ends, the collected tests are ranked slowest first
    and printed through ``write``.

    A per-test threshold comes from ``resolve_override(test)``; None means the
    configured ``fast_threshold`` applies.

    The collected table is never cleared. One tracker is meant for exactly one
    top-level run; reusing it for another run keeps the earlier entries and
    reports them again.
    """

    def __init__(
        self,
        config: Union[FastTrapConfig, Mapping[str, Any], None] = None,
        *,
        resolve_override: Optional[OverrideResolver] = None,
        make_label: Optional[LabelMaker] = None,
        write: Optional[Writer] = None,
    ) -> None:
        if not isinstance(config, FastTrapConfig):
            config = FastTrapConfig.from_mapping(config)
        self.config = config
        self._resolve_override = resolve_override
        self._make_label = make_label or default_label
        self._write = write or print
        self._depth = 0
        self._fast: Dict[str, int] = {}

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def fast_tests(self) -> Dict[str, int]:
        return dict(self._fast)

    # ---------- lifecycle callbacks ----------

    def on_suite_start(self, suite=None) -> None:
        self._depth += 1

    def on_suite_end(self, suite=None) -> None:
        self._depth -= 1
        if self._depth < 0:
            self.debug(f"suite depth went negative ({self._depth}); ignoring")
            return
        if self._depth == 0 and self.has_fast_tests():
            self.render(self.build_report())

    def on_test_start(self, test) -> None:
        pass

    def on_test_end(self, test, elapsed_seconds) -> None:
        if not isinstance(test, TestCase):
            return
        ms = to_milliseconds(elapsed_seconds)
        if ms is None:
            self.debug(f"unreadable duration {elapsed_seconds!r} for {getattr(test, 'nodeid', test)}")
            return
        if self.is_fast(ms, self.effective_threshold(test)):
            self.add_fast_test(test, ms)

    # Outcome notifications. Tests reported here are never considered fast.

    def add_error(self, test, error=None, elapsed_seconds=None) -> None:
        pass

    def add_failure(self, test, failure=None, elapsed_seconds=None) -> None:
        pass

    def add_incomplete(self, test, reason=None, elapsed_seconds=None) -> None:
        pass

    def add_risky(self, test, reason=None, elapsed_seconds=None) -> None:
        pass

    def add_skipped(self, test, reason=None, elapsed_seconds=None) -> None:
        pass

    # ---------- classification ----------

    @staticmethod
    def is_fast(ms: int, threshold: int) -> bool:
        return ms <= threshold

    def effective_threshold(self, test) -> int:
        if self._resolve_override is None:
            return self.config.fast_threshold
        try:
            override = self._resolve_override(test)
        except Exception as exc:
            self.debug(f"threshold override lookup failed for {getattr(test, 'nodeid', test)}: {exc}")
            return self.config.fast_threshold
        if override is None:
            return self.config.fast_threshold
        try:
            return int(override)
        except (TypeError, ValueError):
            self.debug(f"ignoring invalid threshold override {override!r}")
            return self.config.fast_threshold

    def add_fast_test(self, test, ms: int) -> None:
        self._fast[self._make_label(test)] = ms

    def has_fast_tests(self) -> bool:
        return bool(self._fast)

    # ---------- reporting ----------

    def report_length(self) -> int:
        """Number of fast tests the report shows."""
        return max(0, min(len(self._fast), self.config.report_length))

    def hidden_count(self) -> int:
        return max(0, len(self._fast) - self.report_length())

    def build_report(self) -> FastTestReport:
        return build_report(self._fast, self.config.fast_threshold, self.config.report_length)

    def render(self, report: FastTestReport) -> None:
        lines = format_report(report)
        try:
            for line in lines:
                self._write(line)
        except Exception:
            # never let console trouble abort the host run
            pass

    def debug(self, msg: str) -> None:
        if not self.config.verbose:
            return
        try:
            self._write(f"{LOG_PREFIX} {msg}")
        except Exception:
            pass
