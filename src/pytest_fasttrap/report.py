"""Ranking and rendering of collected fast tests.

Kept free of any tracker state so the report can be built and checked from a
plain ``{label: milliseconds}`` mapping.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, DecimalException
from typing import List, Mapping, Optional, Tuple

Entry = Tuple[str, int]  # (label, milliseconds)


def to_milliseconds(elapsed_seconds) -> Optional[int]:
    """Convert fractional seconds to whole milliseconds, rounding half away from zero.

    Rounds the decimal form of the value, so ``0.4995`` becomes ``500`` even
    though ``0.4995 * 1000`` is slightly below ``499.5`` as a float. Returns
    None for anything that is not a finite number.
    """
    if isinstance(elapsed_seconds, bool):
        return None
    try:
        ms = Decimal(str(elapsed_seconds)) * 1000
        return int(ms.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (DecimalException, ValueError, TypeError, OverflowError):
        return None


def rank_fast_tests(fast: Mapping[str, int]) -> List[Entry]:
    # Stable sort: equal durations keep collection order, callers must not rely on it.
    return sorted(fast.items(), key=lambda e: e[1], reverse=True)


@dataclass(frozen=True)
class FastTestReport:
    threshold: int
    entries: Tuple[Entry, ...]
    total: int

    @property
    def shown(self) -> int:
        return len(self.entries)

    @property
    def hidden(self) -> int:
        return max(0, self.total - self.shown)


def build_report(fast: Mapping[str, int], threshold: int, report_length: int) -> FastTestReport:
    ranked = rank_fast_tests(fast)
    shown = max(0, min(len(ranked), report_length))
    return FastTestReport(threshold=threshold, entries=tuple(ranked[:shown]), total=len(ranked))


def header_lines(report: FastTestReport) -> List[str]:
    return ["", f"These tests are fast enough: (<{report.threshold}ms)..."]


def body_lines(report: FastTestReport) -> List[str]:
    return [f" {i}. {ms}ms to run {label}" for i, (label, ms) in enumerate(report.entries, 1)]


def footer_lines(report: FastTestReport) -> List[str]:
    hidden = report.hidden
    if not hidden:
        return []
    verb = "is" if hidden == 1 else "are"
    return [f"...and there {verb} {hidden} more above your threshold hidden from view"]


def format_report(report: FastTestReport) -> List[str]:
    """Header, body and footer lines, in print order."""
    return header_lines(report) + body_lines(report) + footer_lines(report)
