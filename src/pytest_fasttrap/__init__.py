"""Report the fastest tests of a pytest run that stay under a time threshold."""

from .config import FastTrapConfig
from .report import FastTestReport, build_report, format_report, rank_fast_tests, to_milliseconds
from .tracker import SpeedTracker, TestCase

__all__ = [
    "FastTrapConfig",
    "FastTestReport",
    "SpeedTracker",
    "TestCase",
    "build_report",
    "format_report",
    "rank_fast_tests",
    "to_milliseconds",
]
