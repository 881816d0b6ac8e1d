from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_FAST_THRESHOLD = 500
DEFAULT_REPORT_LENGTH = 10

# Option names as they appear in a plain options mapping (listener style).
_ALIASES = {
    "fast_threshold": ("fastThreshold", "fast_threshold"),
    "report_length": ("reportLength", "report_length"),
    "verbose": ("verbose",),
}


@dataclass(frozen=True)
class FastTrapConfig:
    fast_threshold: int = DEFAULT_FAST_THRESHOLD
    report_length: int = DEFAULT_REPORT_LENGTH
    verbose: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "FastTrapConfig":
        options = options or {}
        threshold = _int_or(_lookup(options, "fast_threshold"), DEFAULT_FAST_THRESHOLD)
        length = _int_or(_lookup(options, "report_length"), DEFAULT_REPORT_LENGTH)
        verbose = bool(_lookup(options, "verbose") or False)
        return cls(fast_threshold=threshold, report_length=max(0, length), verbose=verbose)

    @classmethod
    def from_options(cls, config) -> "FastTrapConfig":  # type: ignore[override]
        # pytest Config object contains the option values
        opt = config.option
        return cls.from_mapping(
            {
                "fast_threshold": getattr(opt, "fast_threshold", DEFAULT_FAST_THRESHOLD),
                "report_length": getattr(opt, "fast_report_length", DEFAULT_REPORT_LENGTH),
                "verbose": getattr(opt, "fast_trap_verbose", False),
            }
        )


def _lookup(options: Mapping[str, Any], field: str):
    for name in _ALIASES[field]:
        v = options.get(name)
        if v is not None:
            return v
    return None


def _int_or(value, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
