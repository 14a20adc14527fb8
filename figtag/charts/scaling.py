"""Axis scaling and number formatting shared by the chart renderers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

_MIN_SPAN = 1.0
_TICK_INTERVALS = 5


@dataclass(frozen=True)
class AxisScale:
    """Linear mapping from a value range onto a pixel segment."""

    low: float
    high: float

    @property
    def span(self) -> float:
        return self.high - self.low

    def fraction(self, value: float) -> float:
        return (value - self.low) / self.span

    def ticks(self, intervals: int = _TICK_INTERVALS) -> list[float]:
        step = self.span / intervals
        return [self.low + step * index for index in range(intervals + 1)]


def axis_scale(values: Sequence[float], *, include_zero: bool) -> AxisScale:
    """Build a scale covering values; a zero range is widened to a minimal span."""

    low = min(values)
    high = max(values)
    if include_zero:
        low = min(low, 0.0)
        high = max(high, 0.0)

    if high - low <= 0:
        pad = max(abs(high) * 0.1, _MIN_SPAN)
        if include_zero and low == 0:
            high = low + pad
        elif include_zero and high == 0:
            low = high - pad
        else:
            low -= pad / 2
            high += pad / 2

    return AxisScale(low=low, high=high)


def format_number(value: float) -> str:
    if abs(value) >= 1e6:
        return f"{value:.3g}"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text
