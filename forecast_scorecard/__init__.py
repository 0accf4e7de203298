"""Forecast Scorecard: score yearly market predictions against actual outcomes."""

__version__ = "0.1.0"
