"""
Shared test fixtures for the adaptive optimizer.

- optimizer.py: capability sources, settings builders and a manual clock
"""

from .optimizer import (
    FakeClock,
    make_capabilities,
    make_settings,
    fake_clock,
    desktop_source,
    low_end_source,
    optimizer,
)

__all__ = [
    "FakeClock",
    "make_capabilities",
    "make_settings",
    "fake_clock",
    "desktop_source",
    "low_end_source",
    "optimizer",
]
