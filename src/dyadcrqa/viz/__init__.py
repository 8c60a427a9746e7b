"""Visualization helpers for dyadcrqa.

matplotlib is imported lazily so the analysis modules stay importable on
headless machines without a plotting backend configured.
"""

from __future__ import annotations

__all__ = ["recurrence_plot"]
