"""dyadcrqa: categorical cross-recurrence analysis of parent-child number talk."""

from __future__ import annotations

from dyadcrqa.rqa.metrics import CRQAResult, compute_crqa
from dyadcrqa.rqa.params import CRQAParams

__version__ = "0.1.0"

__all__ = ["CRQAParams", "CRQAResult", "compute_crqa", "__version__"]
