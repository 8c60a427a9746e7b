"""Categorical cross-recurrence quantification analysis (CRQA).

Core implementation is NumPy/SciPy only:

- :mod:`params`: hyperparameters (radius, delay, embed, min line lengths)
- :mod:`matrix`: recurrence matrix (rows = parent, columns = child)
- :mod:`lines`: diagonal / vertical / horizontal run lengths
- :mod:`metrics`: RR, DET, meanL, LAM, TT and companions
"""

from __future__ import annotations

from dyadcrqa.rqa.matrix import RecurrenceMatrix, empty_recurrence_matrix, recurrence_matrix
from dyadcrqa.rqa.metrics import CRQAResult, compute_crqa, crqa_from_matrix, diagonal_recurrence_profile
from dyadcrqa.rqa.params import CRQAParams, ParamsError

__all__ = [
    "CRQAParams",
    "CRQAResult",
    "ParamsError",
    "RecurrenceMatrix",
    "compute_crqa",
    "crqa_from_matrix",
    "diagonal_recurrence_profile",
    "empty_recurrence_matrix",
    "recurrence_matrix",
]
