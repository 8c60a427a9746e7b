"""Categorical CRQA metrics.

RR, DET and LAM are percentages. The main diagonal (line of incidence) is
excluded from every numerator and denominator. Undefined ratios (0/0) are
NaN; nothing in this module substitutes zero for them, see
:func:`dyadcrqa.report.aggregate.coalesce_undefined` for that policy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np
import pandas as pd

from dyadcrqa.coding.events import validate_dyad
from dyadcrqa.rqa.lines import (
    diagonal_line_lengths,
    horizontal_line_lengths,
    off_diagonal,
    vertical_line_lengths,
)
from dyadcrqa.rqa.matrix import RecurrenceMatrix, recurrence_matrix
from dyadcrqa.rqa.params import CRQAParams

NAN = float("nan")

METRIC_COLUMNS = ("rr", "det", "mean_l", "lam", "tt", "max_l", "n_lines", "entr", "rentr", "max_v")


@dataclass(frozen=True)
class CRQAResult:
    rr: float
    det: float
    mean_l: float
    lam: float
    tt: float
    max_l: int
    n_lines: int
    entr: float
    rentr: float
    max_v: int
    n: int
    has_recurrence: bool
    matrix: RecurrenceMatrix = field(repr=False, compare=False)

    def metrics(self) -> Dict[str, Any]:
        """Scalar outputs only (no matrix), e.g. for one table row."""
        out: Dict[str, Any] = {k: getattr(self, k) for k in METRIC_COLUMNS}
        out["n"] = self.n
        out["has_recurrence"] = self.has_recurrence
        return out


def _shannon_entropy(counts: np.ndarray) -> float:
    c = np.asarray(counts, dtype=float)
    c = c[c > 0]
    if c.size == 0:
        return 0.0
    p = c / float(np.sum(c))
    return float(-np.sum(p * np.log(p)))


def _ratio_pct(num: float, den: float) -> float:
    return 100.0 * num / den if den > 0 else NAN


def _mean_or_nan(x: np.ndarray) -> float:
    return float(np.mean(x)) if x.size else NAN


def crqa_from_matrix(matrix: RecurrenceMatrix | np.ndarray, params: CRQAParams | None = None) -> CRQAResult:
    """Compute all line statistics from an existing recurrence matrix."""
    params = params or CRQAParams()
    if not isinstance(matrix, RecurrenceMatrix):
        R = np.asarray(matrix, dtype=bool)
        if R.ndim != 2 or R.shape[0] != R.shape[1]:
            raise ValueError(f"recurrence matrix must be square, got shape {R.shape}")
        R = R.copy()
        R.setflags(write=False)
        matrix = RecurrenceMatrix(values=R, has_recurrence=bool(off_diagonal(R).any()))

    R = matrix.values
    n = matrix.n
    n_rec = float(np.sum(off_diagonal(R)))

    rr = _ratio_pct(n_rec, float(n * n - n)) if n > 1 else NAN

    diag = diagonal_line_lengths(R)
    diag_sel = diag[diag >= int(params.mindiagline)]
    det = _ratio_pct(float(np.sum(diag_sel)), n_rec)
    mean_l = _mean_or_nan(diag_sel)
    max_l = int(np.max(diag_sel)) if diag_sel.size else 0

    if diag_sel.size:
        _, counts = np.unique(diag_sel, return_counts=True)
        entr = _shannon_entropy(counts)
        rentr = entr / math.log(counts.size) if counts.size > 1 else 0.0
    else:
        entr = NAN
        rentr = NAN

    if params.lam_direction == "vertical":
        runs = [vertical_line_lengths(R)]
    elif params.lam_direction == "horizontal":
        runs = [horizontal_line_lengths(R)]
    else:
        runs = [vertical_line_lengths(R), horizontal_line_lengths(R)]
    vert = np.concatenate(runs)
    vert_sel = vert[vert >= int(params.minvertline)]
    # Each recurrent cell sits on one run per scanned direction.
    lam = _ratio_pct(float(np.sum(vert_sel)), n_rec * len(runs))
    tt = _mean_or_nan(vert_sel)
    max_v = int(np.max(vert_sel)) if vert_sel.size else 0

    return CRQAResult(
        rr=rr,
        det=det,
        mean_l=mean_l,
        lam=lam,
        tt=tt,
        max_l=max_l,
        n_lines=int(diag_sel.size),
        entr=entr,
        rentr=rentr,
        max_v=max_v,
        n=n,
        has_recurrence=n_rec > 0,
        matrix=matrix,
    )


def compute_crqa(
    parent: object,
    child: object,
    params: CRQAParams | None = None,
    *,
    check_coding: bool = True,
) -> CRQAResult:
    """Run categorical CRQA on one dyad.

    With ``check_coding`` the code pairs must follow the parent/child
    mirroring scheme (``CodingError`` otherwise). Pass ``False`` to analyse
    arbitrary integer-coded sequences.
    """
    params = params or CRQAParams()
    if check_coding:
        parent, child = validate_dyad(parent, child)
    R = recurrence_matrix(parent, child, params)
    return crqa_from_matrix(R, params)


def diagonal_recurrence_profile(matrix: RecurrenceMatrix | np.ndarray, window: int) -> pd.DataFrame:
    """Percent recurrence along each diagonal offset in [-window, window].

    ``lag > 0`` means the child matches the parent ``lag`` steps later
    (parent leads); ``lag < 0`` means the child leads.
    """
    R = matrix.values if isinstance(matrix, RecurrenceMatrix) else np.asarray(matrix, dtype=bool)
    n = R.shape[0]
    window = int(window)
    if window < 0:
        raise ValueError("window must be >= 0")
    window = min(window, n - 1)

    rows = []
    for lag in range(-window, window + 1):
        diag = np.diagonal(R, offset=lag)
        rows.append({"lag": lag, "rr": 100.0 * float(np.mean(diag)) if diag.size else NAN})
    return pd.DataFrame(rows, columns=["lag", "rr"])
