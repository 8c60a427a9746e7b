"""Run-length extraction along diagonals, columns and rows.

All functions return every maximal run of True (length >= 1); callers filter
by the minimum line length. The line of incidence (main diagonal) is never
scanned as a diagonal, and its cells are cleared before vertical/horizontal
scans so they cannot join or extend a run.
"""

from __future__ import annotations

import numpy as np


def _runs(vec: np.ndarray) -> list[int]:
    lengths: list[int] = []
    run = 0
    for v in vec:
        if v:
            run += 1
        else:
            if run > 0:
                lengths.append(run)
                run = 0
    if run > 0:
        lengths.append(run)
    return lengths


def off_diagonal(R: np.ndarray) -> np.ndarray:
    """Copy of R with the main diagonal set to False."""
    out = np.array(R, dtype=bool, copy=True)
    np.fill_diagonal(out, False)
    return out


def diagonal_line_lengths(R: np.ndarray) -> np.ndarray:
    """Run lengths on every diagonal offset k != 0."""
    R = np.asarray(R, dtype=bool)
    n = R.shape[0]
    lengths: list[int] = []
    for k in range(-(n - 1), n):
        if k == 0:
            continue
        lengths.extend(_runs(np.diagonal(R, offset=k)))
    return np.asarray(lengths, dtype=int)


def vertical_line_lengths(R: np.ndarray) -> np.ndarray:
    """Run lengths down each column, main diagonal cleared."""
    Rm = off_diagonal(R)
    lengths: list[int] = []
    for j in range(Rm.shape[1]):
        lengths.extend(_runs(Rm[:, j]))
    return np.asarray(lengths, dtype=int)


def horizontal_line_lengths(R: np.ndarray) -> np.ndarray:
    """Run lengths along each row, main diagonal cleared."""
    return vertical_line_lengths(np.asarray(R, dtype=bool).T)
