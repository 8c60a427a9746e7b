"""Cross-recurrence matrix construction.

Orientation is fixed for the whole package: rows index the parent sequence
(time i), columns index the child sequence (time j). ``M[i, j]`` is True when
parent point i and child point j recur. Statistics do not depend on the
orientation; plots do.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import scipy.spatial.distance as ssd

from dyadcrqa.coding.events import SequenceError, as_code_array
from dyadcrqa.phase.embedding import delay_embedding
from dyadcrqa.rqa.lines import off_diagonal
from dyadcrqa.rqa.params import CRQAParams


@dataclass(frozen=True)
class RecurrenceMatrix:
    """Read-only N x N boolean matrix plus an explicit zero-recurrence flag."""

    values: np.ndarray
    has_recurrence: bool

    @property
    def n(self) -> int:
        return int(self.values.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n, self.n)


def _freeze(R: np.ndarray) -> np.ndarray:
    R = np.ascontiguousarray(R, dtype=bool)
    R.setflags(write=False)
    return R


def empty_recurrence_matrix(n: int) -> RecurrenceMatrix:
    """All-False n x n matrix, for dyads where nothing recurs."""
    if n < 1:
        raise SequenceError("matrix size must be >= 1")
    return RecurrenceMatrix(values=_freeze(np.zeros((int(n), int(n)), dtype=bool)), has_recurrence=False)


def embed_pair(parent: np.ndarray, child: np.ndarray, params: CRQAParams) -> tuple[np.ndarray, np.ndarray]:
    """Delay-embed both channels with the same embed/delay."""
    try:
        emb_p = delay_embedding(parent, embed=int(params.embed), delay=int(params.delay))
        emb_c = delay_embedding(child, embed=int(params.embed), delay=int(params.delay))
    except ValueError as exc:
        raise SequenceError(str(exc)) from exc
    return emb_p, emb_c


def recurrence_matrix(parent: object, child: object, params: CRQAParams | None = None) -> RecurrenceMatrix:
    """Build the cross-recurrence matrix of two equal-length code sequences.

    Codes are not checked against the mirroring scheme here, only for being
    integers of equal, non-zero length; use
    :func:`dyadcrqa.coding.events.validate_dyad` first for coded dyads.
    """
    params = params or CRQAParams()
    p = as_code_array(parent, name="parent")
    c = as_code_array(child, name="child")
    if p.size != c.size:
        raise SequenceError(f"parent and child sequences differ in length ({p.size} != {c.size})")

    emb_p, emb_c = embed_pair(p, c, params)

    if params.rule == "distance":
        D = ssd.cdist(emb_p.astype(float), emb_c.astype(float), metric="euclidean")
        R = D <= float(params.radius)
    else:
        R = np.all(emb_p[:, None, :] == emb_c[None, :, :], axis=2)

    if not R.any():
        return empty_recurrence_matrix(R.shape[0])
    # Line-of-incidence matches alone are not recurrence.
    return RecurrenceMatrix(values=_freeze(R), has_recurrence=bool(off_diagonal(R).any()))
