"""Speaker event model and the integer code scheme used for categorical CRQA.

Each timepoint of a conversation is one utterance by exactly one speaker. The
legacy coding flattens that into one integer per channel so that exact
equality of codes marks recurrence:

    parent  1 number talk            child 2 silent during parent number talk
    parent  2 silent (child NT)      child 1 number talk
    parent  3 non-number talk        child 6 silent during parent non-number talk
    parent  5 silent (child NNT)     child 4 non-number talk

Only the pairs (1, 2), (2, 1), (3, 6), (5, 4) are valid ("mirroring").
Parent and child non-number-talk codes never overlap, so they never recur.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
import pandas as pd


class SequenceError(ValueError):
    """Invalid event sequence (empty, unequal lengths, non-integer codes)."""


class CodingError(SequenceError):
    """Code pair that breaks the parent/child mirroring scheme."""

    def __init__(self, message: str, indices: Sequence[int] = ()) -> None:
        super().__init__(message)
        self.indices = tuple(int(i) for i in indices)


class Speaker(str, Enum):
    PARENT = "parent"
    CHILD = "child"

    @property
    def partner(self) -> "Speaker":
        return Speaker.CHILD if self is Speaker.PARENT else Speaker.PARENT


class EventKind(str, Enum):
    NUMBER_TALK = "number_talk"
    NON_NUMBER_TALK = "non_number_talk"
    SILENT_DURING_PARTNER = "silent_during_partner"


@dataclass(frozen=True)
class Turn:
    """One timepoint: who spoke and whether it was number talk."""

    speaker: Speaker
    number_talk: bool

    def kind_for(self, speaker: Speaker) -> EventKind:
        if speaker is not self.speaker:
            return EventKind.SILENT_DURING_PARTNER
        return EventKind.NUMBER_TALK if self.number_talk else EventKind.NON_NUMBER_TALK


# (speaker is active, number talk) -> code
PARENT_CODES: dict[tuple[bool, bool], int] = {
    (True, True): 1,
    (False, True): 2,
    (True, False): 3,
    (False, False): 5,
}
CHILD_CODES: dict[tuple[bool, bool], int] = {
    (True, True): 1,
    (False, True): 2,
    (True, False): 4,
    (False, False): 6,
}

VALID_PARENT_CODES = frozenset(PARENT_CODES.values())
VALID_CHILD_CODES = frozenset(CHILD_CODES.values())

# parent code -> the only child code it may pair with
MIRROR_PAIRS: dict[int, int] = {1: 2, 2: 1, 3: 6, 5: 4}

_PAIR_TO_TURN: dict[tuple[int, int], Turn] = {
    (1, 2): Turn(Speaker.PARENT, True),
    (2, 1): Turn(Speaker.CHILD, True),
    (3, 6): Turn(Speaker.PARENT, False),
    (5, 4): Turn(Speaker.CHILD, False),
}


def as_code_array(seq: Iterable[object], *, name: str = "sequence") -> np.ndarray:
    """Convert a code sequence to a 1D int64 array, refusing lossy input.

    Integral floats (as read from CSV columns) are accepted; NaN, fractional
    values, booleans and non-numeric entries raise ``SequenceError``.
    """
    values = list(seq)
    if not values:
        raise SequenceError(f"{name} is empty")

    out = np.empty(len(values), dtype=np.int64)
    for i, v in enumerate(values):
        if isinstance(v, (bool, np.bool_)):
            raise SequenceError(f"{name}[{i}] is a boolean, expected an integer code")
        if isinstance(v, (int, np.integer)):
            out[i] = int(v)
            continue
        if isinstance(v, (float, np.floating)):
            if not np.isfinite(v) or float(v) != int(v):
                raise SequenceError(f"{name}[{i}]={v!r} is not an integer code")
            out[i] = int(v)
            continue
        raise SequenceError(f"{name}[{i}]={v!r} is not an integer code")
    return out


def encode_turns(turns: Iterable[Turn]) -> tuple[np.ndarray, np.ndarray]:
    """Encode turns as (parent_codes, child_codes). Always mirror-valid."""
    parent: list[int] = []
    child: list[int] = []
    for t in turns:
        parent.append(PARENT_CODES[(t.speaker is Speaker.PARENT, bool(t.number_talk))])
        child.append(CHILD_CODES[(t.speaker is Speaker.CHILD, bool(t.number_talk))])
    if not parent:
        raise SequenceError("no turns to encode")
    return np.asarray(parent, dtype=np.int64), np.asarray(child, dtype=np.int64)


def decode_codes(parent: Iterable[object], child: Iterable[object]) -> list[Turn]:
    """Map a validated code pair sequence back to turns."""
    p, c = validate_dyad(parent, child)
    return [_PAIR_TO_TURN[(int(a), int(b))] for a, b in zip(p, c)]


def find_mirroring_violations(parent: Iterable[object], child: Iterable[object]) -> pd.DataFrame:
    """Report every timepoint whose code pair is not an allowed pair.

    Unlike :func:`validate_dyad` this never raises on bad codes; it is the
    data-integrity report used before running an analysis. Length mismatches
    are reported for the trailing unmatched positions.
    """
    p = list(parent)
    c = list(child)
    rows: list[dict[str, object]] = []
    for i in range(max(len(p), len(c))):
        a = p[i] if i < len(p) else None
        b = c[i] if i < len(c) else None
        reason = _pair_problem(a, b)
        if reason is not None:
            rows.append({"index": i, "parent_code": a, "child_code": b, "reason": reason})
    return pd.DataFrame(rows, columns=["index", "parent_code", "child_code", "reason"])


def _pair_problem(a: object, b: object) -> str | None:
    if a is None:
        return "missing parent code"
    if b is None:
        return "missing child code"
    try:
        pa = int(as_code_array([a])[0])
        cb = int(as_code_array([b])[0])
    except SequenceError:
        return "non-integer code"
    if pa not in VALID_PARENT_CODES:
        return f"invalid parent code {pa}"
    if cb not in VALID_CHILD_CODES:
        return f"invalid child code {cb}"
    if MIRROR_PAIRS[pa] != cb:
        return f"parent code {pa} must pair with child code {MIRROR_PAIRS[pa]}"
    return None


def validate_dyad(parent: Iterable[object], child: Iterable[object]) -> tuple[np.ndarray, np.ndarray]:
    """Check a parent/child code pair sequence and return it as int arrays.

    Raises ``SequenceError`` for empty / unequal / non-integer input and
    ``CodingError`` (listing every offending index) for mirroring violations.
    """
    p = as_code_array(parent, name="parent")
    c = as_code_array(child, name="child")
    if p.size != c.size:
        raise SequenceError(f"parent and child sequences differ in length ({p.size} != {c.size})")

    bad = [
        i
        for i, (a, b) in enumerate(zip(p.tolist(), c.tolist()))
        if a not in VALID_PARENT_CODES or b not in VALID_CHILD_CODES or MIRROR_PAIRS[a] != b
    ]
    if bad:
        shown = ", ".join(f"{i}:({p[i]},{c[i]})" for i in bad[:10])
        more = f" and {len(bad) - 10} more" if len(bad) > 10 else ""
        raise CodingError(f"{len(bad)} timepoint(s) violate code mirroring: {shown}{more}", bad)
    return p, c


def turn_recurrence_matrix(turns: Sequence[Turn]) -> np.ndarray:
    """Recurrence defined on turns directly: number talk at both i and j by different speakers.

    Rows follow the parent channel, columns the child channel, matching
    :func:`dyadcrqa.rqa.matrix.recurrence_matrix` on the encoded codes.
    """
    if not turns:
        raise SequenceError("no turns")
    nt = np.asarray([t.number_talk for t in turns], dtype=bool)
    by_parent = np.asarray([t.speaker is Speaker.PARENT for t in turns], dtype=bool)
    return (nt[:, None] & nt[None, :]) & (by_parent[:, None] != by_parent[None, :])
