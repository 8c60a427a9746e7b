from __future__ import annotations

import numpy as np

from dyadcrqa.coding.events import Speaker, Turn, encode_turns
from dyadcrqa.data.ingest import DyadSequences

# Worked example from the CRQA tutorial material.
TUTORIAL_PARENT = (3, 2, 1, 1, 2, 1, 3, 5, 1, 2, 1, 1, 5, 1, 1)
TUTORIAL_CHILD = (6, 1, 2, 2, 1, 2, 6, 4, 2, 1, 2, 2, 4, 2, 2)


def tutorial_dyad(dyad_id: str = "tutorial") -> DyadSequences:
    return DyadSequences(
        dyad_id=dyad_id,
        parent=np.asarray(TUTORIAL_PARENT, dtype=np.int64),
        child=np.asarray(TUTORIAL_CHILD, dtype=np.int64),
    )


def random_turns(
    n: int,
    rng: np.random.Generator,
    *,
    p_parent: float = 0.5,
    p_number_talk: float = 0.3,
    stickiness: float = 0.0,
) -> list[Turn]:
    """Draw a random conversation of ``n`` turns.

    ``stickiness`` is the probability of repeating the previous turn's speaker
    and topic instead of drawing fresh ones; higher values give longer
    vertical/horizontal structure.
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    turns: list[Turn] = []
    for _ in range(int(n)):
        if turns and rng.random() < stickiness:
            turns.append(turns[-1])
            continue
        speaker = Speaker.PARENT if rng.random() < p_parent else Speaker.CHILD
        turns.append(Turn(speaker=speaker, number_talk=bool(rng.random() < p_number_talk)))
    return turns


def random_dyads(
    count: int,
    *,
    seed: int = 7,
    min_len: int = 40,
    max_len: int = 200,
    p_number_talk: float = 0.3,
    stickiness: float = 0.2,
) -> list[DyadSequences]:
    """Reproducible set of mirror-valid dyads of varying length."""
    rng = np.random.default_rng(int(seed))
    dyads: list[DyadSequences] = []
    for k in range(int(count)):
        n = int(rng.integers(min_len, max_len + 1))
        turns = random_turns(n, rng, p_number_talk=p_number_talk, stickiness=stickiness)
        parent, child = encode_turns(turns)
        dyads.append(DyadSequences(dyad_id=f"d{k + 1:03d}", parent=parent, child=child))
    return dyads
