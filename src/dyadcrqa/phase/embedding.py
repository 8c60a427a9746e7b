from __future__ import annotations

import numpy as np


def delay_embedding(x: np.ndarray, embed: int, delay: int) -> np.ndarray:
    """Delay-embed a 1D code sequence.

    Returns an array of shape (N - (embed - 1) * delay, embed). Point i holds
    x[i], x[i + delay], ..., x[i + (embed - 1) * delay]. ``embed=1`` gives a
    single column (no reconstruction) whatever the delay.
    """
    x = np.asarray(x)
    if embed < 1:
        raise ValueError("embed must be >= 1")
    if delay < 0:
        raise ValueError("delay must be >= 0")
    if embed == 1:
        return x.reshape(-1, 1).copy()
    n = len(x) - (embed - 1) * delay
    if n < 1:
        raise ValueError(
            f"Not enough points for embed={embed}, delay={delay} (sequence length {len(x)})"
        )
    emb = np.empty((n, embed), dtype=x.dtype)
    for i in range(embed):
        emb[:, i] = x[i * delay : i * delay + n]
    return emb
