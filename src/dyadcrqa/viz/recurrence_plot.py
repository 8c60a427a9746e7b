"""Recurrence plots for selected dyads.

Axes follow the matrix orientation: y = parent time (row i), x = child time
(column j), origin at the bottom left as is usual for recurrence plots.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

from dyadcrqa.rqa.matrix import RecurrenceMatrix, empty_recurrence_matrix


def plot_matrix(
    matrix: RecurrenceMatrix | np.ndarray | None,
    out_path: str | Path,
    *,
    n: int | None = None,
    title: str | None = None,
    metrics: dict[str, Any] | None = None,
) -> Path:
    """Save a recurrence plot as PNG.

    ``matrix=None`` means nothing recurred and no matrix was kept; an all-False
    ``n`` x ``n`` plot is drawn instead, so ``n`` is required in that case.
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt  # local import for faster CLI start

    if matrix is None:
        if n is None:
            raise ValueError("n is required when no matrix is given")
        matrix = empty_recurrence_matrix(int(n))
    R = matrix.values if isinstance(matrix, RecurrenceMatrix) else np.asarray(matrix, dtype=bool)

    fig, ax = plt.subplots(figsize=(5, 5))
    ax.imshow(R.astype(np.uint8), cmap="Greys", origin="lower", interpolation="nearest", vmin=0, vmax=1)
    ax.set_xlabel("child (time j)")
    ax.set_ylabel("parent (time i)")
    if title:
        ax.set_title(title)
    if metrics:
        txt = "  ".join(
            f"{k.upper()}={float(v):.2f}" for k, v in metrics.items() if v is not None and np.isfinite(float(v))
        )
        if txt:
            ax.text(0.0, -0.16, txt, transform=ax.transAxes, fontsize=7, va="top")

    outp = Path(out_path)
    outp.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(outp, dpi=150)
    plt.close(fig)
    return outp
