"""Run CRQA over many dyads.

Dyads are independent, so the batch is a plain parallel map (joblib) with no
shared state. Rows carry metrics only; recurrence matrices are recomputed on
demand with :func:`recurrence_for` for the few dyads that get plotted.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable

import pandas as pd
from joblib import Parallel, delayed

from dyadcrqa.data.ingest import DyadSequences
from dyadcrqa.rqa.metrics import METRIC_COLUMNS, CRQAResult, compute_crqa
from dyadcrqa.rqa.params import CRQAParams

logger = logging.getLogger(__name__)

RESULT_COLUMNS = ("dyad_id", "n", *METRIC_COLUMNS, "has_recurrence", "status", "error")


def analyze_dyad(dyad: DyadSequences, params: CRQAParams) -> Dict[str, Any]:
    """Metrics row for one dyad. Input errors become an ``error`` row."""
    row: Dict[str, Any] = {"dyad_id": dyad.dyad_id}
    try:
        res = compute_crqa(dyad.parent, dyad.child, params)
    except ValueError as exc:
        row.update({k: float("nan") for k in METRIC_COLUMNS})
        row.update({"n": int(len(dyad.parent)), "has_recurrence": False, "status": "error", "error": str(exc)})
        return row

    row.update(res.metrics())
    row.update({"status": "ok", "error": ""})
    return row


def recurrence_for(dyad: DyadSequences, params: CRQAParams) -> CRQAResult:
    """Full result, matrix included, for a single dyad."""
    return compute_crqa(dyad.parent, dyad.child, params)


def _resolve_n_jobs(n_jobs: int | None) -> int:
    cores = os.cpu_count() or 1
    if n_jobs is None or n_jobs == 0:
        return cores
    if n_jobs < 0:
        return max(1, cores + 1 + int(n_jobs))
    return min(int(n_jobs), cores)


def run_batch(
    dyads: Iterable[DyadSequences],
    params: CRQAParams | None = None,
    *,
    n_jobs: int | None = 1,
) -> pd.DataFrame:
    """Analyse every dyad; one row per dyad, in input order.

    ``n_jobs``: 1 runs in-process, ``None``/0 uses all cores, negative values
    follow the joblib convention (-1 = all cores). Never more than the cores
    available.
    """
    params = params or CRQAParams()
    dyads = list(dyads)

    seen: set[str] = set()
    for d in dyads:
        if d.dyad_id in seen:
            raise ValueError(f"Duplicate dyad_id: {d.dyad_id}")
        seen.add(d.dyad_id)

    jobs = _resolve_n_jobs(n_jobs)
    logger.info("running CRQA on %d dyads with %d worker(s)", len(dyads), jobs)

    if jobs == 1 or len(dyads) <= 1:
        rows = [analyze_dyad(d, params) for d in dyads]
    else:
        rows = Parallel(n_jobs=jobs)(delayed(analyze_dyad)(d, params) for d in dyads)

    df = pd.DataFrame(rows, columns=list(RESULT_COLUMNS))
    failed = df[df["status"] == "error"]
    for _, r in failed.iterrows():
        logger.warning("dyad %s skipped: %s", r["dyad_id"], r["error"])
    logger.info(
        "CRQA done: %d ok, %d failed, %d without recurrence",
        int((df["status"] == "ok").sum()),
        int(len(failed)),
        int(((df["status"] == "ok") & ~df["has_recurrence"].astype(bool)).sum()),
    )
    return df
