"""Reporting-side policy and output writers for per-dyad CRQA tables.

The engine reports DET, meanL, LAM, TT (and ENTR, rENTR) as NaN when they are
undefined. For group-level aggregation the empirical pipeline treats an
undefined line statistic as "no line structure", i.e. 0. That substitution
happens here, explicitly, and only on request.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable

import numpy as np
import pandas as pd

COALESCE_COLUMNS = ("det", "mean_l", "lam", "tt", "entr", "rentr")
SUMMARY_COLUMNS = ("n", "rr", "det", "mean_l", "lam", "tt", "max_l", "n_lines", "entr", "rentr", "max_v")


def coalesce_undefined(df: pd.DataFrame, columns: Iterable[str] = COALESCE_COLUMNS) -> pd.DataFrame:
    """Copy of ``df`` with NaN replaced by 0 in the given metric columns of ok rows.

    RR is left alone: an undefined RR (single-timepoint dyad) is not "no
    recurrence". Error rows keep NaN.
    """
    out = df.copy()
    ok = out["status"] == "ok" if "status" in out.columns else pd.Series(True, index=out.index)
    for c in columns:
        if c in out.columns:
            vals = pd.to_numeric(out[c], errors="coerce")
            out[c] = vals.where(~(ok & vals.isna()), 0.0)
    return out


def summarize_metrics(df: pd.DataFrame) -> Dict[str, Any]:
    """Mean/std/min/max per metric over ok dyads, ignoring NaN."""
    ok = df[df["status"] == "ok"] if "status" in df.columns else df
    summary: Dict[str, Any] = {
        "dyads": int(len(df)),
        "dyads_ok": int(len(ok)),
        "dyads_failed": int(len(df) - len(ok)),
    }
    if "has_recurrence" in ok.columns:
        summary["dyads_without_recurrence"] = int((~ok["has_recurrence"].astype(bool)).sum())

    for col in SUMMARY_COLUMNS:
        if col not in ok.columns:
            continue
        s = pd.to_numeric(ok[col], errors="coerce")
        s = s[np.isfinite(s)]
        if s.empty:
            continue
        summary[col] = {
            "count": int(s.size),
            "mean": float(s.mean()),
            "std": float(s.std(ddof=0)),
            "min": float(s.min()),
            "max": float(s.max()),
        }
    return summary


def write_crqa_outputs(
    out_dir: str | Path,
    df_metrics: pd.DataFrame,
    *,
    prefix: str = "crqa",
    coalesce: bool = False,
) -> list[Path]:
    """Write ``<prefix>_metrics.csv`` and ``<prefix>_summary.json``; return their paths.

    With ``coalesce`` the summary is computed after :func:`coalesce_undefined`
    (the CSV always keeps NaN so the raw result stays recoverable).
    """
    outp = Path(out_dir)
    outp.mkdir(parents=True, exist_ok=True)

    csv_path = outp / f"{prefix}_metrics.csv"
    df_metrics.to_csv(csv_path, index=False, float_format="%.6f")

    table = coalesce_undefined(df_metrics) if coalesce else df_metrics
    summary = summarize_metrics(table)
    summary["na_coalesced_to_zero"] = list(COALESCE_COLUMNS) if coalesce else []

    json_path = outp / f"{prefix}_summary.json"
    json_path.write_text(json.dumps(summary, indent=2, sort_keys=True), encoding="utf-8")
    return [csv_path, json_path]
