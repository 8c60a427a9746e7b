from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd


# Long format: one row per timepoint, grouped by dyad.
DYAD_ALIASES = ("dyad_id", "dyad", "id", "family_id", "pair_id")
PARENT_ALIASES = ("parent_code", "parent", "p_code", "parent_state")
CHILD_ALIASES = ("child_code", "child", "c_code", "child_state")
ORDER_ALIASES = ("t", "turn", "utterance", "timepoint", "time_s")


@dataclass(frozen=True)
class DyadSequences:
    """Aligned parent/child code sequences for one conversation."""

    dyad_id: str
    parent: np.ndarray
    child: np.ndarray

    @property
    def n(self) -> int:
        return int(len(self.parent))


def _first_present(df: pd.DataFrame, aliases: tuple[str, ...]) -> str | None:
    for c in aliases:
        if c in df.columns:
            return c
    return None


def read_table(path: str | Path) -> pd.DataFrame:
    """Read a CSV or JSON (records) file and normalize headers."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))

    if p.suffix.lower() == ".csv":
        df = pd.read_csv(p)
    elif p.suffix.lower() == ".json":
        data: Any = json.loads(p.read_text(encoding="utf-8"))
        df = pd.DataFrame(data)
    else:
        raise ValueError(f"Unsupported input: {p.suffix}")

    if df.empty:
        raise ValueError("Empty input dataset")

    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def canonicalize(df: pd.DataFrame) -> pd.DataFrame:
    """Rename aliased columns to ``dyad_id``, ``parent_code``, ``child_code`` (and ``t``)."""
    out = df.copy()
    out.columns = [str(c).strip().lower() for c in out.columns]

    renames: dict[str, str] = {}
    for canon, aliases in (
        ("dyad_id", DYAD_ALIASES),
        ("parent_code", PARENT_ALIASES),
        ("child_code", CHILD_ALIASES),
    ):
        col = _first_present(out, aliases)
        if col is None:
            raise ValueError(f"Missing required column: {canon} (or an alias)")
        if col != canon:
            renames[col] = canon

    order_col = _first_present(out, ORDER_ALIASES)
    if order_col is not None and order_col != "t":
        renames[order_col] = "t"

    out = out.rename(columns=renames)
    out["dyad_id"] = out["dyad_id"].astype(str).str.strip()
    for c in ("parent_code", "child_code"):
        num = pd.to_numeric(out[c], errors="coerce")
        if num.notna().sum() == out[c].notna().sum():
            out[c] = num
        else:
            # Unparseable codes stay as read so validation can report them.
            out[c] = num.astype(object).where(num.notna(), out[c])
    return out


def split_dyads(df: pd.DataFrame) -> list[DyadSequences]:
    """Group a canonical long table into per-dyad sequences, in first-seen order.

    Rows are ordered by ``t`` within a dyad when present (stable sort), else
    kept in file order.
    """
    order = pd.unique(df["dyad_id"])
    groups = dict(tuple(df.groupby("dyad_id", sort=False)))

    dyads: list[DyadSequences] = []
    for dyad_id in order:
        sub = groups[dyad_id]
        if "t" in sub.columns:
            sub = sub.sort_values("t", kind="mergesort")
        dyads.append(
            DyadSequences(
                dyad_id=str(dyad_id),
                parent=sub["parent_code"].to_numpy(),
                child=sub["child_code"].to_numpy(),
            )
        )
    return dyads


def load_dyads(path: str | Path) -> list[DyadSequences]:
    """Load a long-format dyad table (CSV or JSON) into per-dyad sequences.

    Codes are not validated here; that is done per dyad before analysis so a
    single bad conversation does not block the rest.
    """
    return split_dyads(canonicalize(read_table(path)))


def dyads_to_frame(dyads: list[DyadSequences]) -> pd.DataFrame:
    """Inverse of :func:`split_dyads`, producing the canonical long table."""
    frames = [
        pd.DataFrame(
            {
                "dyad_id": d.dyad_id,
                "t": np.arange(d.n, dtype=int),
                "parent_code": np.asarray(d.parent),
                "child_code": np.asarray(d.child),
            }
        )
        for d in dyads
    ]
    if not frames:
        return pd.DataFrame(columns=["dyad_id", "t", "parent_code", "child_code"])
    return pd.concat(frames, ignore_index=True)
