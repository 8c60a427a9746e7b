"""CLI: check the parent/child code mirroring of a coded conversation table.

Writes ``coding_violations.csv`` (dyad_id, index, parent_code, child_code,
reason) and exits 1 when any violation is found, so it can gate an analysis
run in scripts and CI.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

import pandas as pd

from dyadcrqa.coding.events import find_mirroring_violations
from dyadcrqa.data.ingest import load_dyads

logger = logging.getLogger(__name__)

VIOLATION_COLUMNS = ["dyad_id", "index", "parent_code", "child_code", "reason"]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="dyadcrqa: report code pairs that break parent/child mirroring.")
    p.add_argument("--input", required=True, help="Long-format CSV/JSON with dyad_id, parent_code, child_code.")
    p.add_argument("--out", required=True, help="Output directory.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def collect_violations(path: str | Path) -> pd.DataFrame:
    frames = []
    for dyad in load_dyads(path):
        v = find_mirroring_violations(dyad.parent.tolist(), dyad.child.tolist())
        if not v.empty:
            v.insert(0, "dyad_id", dyad.dyad_id)
            frames.append(v)
    if not frames:
        return pd.DataFrame(columns=VIOLATION_COLUMNS)
    return pd.concat(frames, ignore_index=True)[VIOLATION_COLUMNS]


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level)), format="%(levelname)s %(name)s: %(message)s")

    out_dir = Path(str(args.out))
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        violations = collect_violations(Path(str(args.input)))
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Cannot load {args.input}: {exc}") from exc

    out_csv = out_dir / "coding_violations.csv"
    violations.to_csv(out_csv, index=False)

    if violations.empty:
        print(f"OK: no coding violations in {args.input}")
        return 0

    n_dyads = int(violations["dyad_id"].nunique())
    logger.warning("%d violating timepoint(s) in %d dyad(s)", len(violations), n_dyads)
    print(f"ERROR: {len(violations)} coding violation(s) in {n_dyads} dyad(s), see {out_csv}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
