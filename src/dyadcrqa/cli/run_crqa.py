"""CLI: categorical CRQA over every dyad of a coded conversation table.

Example
-------
python -m dyadcrqa.cli.run_crqa \
  --input coded_utterances.csv \
  --out _out/crqa \
  --plot d001,d017 \
  --n-jobs -1

Outputs
-------
- crqa_metrics.csv (one row per dyad, NaN for undefined statistics)
- crqa_summary.json
- rp_<dyad_id>.png and drp_<dyad_id>.csv for each --plot dyad
- manifest.json
"""

from __future__ import annotations

import argparse
import json
import logging
import re
from pathlib import Path
from typing import List

from dyadcrqa.data.ingest import DyadSequences, load_dyads
from dyadcrqa.data.synthetic import random_dyads, tutorial_dyad
from dyadcrqa.orchestrator.batch import recurrence_for, run_batch
from dyadcrqa.report.aggregate import write_crqa_outputs
from dyadcrqa.rqa.metrics import diagonal_recurrence_profile
from dyadcrqa.rqa.params import CRQAParams, LAM_DIRECTIONS, MATCH_RULES
from dyadcrqa.utils.manifest import write_manifest
from dyadcrqa.viz.recurrence_plot import plot_matrix

logger = logging.getLogger(__name__)


def _parse_ids(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]


def _safe_name(dyad_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", dyad_id)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="dyadcrqa: categorical CRQA of parent-child number talk.")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", help="Long-format CSV/JSON with dyad_id, parent_code, child_code (and optional t).")
    src.add_argument("--demo", type=int, metavar="N", help="Run on the tutorial dyad plus N random dyads.")
    p.add_argument("--out", required=True, help="Output directory.")
    p.add_argument("--config", help="JSON file with CRQA parameters; command-line flags override it.")
    p.add_argument("--radius", type=float, default=None, help="Distance threshold (rule=distance only). Default 0.5.")
    p.add_argument("--delay", type=int, default=None, help="Embedding delay. Default 0.")
    p.add_argument("--embed", type=int, default=None, help="Embedding dimension. Default 1.")
    p.add_argument("--mindiagline", type=int, default=None, help="Minimum diagonal line length. Default 2.")
    p.add_argument("--minvertline", type=int, default=None, help="Minimum vertical line length. Default 2.")
    p.add_argument("--rule", choices=list(MATCH_RULES), default=None, help="Match rule. Default categorical.")
    p.add_argument("--lam-direction", choices=list(LAM_DIRECTIONS), default=None, help="Runs used for LAM/TT. Default both.")
    p.add_argument("--n-jobs", type=int, default=1, help="Parallel workers (-1 = all cores).")
    p.add_argument("--plot", default="", help="Comma-separated dyad ids to plot (recurrence plot + profile).")
    p.add_argument("--drp-window", type=int, default=10, help="Lag window for the diagonal recurrence profile.")
    p.add_argument(
        "--coalesce-na",
        action="store_true",
        help="Treat undefined DET/meanL/LAM/TT as 0 in the summary (the metrics CSV keeps NaN).",
    )
    p.add_argument("--seed", type=int, default=7, help="Seed for --demo dyads.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def params_from_args(args: argparse.Namespace) -> CRQAParams:
    data: dict = {}
    if args.config:
        cfg_path = Path(str(args.config))
        if not cfg_path.exists():
            raise SystemExit(f"Config not found: {cfg_path}")
        loaded = json.loads(cfg_path.read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            raise SystemExit(f"Config must be a JSON object: {cfg_path}")
        data.update(loaded)
    for key in ("radius", "delay", "embed", "mindiagline", "minvertline", "rule", "lam_direction"):
        v = getattr(args, key)
        if v is not None:
            data[key] = v
    try:
        return CRQAParams.from_mapping(data)
    except ValueError as exc:
        raise SystemExit(f"Invalid CRQA parameters: {exc}") from exc


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level)), format="%(levelname)s %(name)s: %(message)s")

    params = params_from_args(args)
    out_dir = Path(str(args.out))
    out_dir.mkdir(parents=True, exist_ok=True)

    if args.demo is not None:
        if int(args.demo) < 0:
            raise SystemExit("--demo must be >= 0")
        dyads: List[DyadSequences] = [tutorial_dyad(), *random_dyads(int(args.demo), seed=int(args.seed))]
    else:
        try:
            dyads = load_dyads(Path(str(args.input)))
        except (FileNotFoundError, ValueError) as exc:
            raise SystemExit(f"Cannot load {args.input}: {exc}") from exc

    df = run_batch(dyads, params, n_jobs=int(args.n_jobs))
    produced = write_crqa_outputs(out_dir, df, prefix="crqa", coalesce=bool(args.coalesce_na))

    by_id = {d.dyad_id: d for d in dyads}
    plotted: List[str] = []
    for dyad_id in _parse_ids(str(args.plot)):
        dyad = by_id.get(dyad_id)
        if dyad is None:
            logger.warning("--plot: unknown dyad %s", dyad_id)
            continue
        try:
            res = recurrence_for(dyad, params)
        except ValueError as exc:
            logger.warning("--plot: dyad %s not plotted: %s", dyad_id, exc)
            continue

        name = _safe_name(dyad_id)
        png = plot_matrix(
            res.matrix,
            out_dir / f"rp_{name}.png",
            title=f"dyad {dyad_id}",
            metrics={"rr": res.rr, "det": res.det, "lam": res.lam},
        )
        drp_csv = out_dir / f"drp_{name}.csv"
        diagonal_recurrence_profile(res.matrix, int(args.drp_window)).to_csv(drp_csv, index=False, float_format="%.6f")
        produced.extend([png, drp_csv])
        plotted.append(dyad_id)

    run_params = {
        "input": str(args.input) if args.input else None,
        "demo": args.demo,
        "out": str(out_dir),
        "crqa": params,
        "n_jobs": int(args.n_jobs),
        "coalesce_na": bool(args.coalesce_na),
        "plotted": plotted,
        "dyads": len(dyads),
    }
    write_manifest(out_dir, params=run_params, files=produced)

    n_err = int((df["status"] == "error").sum())
    print(f"CRQA: {len(df)} dyads, {n_err} failed -> {out_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
