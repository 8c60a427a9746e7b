from __future__ import annotations

import json
import math

import numpy as np
import pandas as pd
import pytest

from dyadcrqa.data.ingest import DyadSequences, dyads_to_frame, load_dyads
from dyadcrqa.data.synthetic import random_dyads, tutorial_dyad
from dyadcrqa.orchestrator.batch import RESULT_COLUMNS, recurrence_for, run_batch
from dyadcrqa.report.aggregate import coalesce_undefined, summarize_metrics, write_crqa_outputs
from dyadcrqa.rqa.params import CRQAParams


def _bad_dyad() -> DyadSequences:
    return DyadSequences(dyad_id="bad", parent=np.array([1, 3]), child=np.array([2, 4]))


def _silent_dyad() -> DyadSequences:
    return DyadSequences(dyad_id="silent", parent=np.full(10, 2), child=np.full(10, 1))


def test_load_dyads_with_aliases(tmp_path) -> None:
    df = pd.DataFrame(
        {
            "Dyad": ["b", "b", "a", "a", "b"],
            "Turn": [2, 0, 0, 1, 1],
            "Parent": [1, 3, 1, 2, 5],
            "Child": [2, 6, 2, 1, 4],
        }
    )
    path = tmp_path / "codes.csv"
    df.to_csv(path, index=False)

    dyads = load_dyads(path)
    assert [d.dyad_id for d in dyads] == ["b", "a"]
    assert dyads[0].parent.tolist() == [3, 5, 1]
    assert dyads[0].child.tolist() == [6, 4, 2]
    assert dyads[1].n == 2


def test_load_dyads_json_and_missing_columns(tmp_path) -> None:
    path = tmp_path / "codes.json"
    frame = dyads_to_frame([tutorial_dyad()])
    path.write_text(frame.to_json(orient="records"), encoding="utf-8")
    dyads = load_dyads(path)
    assert dyads[0].n == 15

    bad = tmp_path / "bad.csv"
    pd.DataFrame({"dyad_id": ["a"], "parent_code": [1]}).to_csv(bad, index=False)
    with pytest.raises(ValueError):
        load_dyads(bad)

    with pytest.raises(FileNotFoundError):
        load_dyads(tmp_path / "nope.csv")


def test_unparseable_code_kept_for_validation(tmp_path) -> None:
    path = tmp_path / "typo.csv"
    pd.DataFrame(
        {"dyad_id": ["a", "a", "b", "b"], "parent_code": [1, 2, 1, 2], "child_code": ["2", "x", "2", "1"]}
    ).to_csv(path, index=False)

    dyads = load_dyads(path)
    assert dyads[0].child.tolist() == [2.0, "x"]
    assert dyads[1].child.tolist() == [2.0, 1.0]

    df = run_batch(dyads, CRQAParams())
    assert df["status"].tolist() == ["error", "ok"]
    assert "'x'" in df.loc[0, "error"]


def test_run_batch_reports_failures_per_dyad() -> None:
    df = run_batch([tutorial_dyad(), _bad_dyad(), _silent_dyad()], CRQAParams())

    assert list(df.columns) == list(RESULT_COLUMNS)
    assert df["dyad_id"].tolist() == ["tutorial", "bad", "silent"]
    assert df["status"].tolist() == ["ok", "error", "ok"]
    assert "mirroring" in df.loc[1, "error"]
    assert math.isnan(df.loc[1, "rr"])
    assert df.loc[2, "rr"] == 0.0
    assert not bool(df.loc[2, "has_recurrence"])
    assert math.isnan(df.loc[2, "det"])


def test_run_batch_parallel_matches_serial() -> None:
    dyads = random_dyads(6, seed=4, min_len=20, max_len=50)
    serial = run_batch(dyads, n_jobs=1)
    parallel = run_batch(dyads, n_jobs=2)
    pd.testing.assert_frame_equal(serial, parallel)


def test_run_batch_rejects_duplicate_ids() -> None:
    with pytest.raises(ValueError):
        run_batch([tutorial_dyad("x"), tutorial_dyad("x")])


def test_recurrence_on_demand() -> None:
    res = recurrence_for(_silent_dyad(), CRQAParams())
    assert res.matrix.shape == (10, 10)
    assert not res.matrix.values.any()


def test_coalesce_is_explicit() -> None:
    df = run_batch([_silent_dyad(), _bad_dyad()])
    filled = coalesce_undefined(df)

    assert filled.loc[0, "det"] == 0.0
    assert filled.loc[0, "tt"] == 0.0
    assert math.isnan(filled.loc[1, "det"])
    assert math.isnan(df.loc[0, "det"])


def test_summary_and_outputs(tmp_path) -> None:
    df = run_batch([tutorial_dyad(), _silent_dyad(), _bad_dyad()])

    s = summarize_metrics(df)
    assert s["dyads"] == 3
    assert s["dyads_ok"] == 2
    assert s["dyads_failed"] == 1
    assert s["dyads_without_recurrence"] == 1
    assert s["det"]["count"] == 1

    paths = write_crqa_outputs(tmp_path, df, coalesce=True)
    assert [p.name for p in paths] == ["crqa_metrics.csv", "crqa_summary.json"]
    summary = json.loads(paths[1].read_text(encoding="utf-8"))
    assert summary["det"]["count"] == 2
    assert "det" in summary["na_coalesced_to_zero"]

    back = pd.read_csv(paths[0])
    assert len(back) == 3
    assert back["det"].isna().sum() == 2
