from __future__ import annotations

import json

import pandas as pd
import pytest


def test_run_crqa_cli_contract() -> None:
    from dyadcrqa.cli.run_crqa import build_parser

    p = build_parser()
    opts = {a.dest for a in p._actions}  # noqa: SLF001

    for name in ("input", "demo", "radius", "delay", "embed", "mindiagline", "minvertline", "n_jobs", "plot"):
        assert name in opts

    ns = p.parse_args(["--demo", "2", "--out", "_tmp"])
    assert ns.radius is None
    assert ns.n_jobs == 1


def test_run_crqa_demo_writes_outputs(tmp_path) -> None:
    from dyadcrqa.cli.run_crqa import main

    out = tmp_path / "out"
    rc = main(["--demo", "3", "--out", str(out), "--plot", "tutorial,missing", "--coalesce-na"])
    assert rc == 0

    metrics = pd.read_csv(out / "crqa_metrics.csv")
    assert len(metrics) == 4
    assert metrics.loc[0, "dyad_id"] == "tutorial"
    assert (out / "rp_tutorial.png").exists()
    assert (out / "drp_tutorial.csv").exists()

    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["schema"] == "dyadcrqa_manifest_v1"
    assert manifest["params"]["crqa"]["mindiagline"] == 2
    assert manifest["params"]["plotted"] == ["tutorial"]
    files = {f["file"] for f in manifest["files"]}
    assert {"crqa_metrics.csv", "crqa_summary.json", "rp_tutorial.png"} <= files
    assert all(isinstance(f["sha256"], str) for f in manifest["files"])


def test_run_crqa_config_file(tmp_path) -> None:
    from dyadcrqa.cli.run_crqa import build_parser, params_from_args

    cfg = tmp_path / "crqa.json"
    cfg.write_text(json.dumps({"mindiagline": 3, "lam_direction": "vertical"}), encoding="utf-8")
    ns = build_parser().parse_args(["--demo", "0", "--out", "x", "--config", str(cfg), "--mindiagline", "4"])
    params = params_from_args(ns)
    assert params.mindiagline == 4
    assert params.lam_direction == "vertical"


def test_run_crqa_config_must_be_object(tmp_path) -> None:
    from dyadcrqa.cli.run_crqa import build_parser, params_from_args

    cfg = tmp_path / "crqa.json"
    cfg.write_text(json.dumps([1, 2]), encoding="utf-8")
    ns = build_parser().parse_args(["--demo", "0", "--out", "x", "--config", str(cfg)])
    with pytest.raises(SystemExit, match="JSON object"):
        params_from_args(ns)


def test_check_codes_cli(tmp_path) -> None:
    from dyadcrqa.cli.check_codes import main

    good = tmp_path / "good.csv"
    pd.DataFrame({"dyad_id": ["a", "a"], "parent_code": [1, 2], "child_code": [2, 1]}).to_csv(good, index=False)
    assert main(["--input", str(good), "--out", str(tmp_path / "g")]) == 0

    bad = tmp_path / "bad.csv"
    pd.DataFrame(
        {"dyad_id": ["a", "a", "b"], "parent_code": [1, 3, 5], "child_code": [2, 4, 6]}
    ).to_csv(bad, index=False)
    assert main(["--input", str(bad), "--out", str(tmp_path / "b")]) == 1

    report = pd.read_csv(tmp_path / "b" / "coding_violations.csv")
    assert report["dyad_id"].tolist() == ["a", "b"]
    assert report["index"].tolist() == [1, 0]


def test_check_codes_reports_raw_unparseable_code(tmp_path) -> None:
    from dyadcrqa.cli.check_codes import main

    bad = tmp_path / "typo.csv"
    pd.DataFrame({"dyad_id": ["a", "a"], "parent_code": [1, 2], "child_code": ["2", "x"]}).to_csv(bad, index=False)
    assert main(["--input", str(bad), "--out", str(tmp_path / "t")]) == 1

    report = pd.read_csv(tmp_path / "t" / "coding_violations.csv", dtype={"child_code": str})
    assert report["index"].tolist() == [1]
    assert report["child_code"].tolist() == ["x"]
    assert report["reason"].tolist() == ["non-integer code"]


def test_manifest_writer_contract(tmp_path) -> None:
    from dyadcrqa.utils.manifest import write_manifest

    out = tmp_path / "out"
    out.mkdir(parents=True, exist_ok=True)
    (out / "a.txt").write_text("hello", encoding="utf-8")

    mpath = write_manifest(out, params={"tool": "test"}, files=["a.txt", "missing.csv"])
    data = json.loads(mpath.read_text(encoding="utf-8"))

    assert data["schema"] == "dyadcrqa_manifest_v1"
    assert "python" in data
    assert data["params"]["tool"] == "test"
    assert data["files"][0]["file"] == "a.txt"
    assert data["files"][0]["bytes"] == 5
    assert isinstance(data["files"][0]["sha256"], str)
    assert data["files"][1]["sha256"] is None


def test_plot_without_matrix_uses_empty_grid(tmp_path) -> None:
    import pytest

    from dyadcrqa.viz.recurrence_plot import plot_matrix

    png = plot_matrix(None, tmp_path / "rp_empty.png", n=10, metrics={"rr": 0.0, "det": float("nan")})
    assert png.exists() and png.stat().st_size > 0

    with pytest.raises(ValueError):
        plot_matrix(None, tmp_path / "rp_bad.png")
