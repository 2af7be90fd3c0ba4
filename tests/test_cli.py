"""Tests for the command line entry point."""

import os

import pandas as pd

from minority_window.cli import main


def _write_data(tmp_path, source_frame):
    path = tmp_path / "data.csv"
    source_frame.to_csv(path, index=False)
    return str(path)


def test_run_command_writes_results(tmp_path, source_frame):
    data = _write_data(tmp_path, source_frame)
    out_dir = tmp_path / "results"
    exit_code = main([
        "run", "--data", data, "--label-column", "label", "--group-a", "case", "--group-b", "control",
        "--per-class", "60", "--classifier", "LogisticRegression",
        "--iterations", "4", "--initial-size", "60", "--step-size", "3",
        "--test-a", "20", "--test-b", "20", "--group-b-size", "60",
        "--balancing", "rose_2x_p05", "--top-k", "2", "--output-dir", str(out_dir),
        "--log-file", str(tmp_path / "run.log"),
    ])
    assert exit_code == 0
    results = pd.read_csv(out_dir / "results.csv")
    assert len(results) == 4
    assert (results["status"] == "ok").all()
    assert os.path.exists(out_dir / "top2_importances.csv")
    assert os.path.getsize(tmp_path / "run.log") > 0


def test_invalid_schedule_exits_with_error(tmp_path, source_frame):
    data = _write_data(tmp_path, source_frame)
    exit_code = main([
        "run", "--data", data, "--label-column", "label", "--group-a", "case", "--group-b", "control",
        "--per-class", "60", "--iterations", "0", "--output-dir", str(tmp_path / "out"),
    ])
    assert exit_code == 1


def test_missing_data_file(tmp_path):
    exit_code = main([
        "run", "--data", str(tmp_path / "nope.csv"), "--label-column", "label",
        "--group-a", "case", "--group-b", "control",
    ])
    assert exit_code == 1


def test_no_command_prints_help():
    assert main([]) == 1


def test_non_numeric_feature_exits_with_error(tmp_path, source_frame):
    data = _write_data(tmp_path, source_frame.assign(site="north"))
    exit_code = main([
        "run", "--data", data, "--label-column", "label", "--group-a", "case", "--group-b", "control",
        "--per-class", "60", "--output-dir", str(tmp_path / "out"),
    ])
    assert exit_code == 1
