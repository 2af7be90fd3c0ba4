"""Tests for the experiment runner and result aggregation."""

import math
from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from minority_window.config import BALANCING_PRESETS, ScheduleConfig
from minority_window.errors import ConfigurationError, InsufficientDataError
from minority_window.models import LogisticRegressionAdapter, RandomForestAdapter, get_classifier
from minority_window.runner import (
    EvaluationRecord, ExperimentRunner, finalize_record, run_experiment
)


@pytest.fixture
def forest():
    return get_classifier("RandomForest", n_estimators=15)


@pytest.fixture
def logistic():
    return get_classifier("LogisticRegression")


def test_sweep_produces_one_ordered_record_per_iteration(pool, small_schedule, logistic):
    results = run_experiment(pool, small_schedule, logistic)

    assert len(results) == small_schedule.num_iterations
    assert [r.index for r in results.records] == list(range(1, small_schedule.num_iterations + 1))
    assert results.failed_iterations() == []
    for record in results.records:
        assert record.status == "ok"
        assert record.a_as_a + record.a_as_b + record.b_as_a + record.b_as_b == record.test_A + record.test_B
        assert 0.0 <= record.accuracy <= 1.0
        assert 0.0 <= record.auc <= 1.0
        assert not record.balanced


def test_finalize_ratios(pool, small_schedule, logistic):
    results = run_experiment(pool, small_schedule, logistic)
    for record in results.records:
        total = record.train_A + record.train_B + record.test_A + record.test_B
        assert record.percent_A_to_all == pytest.approx(100 * (record.train_A + record.test_A) / total)
        assert record.percent_true_A == pytest.approx(100 * record.a_as_a / record.test_A)
        assert record.percent_true_B == pytest.approx(100 * record.b_as_b / record.test_B)
    shares = [r.percent_A_to_all for r in results.records]
    assert shares == sorted(shares, reverse=True)


def test_importances_and_top_k(pool, small_schedule, logistic):
    results = run_experiment(pool, small_schedule, logistic)
    frame = results.importance_frame()
    assert len(frame) == small_schedule.num_iterations * len(pool.feature_names)
    assert set(frame["feature"]) == set(pool.feature_names)

    top = results.top_k_importances(2)
    assert top.groupby("index").size().tolist() == [2] * small_schedule.num_iterations
    for _, group in top.groupby("index"):
        assert group["magnitude"].is_monotonic_decreasing
        full = frame[frame["index"] == group["index"].iloc[0]]
        assert group["magnitude"].iloc[0] == pytest.approx(full["score"].abs().max())

    with pytest.raises(ValueError):
        results.top_k_importances(0)


def test_identical_seeds_give_identical_results(pool, small_schedule, forest):
    balancing = BALANCING_PRESETS["rose_3x_p07"]
    first = run_experiment(pool, small_schedule, forest, balancing=balancing)
    second = run_experiment(pool, small_schedule, forest, balancing=balancing)
    pd.testing.assert_frame_equal(first.to_frame(), second.to_frame())
    pd.testing.assert_frame_equal(first.importance_frame(), second.importance_frame())


def test_parallel_matches_sequential(pool, small_schedule, logistic):
    sequential = run_experiment(pool, small_schedule, logistic, n_jobs=1)
    parallel = run_experiment(pool, small_schedule, logistic, n_jobs=2)
    pd.testing.assert_frame_equal(sequential.to_frame(), parallel.to_frame())


def test_balancing_from_second_iteration(pool, small_schedule, forest):
    results = run_experiment(pool, small_schedule, forest, balancing=BALANCING_PRESETS["rose_2x_p05"])
    first, *rest = results.records
    assert not first.balanced
    assert (first.fit_A, first.fit_B) == (first.train_A, first.train_B)
    for record in rest:
        assert record.balanced
        assert record.fit_A == record.fit_B == record.train_B
        assert record.shortfall_A == record.shortfall_B == 0


def test_failed_iterations_are_recorded_and_sweep_continues(pool, small_schedule, logistic):
    schedule = replace(small_schedule, initial_test_A_size=25, on_insufficient="raise")
    results = run_experiment(pool, schedule, logistic)

    assert len(results) == schedule.num_iterations
    assert results.failed_iterations() == [1, 2]
    failed = results.records[0]
    assert failed.status == "failed"
    assert "InsufficientDataError" in failed.error
    assert math.isnan(failed.auc) and math.isnan(failed.accuracy)
    assert math.isnan(failed.percent_A_to_all)
    assert all(r.status == "ok" for r in results.records[2:])


def test_configuration_errors_are_fatal(pool, small_schedule, logistic):
    with pytest.raises(ConfigurationError):
        run_experiment(pool, replace(small_schedule, num_iterations=0), logistic)
    with pytest.raises(ConfigurationError):
        ExperimentRunner(pool, small_schedule, logistic, n_jobs=0)


def test_finalize_record_handles_empty_classes():
    record = finalize_record(EvaluationRecord(
        index=1, train_A=40, train_B=40, test_A=0, test_B=20,
        a_as_a=0, a_as_b=0, b_as_a=5, b_as_b=15,
    ))
    assert record.percent_A_to_all == pytest.approx(40.0)
    assert math.isnan(record.percent_true_A)
    assert record.percent_true_B == pytest.approx(75.0)


def test_metadata(pool, small_schedule, logistic):
    results = run_experiment(pool, small_schedule, logistic)
    assert results.metadata["schedule"]["num_iterations"] == small_schedule.num_iterations
    assert results.metadata["classifier"]["classifier"] == "LogisticRegression"
    assert results.metadata["balancing"] is None


def test_negative_seed_is_fatal(pool, small_schedule, logistic):
    with pytest.raises(ConfigurationError):
        run_experiment(pool, replace(small_schedule, base_seed=-1), logistic)


@pytest.mark.parametrize("overrides", [
    {"fixed_group_B_size": 100},
    {"initial_group_A_size": 120},
])
def test_schedule_larger_than_pool_is_fatal(pool, small_schedule, logistic, overrides):
    with pytest.raises(InsufficientDataError):
        ExperimentRunner(pool, replace(small_schedule, **overrides), logistic)


class BrokenLogisticRegression(LogisticRegressionAdapter):
    """Raises on the ``fail_on``-th call of ``stage``."""

    def __init__(self, stage, fail_on=2):
        super().__init__()
        self.stage = stage
        self.fail_on = fail_on
        self.calls = {"fit": 0, "predict": 0}

    def _maybe_fail(self, stage):
        self.calls[stage] += 1
        if stage == self.stage and self.calls[stage] == self.fail_on:
            raise RuntimeError(f"{stage} failed")

    def fit(self, training_set, random_state=None):
        self._maybe_fail("fit")
        return super().fit(training_set, random_state=random_state)

    def predict_proba(self, model, rows):
        self._maybe_fail("predict")
        return super().predict_proba(model, rows)


@pytest.mark.parametrize("stage", ["fit", "predict"])
def test_model_failure_keeps_partition_sizes(pool, small_schedule, stage):
    classifier = BrokenLogisticRegression(stage)
    results = run_experiment(pool, small_schedule, classifier, balancing=BALANCING_PRESETS["rose_2x_p05"])

    assert len(results) == small_schedule.num_iterations
    assert results.failed_iterations() == [2]
    failed = results.records[1]
    assert failed.error == f"RuntimeError: {stage} failed"
    assert failed.train_A == small_schedule.train_a_count(2)
    assert failed.train_B == small_schedule.train_b_count()
    assert failed.test_A == small_schedule.test_a_size(2)
    assert failed.test_B == small_schedule.initial_test_B_size
    assert failed.balanced
    assert failed.fit_A == failed.fit_B == failed.train_B
    for name in ("a_as_a", "b_as_b", "auc", "accuracy", "precision", "recall", "f1", "percent_true_A"):
        assert math.isnan(getattr(failed, name))
    assert not math.isnan(failed.percent_A_to_all)

    assert 2 not in set(results.importance_frame()["index"])
    assert all(r.status == "ok" for r in results.records if r.index != 2)


def test_single_class_test_set_keeps_confusion_cells(pool, small_schedule, logistic):
    # Iteration 1 draws all 60 group A rows for training, leaving no group A test rows
    schedule = replace(small_schedule, num_iterations=2, initial_group_A_size=90)
    results = run_experiment(pool, schedule, logistic)

    assert results.failed_iterations() == [1]
    failed = results.records[0]
    assert "DegenerateLabelsError" in failed.error
    assert failed.test_A == 0
    assert failed.a_as_a == failed.a_as_b == 0
    assert failed.b_as_a + failed.b_as_b == failed.test_B == schedule.initial_test_B_size
    assert math.isnan(failed.auc)
    assert math.isnan(failed.percent_true_A)
    assert failed.percent_true_B == pytest.approx(100 * failed.b_as_b / failed.test_B)
    assert results.records[1].status == "ok"


def test_weighted_forest_sweep(pool, small_schedule):
    forest = RandomForestAdapter(majority_weight=3.0, n_estimators=15)
    results = run_experiment(pool, small_schedule, forest)

    assert results.failed_iterations() == []
    assert results.metadata["classifier"]["majority_weight"] == 3.0
    frame = results.importance_frame()
    assert (frame["score"] >= 0).all()
    sums = frame.groupby("index")["score"].sum()
    np.testing.assert_allclose(sums.values, 1.0)
