"""Tests for confusion-matrix metrics and AUC."""

import math

import numpy as np
import pytest

from minority_window.config import LABEL_A, LABEL_B
from minority_window.errors import DegenerateLabelsError
from minority_window.evaluation import (
    ConfusionCounts, Evaluator, confusion_counts, derived_metrics, roc_auc, threshold_predictions
)


def test_reference_confusion_matrix():
    metrics = derived_metrics(ConfusionCounts(a_as_a=120, a_as_b=30, b_as_a=10, b_as_b=140))
    assert round(metrics["accuracy"], 3) == 0.867
    assert round(metrics["precision"], 3) == 0.923
    assert round(metrics["recall"], 3) == 0.8
    assert round(metrics["f1"], 3) == 0.857


def test_zero_denominators_are_nan():
    metrics = derived_metrics(ConfusionCounts(a_as_a=0, a_as_b=0, b_as_a=0, b_as_b=5))
    assert metrics["accuracy"] == 1.0
    assert math.isnan(metrics["precision"])
    assert math.isnan(metrics["recall"])
    assert math.isnan(metrics["f1"])

    metrics = derived_metrics(ConfusionCounts(a_as_a=0, a_as_b=4, b_as_a=3, b_as_b=5))
    assert metrics["precision"] == 0.0
    assert metrics["recall"] == 0.0
    assert math.isnan(metrics["f1"])


def test_threshold_at_half():
    preds = threshold_predictions([0.1, 0.5, 0.51, 0.9])
    assert list(preds) == [LABEL_A, LABEL_A, LABEL_B, LABEL_B]


def test_absent_labels_give_zero_cells():
    counts = confusion_counts([LABEL_A] * 4, [LABEL_A, LABEL_B, LABEL_A, LABEL_A])
    assert counts == ConfusionCounts(a_as_a=3, a_as_b=1, b_as_a=0, b_as_b=0)
    assert counts.total == 4


def test_auc_requires_both_classes():
    with pytest.raises(DegenerateLabelsError):
        roc_auc([LABEL_B, LABEL_B], [0.2, 0.9])
    with pytest.raises(ValueError):
        Evaluator().evaluate([LABEL_A, LABEL_A], [0.2, 0.9])


def test_auc_ranks_group_b_probability():
    y = [LABEL_A, LABEL_A, LABEL_B, LABEL_B]
    assert roc_auc(y, [0.1, 0.2, 0.8, 0.9]) == 1.0
    assert roc_auc(y, [0.9, 0.8, 0.2, 0.1]) == 0.0
    assert roc_auc(y, [0.1, 0.8, 0.2, 0.9]) == 0.75


def test_evaluate_summary():
    rng = np.random.default_rng(0)
    y = np.array([LABEL_A] * 30 + [LABEL_B] * 20, dtype=object)
    proba = np.clip(np.where(y == LABEL_B, 0.7, 0.3) + rng.normal(0, 0.25, len(y)), 0, 1)

    evaluation = Evaluator().evaluate(y, proba)
    assert evaluation.counts.total == len(y)
    assert 0.0 <= evaluation.accuracy <= 1.0
    assert 0.0 <= evaluation.auc <= 1.0
    row = evaluation.to_dict()
    assert set(row) == {"a_as_a", "a_as_b", "b_as_a", "b_as_b", "auc", "accuracy", "precision", "recall", "f1"}


def test_length_mismatch():
    with pytest.raises(ValueError):
        Evaluator().evaluate([LABEL_A, LABEL_B], [0.5])
