#!/usr/bin/env python3
"""
Evaluation of one iteration's test predictions.

Group A is the positive class for precision, recall and F1. Confusion
matrix cells are named ``<actual>_as_<predicted>``.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np
from sklearn.metrics import confusion_matrix, roc_auc_score

from minority_window.config import LABEL_A, LABEL_B, CLASS_LABELS, DECISION_THRESHOLD
from minority_window.errors import DegenerateLabelsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfusionCounts:
    a_as_a: int
    a_as_b: int
    b_as_a: int
    b_as_b: int

    @property
    def total(self) -> int:
        return self.a_as_a + self.a_as_b + self.b_as_a + self.b_as_b


def _ratio(num: float, den: float) -> float:
    # Zero denominators give NaN rather than an exception or a zero
    if den == 0:
        return float("nan")
    return float(num) / float(den)


def threshold_predictions(proba_b, threshold: float = DECISION_THRESHOLD) -> np.ndarray:
    """Hard labels: group B when P(B) exceeds ``threshold``."""
    proba_b = np.asarray(proba_b, dtype=float)
    return np.where(proba_b > threshold, LABEL_B, LABEL_A).astype(object)


def confusion_counts(y_true, y_pred) -> ConfusionCounts:
    """2x2 counts over {A, B}; cells of absent labels are zero."""
    y_true = np.asarray(y_true).astype(str)
    y_pred = np.asarray(y_pred).astype(str)
    if len(y_true) == 0:
        return ConfusionCounts(0, 0, 0, 0)
    cm = confusion_matrix(y_true, y_pred, labels=list(CLASS_LABELS))
    return ConfusionCounts(
        a_as_a=int(cm[0, 0]), a_as_b=int(cm[0, 1]),
        b_as_a=int(cm[1, 0]), b_as_b=int(cm[1, 1]),
    )


def derived_metrics(counts: ConfusionCounts) -> Dict[str, float]:
    """Accuracy, precision, recall and F1 with group A as positive class."""
    accuracy = _ratio(counts.a_as_a + counts.b_as_b, counts.total)
    precision = _ratio(counts.a_as_a, counts.a_as_a + counts.b_as_a)
    recall = _ratio(counts.a_as_a, counts.a_as_a + counts.a_as_b)
    if np.isnan(precision) or np.isnan(recall):
        f1 = float("nan")
    else:
        f1 = _ratio(2 * precision * recall, precision + recall)
    return {"accuracy": accuracy, "precision": precision, "recall": recall, "f1": f1}


def roc_auc(y_true, proba_b) -> float:
    """
    Rank-based ROC AUC of P(group B) against the true labels.

    Raises
    ------
    DegenerateLabelsError
        If the labels hold a single class.
    """
    y_true = np.asarray(y_true).astype(str)
    present = set(np.unique(y_true))
    if present != set(CLASS_LABELS):
        raise DegenerateLabelsError(f"AUC needs both classes in the test set, found {sorted(present)}")
    return float(roc_auc_score(y_true == LABEL_B, np.asarray(proba_b, dtype=float)))


@dataclass(frozen=True)
class Evaluation:
    counts: ConfusionCounts
    auc: float
    accuracy: float
    precision: float
    recall: float
    f1: float

    def to_dict(self) -> Dict[str, float]:
        out = asdict(self.counts)
        out.update(auc=self.auc, accuracy=self.accuracy, precision=self.precision,
                   recall=self.recall, f1=self.f1)
        return out


class Evaluator:
    def __init__(self, threshold: float = DECISION_THRESHOLD):
        self.threshold = threshold

    def confusion(self, y_true, proba_b) -> ConfusionCounts:
        """Thresholded confusion counts; never raises on single-class labels."""
        y_true = np.asarray(y_true)
        proba_b = np.asarray(proba_b, dtype=float)
        if len(y_true) != len(proba_b):
            raise ValueError(f"{len(y_true)} labels but {len(proba_b)} predictions")
        return confusion_counts(y_true, threshold_predictions(proba_b, self.threshold))

    def evaluate(self, y_true, proba_b) -> Evaluation:
        counts = self.confusion(y_true, proba_b)
        metrics = derived_metrics(counts)
        auc = roc_auc(y_true, proba_b)
        logger.debug(f"Confusion {counts}, AUC {auc:.4f}")
        return Evaluation(counts=counts, auc=auc, **metrics)
