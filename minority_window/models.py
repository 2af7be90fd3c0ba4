#!/usr/bin/env python3
"""
Classifier adapters used by the experiment runner.

Every adapter exposes the same three operations: ``fit`` on a labeled
training set, ``predict_proba`` returning P(group B) per row, and
``feature_importance`` returning one score per feature.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression

from minority_window.config import MODEL_CONFIGS, LABEL_A, LABEL_B
from minority_window.data_io import LabeledSet
from minority_window.errors import ConfigurationError, DegenerateLabelsError

logger = logging.getLogger(__name__)


@dataclass
class FittedModel:
    estimator: Any
    feature_names: List[str]


class ClassifierAdapter(ABC):
    """Base class for pluggable classifiers."""

    name: str = ""

    def __init__(self, **params):
        self.params = {**MODEL_CONFIGS.get(self.name, {}), **params}

    @abstractmethod
    def build(self, random_state: Optional[int] = None):
        """Return an unfitted estimator."""

    @abstractmethod
    def feature_importance(self, model: FittedModel) -> pd.Series:
        """Per-feature score indexed by feature name."""

    def fit(self, training_set: LabeledSet, random_state: Optional[int] = None) -> FittedModel:
        counts = training_set.class_counts()
        if min(counts.values()) == 0:
            raise DegenerateLabelsError(f"Cannot fit {self.name} on a single-class training set: {counts}")
        estimator = self.build(random_state)
        estimator.fit(training_set.X.values, training_set.y.astype(str))
        logger.debug(f"Fitted {self.name} on {len(training_set)} rows {counts}")
        return FittedModel(estimator=estimator, feature_names=training_set.feature_names)

    def predict_proba(self, model: FittedModel, rows) -> np.ndarray:
        """Probability of group B for every row."""
        X = rows.X if isinstance(rows, LabeledSet) else rows
        X = np.asarray(X, dtype=float)
        proba = model.estimator.predict_proba(X)
        classes = list(model.estimator.classes_)
        return proba[:, classes.index(LABEL_B)]

    def describe(self) -> Dict[str, Any]:
        return {"classifier": self.name, **self.params}


class RandomForestAdapter(ClassifierAdapter):
    """
    Random forest with optional majority-class weighting.

    ``majority_weight`` sets the weight of group B relative to group A
    (3.0 reproduces the weighted forest). Importance is the mean decrease
    in Gini impurity, which is always non-negative.
    """

    name = "RandomForest"

    def __init__(self, majority_weight: Optional[float] = None, **params):
        super().__init__(**params)
        if majority_weight is not None and majority_weight <= 0:
            raise ConfigurationError(f"majority_weight must be positive, got {majority_weight}")
        self.majority_weight = majority_weight

    def build(self, random_state=None):
        class_weight = None
        if self.majority_weight is not None:
            class_weight = {LABEL_A: 1.0, LABEL_B: float(self.majority_weight)}
        return RandomForestClassifier(class_weight=class_weight, random_state=random_state, **self.params)

    def feature_importance(self, model):
        return pd.Series(model.estimator.feature_importances_, index=model.feature_names, name="importance")

    def describe(self):
        return {**super().describe(), "majority_weight": self.majority_weight}


class LogisticRegressionAdapter(ClassifierAdapter):
    """
    Logistic regression on all features.

    Importance is the signed coefficient; a positive value pushes
    predictions towards group B.
    """

    name = "LogisticRegression"

    def build(self, random_state=None):
        return LogisticRegression(random_state=random_state, **self.params)

    def feature_importance(self, model):
        return pd.Series(model.estimator.coef_[0], index=model.feature_names, name="importance")


CLASSIFIERS = {
    "RandomForest": RandomForestAdapter,
    "LogisticRegression": LogisticRegressionAdapter,
}


def get_classifier(name: str, **overrides) -> ClassifierAdapter:
    """
    Build a classifier adapter by name.

    Parameters
    ----------
    name : str
        "RandomForest" or "LogisticRegression"
    **overrides
        Constructor arguments; estimator parameters override MODEL_CONFIGS
    """
    if name not in CLASSIFIERS:
        raise ConfigurationError(f"Unknown classifier: {name}. Available: {list(CLASSIFIERS.keys())}")
    return CLASSIFIERS[name](**overrides)
