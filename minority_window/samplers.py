#!/usr/bin/env python3
"""
Synthetic rebalancing of training partitions.

A synthetic pool of ``multiplier x 2 x |group B train|`` rows is generated
from the current training rows, with the minority class drawn at the
configured fraction. Exactly ``|group B train|`` synthetic rows of each
class are then kept as the new training set.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict

import numpy as np
import pandas as pd
from imblearn.over_sampling import SMOTE, RandomOverSampler

from minority_window.config import BalancerConfig, LABEL_A, LABEL_B, CLASS_LABELS
from minority_window.data_io import LabeledSet
from minority_window.errors import DegenerateLabelsError, InsufficientDataError, SyntheticShortfallWarning

logger = logging.getLogger(__name__)


@dataclass
class BalanceResult:
    """Rebalanced training rows plus the bookkeeping behind them."""

    training_set: LabeledSet
    requested: Dict[str, int]
    synthetic_counts: Dict[str, int]
    shortfall: Dict[str, int] = field(default_factory=dict)

    @property
    def has_shortfall(self) -> bool:
        return any(v > 0 for v in self.shortfall.values())


def minority_class(counts: Dict[str, int]) -> str:
    """The less frequent class; ties go to group A."""
    return LABEL_A if counts[LABEL_A] <= counts[LABEL_B] else LABEL_B


def _smote_neighbors(counts: Dict[str, int], k_default: int) -> int:
    min_c = min(counts.values())
    if min_c < 2:
        raise InsufficientDataError(
            f"SMOTE needs at least 2 rows per class, smallest class has {min_c}",
            requested=2, available=min_c,
        )
    safe_k = min(k_default, min_c - 1)
    if safe_k < k_default:
        logger.info(f"Minority class has {min_c} samples - using SMOTE with k_neighbors={safe_k}")
    return safe_k


class SyntheticBalancer:
    """
    Replace training rows with a class-balanced synthetic set.

    Parameters
    ----------
    config : BalancerConfig
        Pool multiplier, minority fraction and generator settings
    """

    def __init__(self, config: BalancerConfig):
        self.config = config.validate()

    def _build_sampler(self, targets: Dict[str, int], counts: Dict[str, int], random_state: int):
        if self.config.method == "smote":
            return SMOTE(
                sampling_strategy=targets,
                k_neighbors=_smote_neighbors(counts, self.config.k_neighbors),
                random_state=random_state,
            )
        # Smoothed bootstrap: Gaussian kernel around resampled rows
        return RandomOverSampler(
            sampling_strategy=targets,
            shrinkage=self.config.shrinkage,
            random_state=random_state,
        )

    def synthetic_class_sizes(self, n_total: int, counts: Dict[str, int],
                              rng: np.random.Generator) -> Dict[str, int]:
        """Split ``n_total`` synthetic rows, minority ~ Binomial(n_total, p)."""
        minority = minority_class(counts)
        majority = LABEL_B if minority == LABEL_A else LABEL_A
        n_minority = int(rng.binomial(n_total, self.config.target_minority_fraction))
        return {minority: n_minority, majority: n_total - n_minority}

    def generate(self, training_set: LabeledSet, sizes: Dict[str, int], random_state: int) -> LabeledSet:
        """Synthetic rows only, ``sizes[c]`` of each class ``c``."""
        counts = training_set.class_counts()
        targets = {label: counts[label] + sizes[label] for label in CLASS_LABELS}
        sampler = self._build_sampler(targets, counts, random_state)
        X_res, y_res = sampler.fit_resample(training_set.X, training_set.y)

        # imbalanced-learn appends generated rows after the original ones
        n_orig = len(training_set)
        X_new = pd.DataFrame(np.asarray(X_res)[n_orig:], columns=training_set.feature_names)
        y_new = np.asarray(y_res, dtype=object)[n_orig:]
        return LabeledSet(X=X_new, y=y_new)

    def balance(self, training_set: LabeledSet, per_class_target: int,
                rng: np.random.Generator) -> BalanceResult:
        """
        Rebalance ``training_set`` to ``per_class_target`` rows of each class.

        Parameters
        ----------
        training_set : LabeledSet
            Raw training rows; both classes must be present
        per_class_target : int
            Rows of each class to keep (|group B train| in the harness)
        rng : numpy.random.Generator
            The iteration's synthetic stream

        Returns
        -------
        BalanceResult
            Synthetic training rows, group A first. If the synthetic pool of
            a class is smaller than requested, every available row is kept
            and the gap is reported in ``shortfall``.
        """
        counts = training_set.class_counts()
        if min(counts.values()) == 0:
            raise DegenerateLabelsError(f"Balancing needs both classes in the training rows, got {counts}")
        if per_class_target <= 0:
            raise ValueError(f"per_class_target must be positive, got {per_class_target}")

        n_total = self.config.synthetic_size(per_class_target)
        sizes = self.synthetic_class_sizes(n_total, counts, rng)
        synthetic = self.generate(training_set, sizes, random_state=int(rng.integers(0, 2**31 - 1)))

        keep = []
        shortfall = {}
        for label in CLASS_LABELS:
            available = np.flatnonzero(synthetic.y == label)
            take = min(per_class_target, len(available))
            keep.append(rng.choice(available, size=take, replace=False))
            shortfall[label] = per_class_target - take
            if shortfall[label] > 0:
                message = (f"Synthetic pool holds {len(available)} rows of group {label}, "
                           f"{per_class_target} requested; keeping all {take}")
                logger.warning(message)
                warnings.warn(message, SyntheticShortfallWarning, stacklevel=2)

        idx = np.concatenate(keep).astype(int)
        balanced = LabeledSet(X=synthetic.X.iloc[idx].reset_index(drop=True), y=synthetic.y[idx])
        logger.debug(f"Balanced {counts} -> {balanced.class_counts()} from synthetic pool {sizes}")
        return BalanceResult(
            training_set=balanced,
            requested={label: per_class_target for label in CLASS_LABELS},
            synthetic_counts=sizes,
            shortfall=shortfall,
        )
