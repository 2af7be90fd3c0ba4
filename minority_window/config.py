#!/usr/bin/env python3
"""
Configuration module for the minority-window harness.
Contains constants and configurations used across the application.
"""

import os
import warnings
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from minority_window.errors import ConfigurationError

# Suppress convergence warnings for cleaner output
try:
    from sklearn.exceptions import ConvergenceWarning
    warnings.filterwarnings('ignore', category=ConvergenceWarning)
except ImportError:
    warnings.filterwarnings('ignore', message='.*did not converge.*')

# Labels used inside the pool regardless of the source column values
LABEL_A = "A"
LABEL_B = "B"
CLASS_LABELS = (LABEL_A, LABEL_B)

# Size of each class in the balanced source pool
POOL_SIZE_PER_CLASS = 600

# Probability threshold above which a row is predicted as group B
DECISION_THRESHOLD = 0.5

N_JOBS = min(os.cpu_count() or 4, 8)

JOBLIB_PARALLEL_CONFIG = {
    'prefer': 'processes',
    'verbose': 0,
}

# BLAS threads per worker when iterations run in parallel
OMP_BLAS_THREADS = 1

# Default sliding-window schedule: 185 iterations keep group A non-empty
DEFAULT_SCHEDULE = {
    "num_iterations": 185,
    "initial_group_A_size": 600,
    "step_size": 3,
    "initial_test_A_size": 200,
    "initial_test_B_size": 200,
    "fixed_group_B_size": 600,
    "base_seed": 42,
}

MODEL_CONFIGS = {
    "RandomForest": {
        "n_estimators": 500,
        "criterion": "gini",
        "max_features": "sqrt",
        "bootstrap": True,
        "n_jobs": 1,
    },
    "LogisticRegression": {
        "C": 1.0,
        "solver": "lbfgs",
        "max_iter": 1000,
    },
}

# Majority-class weight used by the weighted random forest variant
MAJORITY_CLASS_WEIGHT = 3.0

TRUNCATION_POLICIES = ("truncate", "raise")
TEST_SELECTION_MODES = ("prefix", "random")
BALANCING_METHODS = ("rose", "smote")


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Sliding-window schedule for one experiment.

    ``on_insufficient`` decides what happens when a test slice asks for more
    rows than remain: "truncate" takes what is available, "raise" fails the
    iteration with InsufficientDataError. ``test_selection`` decides whether
    test rows are the first remaining rows in pool order ("prefix") or a
    seeded random draw ("random").
    """

    num_iterations: int = DEFAULT_SCHEDULE["num_iterations"]
    initial_group_A_size: int = DEFAULT_SCHEDULE["initial_group_A_size"]
    step_size: int = DEFAULT_SCHEDULE["step_size"]
    initial_test_A_size: int = DEFAULT_SCHEDULE["initial_test_A_size"]
    initial_test_B_size: int = DEFAULT_SCHEDULE["initial_test_B_size"]
    fixed_group_B_size: int = DEFAULT_SCHEDULE["fixed_group_B_size"]
    base_seed: int = DEFAULT_SCHEDULE["base_seed"]
    on_insufficient: str = "truncate"
    test_selection: str = "prefix"

    def train_a_count(self, index: int) -> int:
        """Group-A training rows drawn at 1-based iteration ``index``."""
        return (2 * (self.initial_group_A_size - (index - 1) * self.step_size)) // 3

    def test_a_size(self, index: int) -> int:
        """Requested group-A test rows at 1-based iteration ``index``."""
        return self.initial_test_A_size - (index - 1)

    def train_b_count(self) -> int:
        return (2 * self.fixed_group_B_size) // 3

    def validate(self) -> "ScheduleConfig":
        """
        Check the schedule before any iteration runs.

        Raises
        ------
        ConfigurationError
            If any size is non-positive, the seed is negative, a policy name
            is unknown, or the group-A train/test counts reach zero before
            the last iteration.
        """
        if self.num_iterations <= 0:
            raise ConfigurationError(f"num_iterations must be positive, got {self.num_iterations}")
        for name in ("initial_group_A_size", "step_size", "initial_test_A_size",
                     "initial_test_B_size", "fixed_group_B_size"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if self.base_seed < 0:
            raise ConfigurationError(f"base_seed must be non-negative, got {self.base_seed}")
        if self.on_insufficient not in TRUNCATION_POLICIES:
            raise ConfigurationError(
                f"Unknown on_insufficient policy: {self.on_insufficient}. Available: {list(TRUNCATION_POLICIES)}"
            )
        if self.test_selection not in TEST_SELECTION_MODES:
            raise ConfigurationError(
                f"Unknown test_selection mode: {self.test_selection}. Available: {list(TEST_SELECTION_MODES)}"
            )
        last = self.num_iterations
        if self.train_a_count(last) <= 0:
            raise ConfigurationError(
                f"Group A training size reaches {self.train_a_count(last)} at iteration {last}; "
                f"reduce num_iterations or step_size"
            )
        if self.test_a_size(last) <= 0:
            raise ConfigurationError(
                f"Group A test size reaches {self.test_a_size(last)} at iteration {last}; "
                f"reduce num_iterations or raise initial_test_A_size"
            )
        if self.train_b_count() <= 0:
            raise ConfigurationError("fixed_group_B_size is too small to hold a training draw")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BalancerConfig:
    """Synthetic rebalancing applied to training rows from ``enabled_from_iteration`` on."""

    synthetic_multiplier: float
    target_minority_fraction: float
    enabled_from_iteration: int = 2
    method: str = "rose"
    shrinkage: float = 1.0
    k_neighbors: int = 5

    def is_enabled(self, index: int) -> bool:
        return index >= self.enabled_from_iteration

    def synthetic_size(self, group_b_train: int) -> int:
        """Total synthetic rows: multiplier x 2 x |group B train|."""
        return int(round(self.synthetic_multiplier * 2 * group_b_train))

    def validate(self) -> "BalancerConfig":
        if self.synthetic_multiplier <= 0:
            raise ConfigurationError(
                f"synthetic_multiplier must be positive, got {self.synthetic_multiplier}"
            )
        if not 0.0 < self.target_minority_fraction < 1.0:
            raise ConfigurationError(
                f"target_minority_fraction must lie in (0, 1), got {self.target_minority_fraction}"
            )
        if self.enabled_from_iteration < 1:
            raise ConfigurationError(
                f"enabled_from_iteration must be >= 1, got {self.enabled_from_iteration}"
            )
        if self.method not in BALANCING_METHODS:
            raise ConfigurationError(
                f"Unknown balancing method: {self.method}. Available: {list(BALANCING_METHODS)}"
            )
        if self.shrinkage < 0:
            raise ConfigurationError(f"shrinkage must be non-negative, got {self.shrinkage}")
        if self.k_neighbors < 1:
            raise ConfigurationError(f"k_neighbors must be >= 1, got {self.k_neighbors}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


BALANCING_PRESETS = {
    "rose_3x_p07": BalancerConfig(synthetic_multiplier=3, target_minority_fraction=0.7),
    "rose_2x_p05": BalancerConfig(synthetic_multiplier=2, target_minority_fraction=0.5),
}


def get_balancing_preset(name: Optional[str]) -> Optional[BalancerConfig]:
    """Look up a balancing preset; ``None`` or "none" disables balancing."""
    if name is None or name == "none":
        return None
    if name not in BALANCING_PRESETS:
        raise ConfigurationError(
            f"Unknown balancing preset: {name}. Available: {['none'] + list(BALANCING_PRESETS)}"
        )
    return BALANCING_PRESETS[name]
