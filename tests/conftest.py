"""Shared fixtures: a small balanced pool and a matching short schedule."""

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_classification

from minority_window.config import ScheduleConfig
from minority_window.data_io import BalancedPool

PER_CLASS = 60
N_FEATURES = 6


@pytest.fixture
def source_frame():
    X, y = make_classification(
        n_samples=400, n_features=N_FEATURES, n_informative=4, n_redundant=1,
        n_classes=2, weights=[0.5, 0.5], flip_y=0.02, random_state=42
    )
    frame = pd.DataFrame(X, columns=[f"f{i}" for i in range(N_FEATURES)])
    frame["label"] = np.where(y == 1, "case", "control")
    return frame


@pytest.fixture
def pool(source_frame):
    return BalancedPool.from_frame(source_frame, "label", "case", "control", per_class=PER_CLASS)


@pytest.fixture
def small_schedule():
    return ScheduleConfig(
        num_iterations=5,
        initial_group_A_size=60,
        step_size=3,
        initial_test_A_size=20,
        initial_test_B_size=20,
        fixed_group_B_size=60,
        base_seed=7,
    )
