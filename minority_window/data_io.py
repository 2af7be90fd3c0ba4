#!/usr/bin/env python3
"""
Data I/O module for the balanced source pool and exported results.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Any

import numpy as np
import pandas as pd

from minority_window.config import LABEL_A, LABEL_B, POOL_SIZE_PER_CLASS
from minority_window.errors import InsufficientDataError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class LabeledSet:
    """Feature rows with their group labels ("A"/"B")."""

    X: pd.DataFrame
    y: np.ndarray

    def __post_init__(self):
        self.y = np.asarray(self.y, dtype=object)
        if len(self.X) != len(self.y):
            raise ValueError(f"Feature rows ({len(self.X)}) and labels ({len(self.y)}) differ in length")

    def __len__(self) -> int:
        return len(self.y)

    @property
    def feature_names(self):
        return list(self.X.columns)

    def class_counts(self) -> Dict[str, int]:
        return {
            LABEL_A: int(np.sum(self.y == LABEL_A)),
            LABEL_B: int(np.sum(self.y == LABEL_B)),
        }


@dataclass(frozen=True)
class BalancedPool:
    """
    Equal-size pool of group A and group B samples.

    Rows are laid out group A first, then group B, with a 0..n-1 index.
    The pool and both index arrays are read-only for the lifetime of a run.
    """

    features: pd.DataFrame
    labels: np.ndarray
    group_A_indices: np.ndarray
    group_B_indices: np.ndarray
    source_labels: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Private copies, so the caller's arrays stay writable
        for name in ("labels", "group_A_indices", "group_B_indices"):
            arr = np.array(getattr(self, name), copy=True)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, label_column: str, group_a_label: Any,
                   group_b_label: Any, per_class: int = POOL_SIZE_PER_CLASS,
                   feature_columns: Optional[Sequence[str]] = None) -> "BalancedPool":
        """
        Build the pool from the first ``per_class`` rows of each group.

        Parameters
        ----------
        frame : pandas.DataFrame
            Source table with one label column and numeric feature columns
        label_column : str
            Name of the column holding the group label
        group_a_label, group_b_label
            Values of ``label_column`` identifying group A and group B
        per_class : int
            Rows kept per group
        feature_columns : sequence of str, optional
            Feature columns to keep; defaults to every other column

        Raises
        ------
        InsufficientDataError
            If either group has fewer than ``per_class`` rows.
        ConfigurationError
            If the label column is missing or a feature column is not numeric.
        """
        if label_column not in frame.columns:
            raise ConfigurationError(f"Label column '{label_column}' not found in data")
        if per_class <= 0:
            raise ConfigurationError(f"per_class must be positive, got {per_class}")

        if feature_columns is None:
            feature_columns = [c for c in frame.columns if c != label_column]
        non_numeric = [c for c in feature_columns
                       if c in frame.columns and not pd.api.types.is_numeric_dtype(frame[c])]
        if non_numeric:
            raise ConfigurationError(f"Feature columns must be numeric, found non-numeric: {non_numeric}")

        parts = []
        for group, value in ((LABEL_A, group_a_label), (LABEL_B, group_b_label)):
            rows = frame[frame[label_column] == value]
            if len(rows) < per_class:
                raise InsufficientDataError(
                    f"Group {group} ('{value}') has {len(rows)} rows, {per_class} required",
                    requested=per_class, available=len(rows),
                )
            parts.append(rows.iloc[:per_class])

        pooled = pd.concat(parts, ignore_index=True)
        features = pooled[list(feature_columns)].astype(float)
        labels = np.array([LABEL_A] * per_class + [LABEL_B] * per_class, dtype=object)

        logger.info(f"[POOL] {per_class} rows per group, {features.shape[1]} features")
        return cls(
            features=features,
            labels=labels,
            group_A_indices=np.arange(per_class),
            group_B_indices=np.arange(per_class, 2 * per_class),
            source_labels={LABEL_A: group_a_label, LABEL_B: group_b_label},
        )

    @property
    def feature_names(self):
        return list(self.features.columns)

    def __len__(self) -> int:
        return len(self.labels)

    def subset(self, indices) -> LabeledSet:
        idx = np.asarray(indices, dtype=int)
        return LabeledSet(X=self.features.iloc[idx].reset_index(drop=True), y=self.labels[idx])


def load_pool(csv_path: str, label_column: str, group_a_label: Any, group_b_label: Any,
              per_class: int = POOL_SIZE_PER_CLASS, **read_kwargs) -> BalancedPool:
    """Read a CSV table and build the balanced pool from it."""
    if not os.path.exists(csv_path):
        raise FileNotFoundError(f"Data file not found: {csv_path}")
    frame = pd.read_csv(csv_path, **read_kwargs)
    # Label values read from CSV may be numeric; compare as the column dtype does
    if label_column in frame.columns and pd.api.types.is_numeric_dtype(frame[label_column]):
        group_a_label = pd.to_numeric(group_a_label)
        group_b_label = pd.to_numeric(group_b_label)
    logger.debug(f"Loaded {csv_path}: {frame.shape[0]} rows, {frame.shape[1]} columns")
    return BalancedPool.from_frame(frame, label_column, group_a_label, group_b_label, per_class=per_class)


def export_results(result_set, out_dir: str, top_k: int = 10) -> Dict[str, str]:
    """
    Write the result tables of a finished run as CSV files.

    Returns
    -------
    dict
        Mapping of table name to written path
    """
    os.makedirs(out_dir, exist_ok=True)
    paths = {
        "results": os.path.join(out_dir, "results.csv"),
        "importances": os.path.join(out_dir, "importances.csv"),
        "top_importances": os.path.join(out_dir, f"top{top_k}_importances.csv"),
    }
    result_set.to_frame().to_csv(paths["results"], index=False)
    result_set.importance_frame().to_csv(paths["importances"], index=False)
    result_set.top_k_importances(top_k).to_csv(paths["top_importances"], index=False)
    for name, path in paths.items():
        logger.info(f"[EXPORT] {name} -> {path}")
    return paths
