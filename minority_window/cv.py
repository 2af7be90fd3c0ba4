#!/usr/bin/env python3
"""
Sliding-window train/test partitions over the balanced pool.

Group A shrinks with the iteration index while group B keeps a fixed-size
subset and fixed train/test sizes. Every draw comes from the iteration's
own named random stream.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np

from minority_window.config import ScheduleConfig, LABEL_A, LABEL_B
from minority_window.data_io import BalancedPool
from minority_window.errors import InsufficientDataError
from minority_window.seeding import RandomSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    """Row indices into the pool for one iteration."""

    index: int
    train_A: np.ndarray
    train_B: np.ndarray
    test_A: np.ndarray
    test_B: np.ndarray

    @property
    def train_indices(self) -> np.ndarray:
        return np.concatenate([self.train_A, self.train_B])

    @property
    def test_indices(self) -> np.ndarray:
        return np.concatenate([self.test_A, self.test_B])

    def sizes(self) -> Dict[str, int]:
        return {
            "train_A": len(self.train_A),
            "train_B": len(self.train_B),
            "test_A": len(self.test_A),
            "test_B": len(self.test_B),
        }


class PartitionGenerator:
    """
    Build the partition for any 1-based iteration index.

    Parameters
    ----------
    pool : BalancedPool
        Source pool; never modified
    schedule : ScheduleConfig
        Window sizes and truncation policy
    random_source : RandomSource, optional
        Stream factory; defaults to one seeded with ``schedule.base_seed``
    """

    def __init__(self, pool: BalancedPool, schedule: ScheduleConfig, random_source: RandomSource = None):
        self.pool = pool
        self.schedule = schedule
        self.random_source = random_source or RandomSource(schedule.base_seed)

    def _take_test(self, candidates: np.ndarray, requested: int, group: str,
                   rng: np.random.Generator, index: int) -> np.ndarray:
        if len(candidates) < requested:
            if self.schedule.on_insufficient == "raise":
                raise InsufficientDataError(
                    f"Iteration {index}: group {group} test needs {requested} rows, "
                    f"only {len(candidates)} remain",
                    requested=requested, available=len(candidates),
                )
            logger.warning(
                f"Iteration {index}: group {group} test truncated to {len(candidates)} of {requested} rows"
            )
            return candidates.copy()
        if self.schedule.test_selection == "random":
            return rng.choice(candidates, size=requested, replace=False)
        return candidates[:requested].copy()

    def _draw_group_a(self, index: int):
        group_a = self.pool.group_A_indices
        rng = self.random_source.stream(index, "group_A")

        train_count = self.schedule.train_a_count(index)
        if train_count <= 0 or train_count > len(group_a):
            raise InsufficientDataError(
                f"Iteration {index}: group A train needs {train_count} rows, pool holds {len(group_a)}",
                requested=train_count, available=len(group_a),
            )
        train = rng.choice(group_a, size=train_count, replace=False)

        # Remaining rows keep pool order so the prefix selection is stable
        remaining = group_a[~np.isin(group_a, train)]
        test = self._take_test(remaining, self.schedule.test_a_size(index), LABEL_A, rng, index)
        return train, test

    def _draw_group_b(self, index: int):
        group_b = self.pool.group_B_indices
        rng = self.random_source.stream(index, "group_B")

        fixed = self.schedule.fixed_group_B_size
        if fixed > len(group_b):
            raise InsufficientDataError(
                f"fixed_group_B_size={fixed} exceeds the {len(group_b)} group B rows in the pool",
                requested=fixed, available=len(group_b),
            )
        subset = group_b[:fixed]
        train = rng.choice(subset, size=self.schedule.train_b_count(), replace=False)
        candidates = subset[~np.isin(subset, train)]
        test = self._take_test(candidates, self.schedule.initial_test_B_size, LABEL_B, rng, index)
        return train, test

    def check_pool(self) -> None:
        """
        Check that the first iteration's train draws fit in the pool.

        Raises
        ------
        InsufficientDataError
            If the group A train draw or the fixed group B subset is larger
            than the corresponding group of the pool.
        """
        train_count = self.schedule.train_a_count(1)
        available_a = len(self.pool.group_A_indices)
        if train_count > available_a:
            raise InsufficientDataError(
                f"initial_group_A_size={self.schedule.initial_group_A_size} needs a group A train draw "
                f"of {train_count} rows, the pool holds {available_a}",
                requested=train_count, available=available_a,
            )
        fixed = self.schedule.fixed_group_B_size
        available_b = len(self.pool.group_B_indices)
        if fixed > available_b:
            raise InsufficientDataError(
                f"fixed_group_B_size={fixed} exceeds the {available_b} group B rows in the pool",
                requested=fixed, available=available_b,
            )

    def generate(self, index: int) -> Partition:
        """
        Produce the partition for iteration ``index``.

        Raises
        ------
        InsufficientDataError
            When a train draw exceeds the pool, or a test slice is short and
            the schedule's policy is "raise".
        """
        train_a, test_a = self._draw_group_a(index)
        train_b, test_b = self._draw_group_b(index)
        partition = Partition(index=index, train_A=train_a, train_B=train_b, test_A=test_a, test_B=test_b)
        logger.debug(f"Iteration {index} partition sizes: {partition.sizes()}")
        return partition
