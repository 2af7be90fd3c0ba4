#!/usr/bin/env python3
"""
Timing and memory monitoring for experiment runs.
"""

import time
import logging
from contextlib import contextmanager
from typing import Dict, List

import psutil

logger = logging.getLogger(__name__)


class StageTimer:
    """
    Collects wall-clock durations per pipeline stage and logs process memory.

    Parameters
    ----------
    memory_log_interval_mb : float
        Only log memory when RSS moved by at least this much since last log
    """

    def __init__(self, memory_log_interval_mb: float = 250.0):
        self.operation_times: Dict[str, List[float]] = {}
        self.process = psutil.Process()
        self.memory_log_interval_mb = memory_log_interval_mb
        self.last_memory_log = 0.0

    @contextmanager
    def track(self, stage: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(stage, time.perf_counter() - start)

    def record(self, stage: str, duration: float):
        self.operation_times.setdefault(stage, []).append(duration)

    def merge(self, other: "StageTimer"):
        for stage, durations in other.operation_times.items():
            self.operation_times.setdefault(stage, []).extend(durations)

    def log_memory_usage(self, operation: str = "general", force: bool = False):
        try:
            memory_mb = self.process.memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            logger.warning(f"Failed to read memory usage: {e}")
            return
        if force or abs(memory_mb - self.last_memory_log) > self.memory_log_interval_mb:
            logger.debug(f"[MEMORY] {operation}: {memory_mb:.1f} MB RSS")
            self.last_memory_log = memory_mb

    def summary(self) -> Dict[str, Dict[str, float]]:
        out = {}
        for stage, durations in self.operation_times.items():
            out[stage] = {
                "count": len(durations),
                "total_seconds": sum(durations),
                "mean_seconds": sum(durations) / len(durations),
            }
        return out

    def __getstate__(self):
        # psutil.Process handles are not picklable across joblib workers
        state = self.__dict__.copy()
        state.pop("process", None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self.process = psutil.Process()
