#!/usr/bin/env python3
"""
Experiment runner: the partition -> balance -> fit -> predict -> evaluate
loop over every iteration of the sliding window, plus result aggregation.
"""

import logging
import traceback
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from threadpoolctl import threadpool_limits

from minority_window.config import (
    ScheduleConfig, BalancerConfig, JOBLIB_PARALLEL_CONFIG, OMP_BLAS_THREADS, LABEL_A, LABEL_B
)
from minority_window.cv import PartitionGenerator
from minority_window.data_io import BalancedPool
from minority_window.errors import ConfigurationError
from minority_window.evaluation import Evaluator
from minority_window.logging_utils import log_iteration_stage, log_timing_summary
from minority_window.models import ClassifierAdapter
from minority_window.samplers import SyntheticBalancer
from minority_window.seeding import RandomSource
from minority_window.utils import StageTimer

logger = logging.getLogger(__name__)

NAN = float("nan")


@dataclass(frozen=True)
class EvaluationRecord:
    """
    Outcome of one iteration.

    Partition sizes are the raw train/test draws; ``fit_A``/``fit_B`` are the
    rows the classifier actually saw (synthetic rows when balanced). A
    failed iteration keeps whatever sizes were known and NaN metrics.
    """

    index: int
    status: str = "ok"
    train_A: float = NAN
    train_B: float = NAN
    test_A: float = NAN
    test_B: float = NAN
    balanced: bool = False
    fit_A: float = NAN
    fit_B: float = NAN
    shortfall_A: int = 0
    shortfall_B: int = 0
    a_as_a: float = NAN
    a_as_b: float = NAN
    b_as_a: float = NAN
    b_as_b: float = NAN
    auc: float = NAN
    accuracy: float = NAN
    precision: float = NAN
    recall: float = NAN
    f1: float = NAN
    percent_A_to_all: float = NAN
    percent_true_A: float = NAN
    percent_true_B: float = NAN
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status != "ok"


@dataclass(frozen=True)
class ImportanceRecord:
    index: int
    feature: str
    score: float


@dataclass
class IterationOutcome:
    record: EvaluationRecord
    importances: List[ImportanceRecord]
    timer: StageTimer


@dataclass(frozen=True)
class ResultSet:
    """Ordered, read-only results of a finished run."""

    records: Tuple[EvaluationRecord, ...]
    importances: Tuple[ImportanceRecord, ...]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self):
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def failed_iterations(self) -> List[int]:
        return [r.index for r in self.records if r.failed]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(r) for r in self.records])

    def importance_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(r) for r in self.importances], columns=["index", "feature", "score"])

    def top_k_importances(self, k: int) -> pd.DataFrame:
        """The ``k`` highest-magnitude features per iteration, strongest first."""
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        frame = self.importance_frame()
        frame = frame.assign(magnitude=frame["score"].abs())
        frame = frame.sort_values(["index", "magnitude"], ascending=[True, False], kind="mergesort")
        return frame.groupby("index", sort=True).head(k).reset_index(drop=True)


def _percent(num, den) -> float:
    if not den or np.isnan(den):
        return NAN
    return 100.0 * num / den


def finalize_record(record: EvaluationRecord) -> EvaluationRecord:
    """Append the derived group proportion and per-class hit rates."""
    total = record.train_A + record.train_B + record.test_A + record.test_B
    return replace(
        record,
        percent_A_to_all=_percent(record.train_A + record.test_A, total),
        percent_true_A=_percent(record.a_as_a, record.a_as_a + record.a_as_b),
        percent_true_B=_percent(record.b_as_b, record.b_as_a + record.b_as_b),
    )


def _run_in_worker(runner: "ExperimentRunner", index: int) -> IterationOutcome:
    with threadpool_limits(limits=OMP_BLAS_THREADS):
        return runner.run_iteration(index)


class ExperimentRunner:
    """
    Runs the sliding-window sweep.

    Parameters
    ----------
    pool : BalancedPool
        Read-only source pool
    schedule : ScheduleConfig
        Window schedule; validated on construction
    classifier : ClassifierAdapter
        Model used at every iteration
    balancing : BalancerConfig, optional
        Synthetic rebalancing; ``None`` trains on raw partitions throughout
    n_jobs : int
        Iterations run in parallel with joblib when != 1
    """

    def __init__(self, pool: BalancedPool, schedule: ScheduleConfig, classifier: ClassifierAdapter,
                 balancing: Optional[BalancerConfig] = None, n_jobs: int = 1,
                 evaluator: Optional[Evaluator] = None):
        if n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero")
        self.pool = pool
        self.schedule = schedule.validate()
        self.classifier = classifier
        self.balancing = balancing
        self.balancer = SyntheticBalancer(balancing) if balancing is not None else None
        self.n_jobs = n_jobs
        self.evaluator = evaluator or Evaluator()
        self.random_source = RandomSource(schedule.base_seed)
        self.partitioner = PartitionGenerator(pool, self.schedule, self.random_source)
        self.partitioner.check_pool()

    def run_iteration(self, index: int) -> IterationOutcome:
        """Run one iteration; any failure becomes a failed record."""
        timer = StageTimer()
        known: Dict[str, Any] = {}
        try:
            with timer.track("partition"):
                partition = self.partitioner.generate(index)
            known.update(partition.sizes())
            log_iteration_stage("PARTITION", index, str(known))

            train = self.pool.subset(partition.train_indices)
            test = self.pool.subset(partition.test_indices)

            if self.balancer is not None and self.balancing.is_enabled(index):
                with timer.track("balance"):
                    result = self.balancer.balance(
                        train, per_class_target=len(partition.train_B),
                        rng=self.random_source.stream(index, "synthetic"),
                    )
                train = result.training_set
                known.update(balanced=True, shortfall_A=result.shortfall[LABEL_A],
                             shortfall_B=result.shortfall[LABEL_B])
                log_iteration_stage("BALANCE", index, f"synthetic pool {result.synthetic_counts}")

            fit_counts = train.class_counts()
            known.update(fit_A=fit_counts[LABEL_A], fit_B=fit_counts[LABEL_B])

            with timer.track("fit"):
                model = self.classifier.fit(train, random_state=self.random_source.seed(index, "model"))
            log_iteration_stage("FIT", index, f"{self.classifier.name} on {len(train)} rows")

            with timer.track("predict"):
                proba_b = self.classifier.predict_proba(model, test)
                scores = self.classifier.feature_importance(model)

            with timer.track("evaluate"):
                # Counts survive a failed AUC so the record keeps its cells
                known.update(asdict(self.evaluator.confusion(test.y, proba_b)))
                evaluation = self.evaluator.evaluate(test.y, proba_b)
        except Exception as e:
            logger.warning(f"Iteration {index} failed: {type(e).__name__}: {e}")
            logger.debug(traceback.format_exc())
            record = EvaluationRecord(index=index, status="failed", error=f"{type(e).__name__}: {e}", **known)
            return IterationOutcome(record=record, importances=[], timer=timer)

        importances = [ImportanceRecord(index=index, feature=str(name), score=float(value))
                       for name, value in scores.items()]
        record = EvaluationRecord(index=index, **{**known, **evaluation.to_dict()})
        log_iteration_stage(
            "RESULT", index,
            f"AUC={record.auc:.3f} accuracy={record.accuracy:.3f} f1={record.f1:.3f}",
            level=logging.INFO,
        )
        timer.log_memory_usage(f"iteration {index}")
        return IterationOutcome(record=record, importances=importances, timer=timer)

    def run(self) -> ResultSet:
        indices = range(1, self.schedule.num_iterations + 1)
        logger.info(
            f"Starting sweep: {self.schedule.num_iterations} iterations, classifier={self.classifier.name}, "
            f"balancing={'off' if self.balancing is None else self.balancing.method}, n_jobs={self.n_jobs}"
        )
        if self.n_jobs == 1:
            outcomes = [self.run_iteration(i) for i in indices]
        else:
            outcomes = Parallel(n_jobs=self.n_jobs, **JOBLIB_PARALLEL_CONFIG)(
                delayed(_run_in_worker)(self, i) for i in indices
            )
        return self.finalize(outcomes)

    def finalize(self, outcomes: List[IterationOutcome]) -> ResultSet:
        """Sort by iteration index, add derived ratios and freeze the results."""
        outcomes = sorted(outcomes, key=lambda o: o.record.index)
        timer = StageTimer()
        for outcome in outcomes:
            timer.merge(outcome.timer)
        log_timing_summary(timer.summary())

        records = tuple(finalize_record(o.record) for o in outcomes)
        importances = tuple(imp for o in outcomes for imp in o.importances)
        failed = [r.index for r in records if r.failed]
        if failed:
            logger.warning(f"{len(failed)} of {len(records)} iterations failed: {failed}")
        logger.info(f"Sweep finished: {len(records) - len(failed)} iterations succeeded")

        metadata = {
            "schedule": self.schedule.to_dict(),
            "classifier": self.classifier.describe(),
            "balancing": None if self.balancing is None else self.balancing.to_dict(),
            "feature_names": self.pool.feature_names,
        }
        return ResultSet(records=records, importances=importances, metadata=metadata)


def run_experiment(pool: BalancedPool, config: ScheduleConfig, classifier: ClassifierAdapter,
                   balancing: Optional[BalancerConfig] = None, n_jobs: int = 1) -> ResultSet:
    """Run every iteration of the sweep and return the ordered results."""
    return ExperimentRunner(pool, config, classifier, balancing=balancing, n_jobs=n_jobs).run()
