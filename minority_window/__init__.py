"""Sliding-window class-imbalance experiments for binary classifiers."""

from .config import (
    ScheduleConfig,
    BalancerConfig,
    BALANCING_PRESETS,
    get_balancing_preset,
)
from .errors import (
    MinorityWindowError,
    ConfigurationError,
    InsufficientDataError,
    DegenerateLabelsError,
    SyntheticShortfallWarning,
)
from .seeding import RandomSource
from .data_io import BalancedPool, LabeledSet, load_pool, export_results
from .cv import Partition, PartitionGenerator
from .samplers import SyntheticBalancer, BalanceResult
from .models import (
    ClassifierAdapter,
    RandomForestAdapter,
    LogisticRegressionAdapter,
    get_classifier,
)
from .evaluation import Evaluator, Evaluation, ConfusionCounts
from .runner import (
    ExperimentRunner,
    EvaluationRecord,
    ImportanceRecord,
    ResultSet,
    run_experiment,
)

__version__ = "1.0.0"

__all__ = [
    'ScheduleConfig', 'BalancerConfig', 'BALANCING_PRESETS', 'get_balancing_preset',
    'MinorityWindowError', 'ConfigurationError', 'InsufficientDataError',
    'DegenerateLabelsError', 'SyntheticShortfallWarning',
    'RandomSource',
    'BalancedPool', 'LabeledSet', 'load_pool', 'export_results',
    'Partition', 'PartitionGenerator',
    'SyntheticBalancer', 'BalanceResult',
    'ClassifierAdapter', 'RandomForestAdapter', 'LogisticRegressionAdapter', 'get_classifier',
    'Evaluator', 'Evaluation', 'ConfusionCounts',
    'ExperimentRunner', 'EvaluationRecord', 'ImportanceRecord', 'ResultSet', 'run_experiment',
]
