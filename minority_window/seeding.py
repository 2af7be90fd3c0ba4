"""
Deterministic per-iteration random streams.

Each iteration owns independent named streams derived from
``(base_seed, iteration_index, stream_name)``, so the group A draw, the
group B draw, the synthetic draw and model training never depend on the
order in which the others consume randomness.
"""

from dataclasses import dataclass

import numpy as np

STREAM_IDS = {
    "group_A": 0,
    "group_B": 1,
    "synthetic": 2,
    "model": 3,
}


@dataclass(frozen=True)
class RandomSource:
    base_seed: int

    def _sequence(self, index: int, name: str) -> np.random.SeedSequence:
        if name not in STREAM_IDS:
            raise KeyError(f"Unknown random stream: {name}. Available: {list(STREAM_IDS)}")
        if index < 1:
            raise ValueError(f"Iteration index must be 1-based, got {index}")
        return np.random.SeedSequence([int(self.base_seed), int(index), STREAM_IDS[name]])

    def stream(self, index: int, name: str) -> np.random.Generator:
        """Fresh generator for stream ``name`` of iteration ``index``."""
        return np.random.default_rng(self._sequence(index, name))

    def seed(self, index: int, name: str) -> int:
        """32-bit integer seed for libraries that take a ``random_state`` int."""
        return int(self._sequence(index, name).generate_state(1, dtype=np.uint32)[0])
