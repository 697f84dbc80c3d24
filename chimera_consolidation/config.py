"""
Configuration module for Chimera consolidation embedding.

Contains hardware geometry, penalty constants, solver settings and
random test case parameters.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional
import numpy as np


# Qubits known to be defective on the annealer the embeddings target
DAMAGED_QUBITS: FrozenSet[int] = frozenset({35, 154, 410})
# Use this value to make a weight strictly bigger than another weight
EPSILON_WEIGHT: float = 1 / 8.0
# Maximal capacity represented by one capacity variable
MAX_CAPACITY_PER_VAR: float = 4.0
# Tolerance for floating point comparisons
DOUBLE_TOLERANCE: float = 1e-10


@dataclass
class ChimeraConfig:
    """Chimera hardware graph configuration."""
    damaged_qubits: FrozenSet[int] = DAMAGED_QUBITS
    min_weight: float = float("-inf")  # Lowest admissible weight
    max_weight: float = float("inf")   # Highest admissible weight


@dataclass
class PenaltyConfig:
    """Penalty scaling constants (analytic dominance bounds)."""
    epsilon_weight: float = EPSILON_WEIGHT
    max_capacity_per_var: float = MAX_CAPACITY_PER_VAR
    double_tolerance: float = DOUBLE_TOLERANCE
    max_triangle_chains: int = 28  # Largest single triangle fitting the grid
    max_fixed_point_iterations: int = 16  # Sanity cap for matrix sizing loop


@dataclass
class SolverConfig:
    """MILP solver settings (PuLP with CBC)."""
    time_limit: Optional[int] = 300  # Seconds per solve
    msg: bool = False  # Forward CBC log to stdout
    gap_rel: float = 0.0  # Prove optimality


@dataclass
class FactoryConfig:
    """Random test case generation; values are integer multiples of the step."""
    nr_tenants: int = 2
    nr_servers: int = 2
    nr_metrics: int = 1
    min_capacity_step: float = 0.5
    min_consumption: int = 0
    max_consumption: int = 3
    min_capacity: int = 0
    max_capacity: int = 6
    min_cost: int = 1
    max_cost: int = 4


@dataclass
class BenchmarkConfig:
    """Configuration of the mapping-possible benchmark."""
    max_tenants: int = 8
    max_servers: int = 4
    max_metrics: int = 3
    nr_testcases: int = 10
    threshold: float = 0.9  # Fraction of test cases that must be mappable


@dataclass
class EmbeddingConfig:
    """Master configuration for embedding, solving and benchmarking."""
    chimera: ChimeraConfig = field(default_factory=ChimeraConfig)
    penalties: PenaltyConfig = field(default_factory=PenaltyConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    factory: FactoryConfig = field(default_factory=FactoryConfig)
    benchmark: BenchmarkConfig = field(default_factory=BenchmarkConfig)

    # Random seed for reproducibility
    random_seed: Optional[int] = 42

    def __post_init__(self):
        """Set random seed if provided."""
        if self.random_seed is not None:
            np.random.seed(self.random_seed)


def create_default_config() -> EmbeddingConfig:
    """Create a default configuration."""
    return EmbeddingConfig()


def create_small_config() -> EmbeddingConfig:
    """Create a small-scale configuration for quick testing."""
    return EmbeddingConfig(
        solver=SolverConfig(time_limit=60),
        factory=FactoryConfig(
            nr_tenants=1,
            nr_servers=2,
            nr_metrics=1,
        ),
        benchmark=BenchmarkConfig(
            max_tenants=3,
            max_servers=2,
            max_metrics=2,
            nr_testcases=3,
        ),
    )
