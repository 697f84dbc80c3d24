"""
Random consolidation test case generator.

All consumptions, capacities and costs are integer multiples of the
minimum capacity step, drawn uniformly from the configured ranges.
"""

from typing import Optional
import numpy as np

from ..config import FactoryConfig
from .problem import ConsolidationProblem


class ProblemFactory:
    """
    Produces random consolidation problems.

    Example:
        factory = ProblemFactory(FactoryConfig(nr_tenants=3), random_seed=1)
        problem = factory.produce()
    """

    def __init__(self, config: Optional[FactoryConfig] = None, random_seed: Optional[int] = None):
        self.config = config or FactoryConfig()
        self._validate()
        self.rng = np.random.default_rng(random_seed)

    def _validate(self):
        c = self.config
        if min(c.nr_tenants, c.nr_servers, c.nr_metrics) < 1:
            raise ValueError("Problems need at least one tenant, server and metric")
        if c.min_capacity_step <= 0:
            raise ValueError("Minimum capacity step must be positive")
        for low, high, name in [
            (c.min_consumption, c.max_consumption, "consumption"),
            (c.min_capacity, c.max_capacity, "capacity"),
            (c.min_cost, c.max_cost, "cost"),
        ]:
            if low < 0 or high < low:
                raise ValueError(f"Invalid {name} range [{low}, {high}]")

    def _uniform_int(self, low: int, high: int) -> int:
        """Uniform integer from the closed interval [low, high]."""
        return int(self.rng.integers(low, high + 1))

    def produce(self) -> ConsolidationProblem:
        """Draw one random problem according to the configuration."""
        c = self.config
        step = c.min_capacity_step
        problem = ConsolidationProblem(c.nr_tenants, c.nr_servers, c.nr_metrics, step)

        for tenant in range(c.nr_tenants):
            for metric in range(c.nr_metrics):
                units = self._uniform_int(c.min_consumption, c.max_consumption)
                problem.set_consumption(tenant, metric, units * step)

        for server in range(c.nr_servers):
            for metric in range(c.nr_metrics):
                units = self._uniform_int(c.min_capacity, c.max_capacity)
                problem.set_capacity(server, metric, units * step)

        for server in range(c.nr_servers):
            units = self._uniform_int(c.min_cost, c.max_cost)
            problem.set_server_cost(server, units * step)

        return problem
