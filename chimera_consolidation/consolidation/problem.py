"""
Data model of the heterogeneous server consolidation problem.

Tenants with a resource consumption per metric must each be placed on one
server; the summed consumption on a server must not exceed its capacity in
any metric, and every server hosting at least one tenant incurs its
activation cost.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np

from ..config import DOUBLE_TOLERANCE


@dataclass
class ConsolidationProblem:
    """
    Consolidation problem with arbitrary numbers of tenants, servers and metrics.

    Attributes:
        nr_tenants: Number of tenants to place (all dimensions at least one)
        nr_servers: Number of candidate servers
        nr_metrics: Number of resource metrics (CPU, memory, ...)
        min_capacity_step: Granularity of all consumption and capacity values
        consumption: consumption[tenant, metric]
        capacity: capacity[server, metric]
        cost: cost[server], activation cost of each server
        max_server_cost: Largest activation cost set so far
    """
    nr_tenants: int
    nr_servers: int
    nr_metrics: int
    min_capacity_step: float

    consumption: np.ndarray = field(init=False, repr=False)
    capacity: np.ndarray = field(init=False, repr=False)
    cost: np.ndarray = field(init=False, repr=False)
    max_server_cost: float = field(init=False, default=0.0)

    def __post_init__(self):
        if min(self.nr_tenants, self.nr_servers, self.nr_metrics) < 1:
            raise ValueError("Problems need at least one tenant, server and metric")
        if self.min_capacity_step <= 0:
            raise ValueError("Minimum capacity step must be positive")
        self.consumption = np.zeros((self.nr_tenants, self.nr_metrics))
        self.capacity = np.zeros((self.nr_servers, self.nr_metrics))
        self.cost = np.zeros(self.nr_servers)

    def set_consumption(self, tenant: int, metric: int, consumption: float):
        if consumption < 0:
            raise ValueError(f"Negative consumption {consumption}")
        self.consumption[tenant, metric] = consumption

    def get_consumption(self, tenant: int, metric: int) -> float:
        return float(self.consumption[tenant, metric])

    def set_capacity(self, server: int, metric: int, capacity: float):
        if capacity < 0:
            raise ValueError(f"Negative capacity {capacity}")
        self.capacity[server, metric] = capacity

    def get_capacity(self, server: int, metric: int) -> float:
        return float(self.capacity[server, metric])

    def set_server_cost(self, server: int, cost: float):
        if cost < 0:
            raise ValueError(f"Negative server cost {cost}")
        self.cost[server] = cost
        self.max_server_cost = max(self.max_server_cost, cost)

    def get_cost(self, server: int) -> float:
        return float(self.cost[server])

    def with_even_metrics(self) -> "ConsolidationProblem":
        """
        Same problem with an even number of metrics.

        An odd metric count is padded with a dummy metric in which every
        consumption and capacity is zero; an even count returns self.
        """
        if self.nr_metrics % 2 == 0:
            return self
        padded = ConsolidationProblem(
            self.nr_tenants, self.nr_servers, self.nr_metrics + 1, self.min_capacity_step
        )
        padded.consumption[:, :self.nr_metrics] = self.consumption
        padded.capacity[:, :self.nr_metrics] = self.capacity
        for server in range(self.nr_servers):
            padded.set_server_cost(server, self.get_cost(server))
        return padded

    def summary(self) -> str:
        lines = [
            f"Step: {self.min_capacity_step}",
            f"Tenants: {self.nr_tenants}, Servers: {self.nr_servers}, Metrics: {self.nr_metrics}",
        ]
        for tenant in range(self.nr_tenants):
            lines.append(f"  Tenant {tenant} consumption: {self.consumption[tenant].tolist()}")
        for server in range(self.nr_servers):
            lines.append(f"  Server {server} capacity: {self.capacity[server].tolist()}")
        lines.append(f"  Server cost: {self.cost.tolist()}")
        return "\n".join(lines)


@dataclass
class ConsolidationSolution:
    """
    Solution of a consolidation problem.

    Attributes:
        is_feasible: Whether all tenants fit on the servers
        min_total_cost: Minimal summed activation cost (if feasible)
        assigned_server: Server of each tenant (if feasible)
    """
    is_feasible: bool
    min_total_cost: float
    assigned_server: Optional[List[int]] = None

    def __post_init__(self):
        if self.is_feasible and self.assigned_server is None:
            raise ValueError("Feasible solution requires a tenant assignment")
        if self.is_feasible and self.min_total_cost < 0:
            raise ValueError("Feasible solution requires non-negative cost")

    def is_equivalent(self, other: "ConsolidationSolution") -> bool:
        """
        Same feasibility and, if feasible, the same minimal cost.

        Assignments may differ since several placements can reach the optimum.
        """
        if self.is_feasible != other.is_feasible:
            return False
        if self.is_feasible:
            return abs(self.min_total_cost - other.min_total_cost) <= DOUBLE_TOLERANCE
        return True

    def summary(self) -> str:
        return (f"Feasible: {self.is_feasible}, Minimal cost: {self.min_total_cost}, "
                f"Assignment: {self.assigned_server}")
