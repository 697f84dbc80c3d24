"""
Scalability Benchmark Suite for Chimera Consolidation.

For every number of servers and metrics determines:
- The largest number of tenants for which most random problems can still be mapped
- The weight range the mappings require on the annealer
"""

import time
import json
from pathlib import Path
from dataclasses import dataclass, asdict, replace
from typing import List, Dict, Any, Optional
import numpy as np

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from chimera_consolidation.config import BenchmarkConfig, EmbeddingConfig, FactoryConfig
from chimera_consolidation.consolidation.factory import ProblemFactory
from chimera_consolidation.errors import InfeasibleEmbeddingError
from chimera_consolidation.mappers import MatrixMapper, TriangleMapper
from chimera_consolidation.solvers import LinearConsolidationSolver, QuadraticConsolidationSolver


BENCHMARK_MAPPERS = {
    "triangle": TriangleMapper,
    "matrix": MatrixMapper,
}


@dataclass
class MappingResult:
    """Mapping outcome for one problem size and mapper."""
    mapper: str
    nr_tenants: int
    nr_servers: int
    nr_metrics: int
    nr_testcases: int
    nr_mapped: int
    nr_verified: int
    max_abs_single_weight: float
    max_abs_connection_weight: float
    map_time_seconds: float

    @property
    def fraction_mapped(self) -> float:
        return self.nr_mapped / self.nr_testcases if self.nr_testcases else 0.0


def run_single_benchmark(
    nr_tenants: int,
    nr_servers: int,
    nr_metrics: int,
    bench_config: BenchmarkConfig,
    factory_config: FactoryConfig,
    verify: bool = False,
    random_seed: int = 42
) -> List[MappingResult]:
    """
    Map random problems of one size with every benchmarked mapper.

    Args:
        nr_tenants: Tenants per problem
        nr_servers: Servers per problem
        nr_metrics: Metrics per problem
        bench_config: Test cases per point
        factory_config: Value ranges of the random problems
        verify: Solve mapped problems and compare with the linear solver
        random_seed: Random seed for reproducibility

    Returns:
        One MappingResult per mapper
    """
    factory = ProblemFactory(
        replace(factory_config, nr_tenants=nr_tenants, nr_servers=nr_servers, nr_metrics=nr_metrics),
        random_seed=random_seed
    )
    problems = [factory.produce() for _ in range(bench_config.nr_testcases)]
    linear_solver = LinearConsolidationSolver()

    results = []
    for name, mapper_class in BENCHMARK_MAPPERS.items():
        mapper = mapper_class()
        quadratic_solver = QuadraticConsolidationSolver(mapper)
        nr_mapped = 0
        nr_verified = 0
        max_single = 0.0
        max_connection = 0.0

        start_time = time.time()
        for problem in problems:
            try:
                mapping = mapper.transform(problem)
            except InfeasibleEmbeddingError:
                continue
            nr_mapped += 1
            max_single = max(max_single, mapping.get_max_abs_weight(True, False))
            max_connection = max(max_connection, mapping.get_max_abs_weight(False, True))

            if verify:
                quadratic = quadratic_solver.solve(problem)
                linear = linear_solver.solve(problem)
                assert quadratic.is_equivalent(linear), (
                    f"{name} mapper disagrees with linear solver:\n{problem.summary()}"
                )
                nr_verified += 1
        map_time = time.time() - start_time

        results.append(MappingResult(
            mapper=name,
            nr_tenants=nr_tenants,
            nr_servers=nr_servers,
            nr_metrics=nr_metrics,
            nr_testcases=len(problems),
            nr_mapped=nr_mapped,
            nr_verified=nr_verified,
            max_abs_single_weight=max_single,
            max_abs_connection_weight=max_connection,
            map_time_seconds=map_time
        ))
    return results


def determine_max_tenants(
    results: List[MappingResult],
    mapper: str,
    bench_config: BenchmarkConfig
) -> np.ndarray:
    """
    Largest tenant count per (servers, metrics) such that the mapped fraction
    exceeds the threshold for it and every smaller count.
    """
    mapped = {
        (r.nr_servers, r.nr_metrics, r.nr_tenants): r.fraction_mapped
        for r in results if r.mapper == mapper
    }
    max_tenants = np.zeros((bench_config.max_servers, bench_config.max_metrics), dtype=int)
    for servers in range(1, bench_config.max_servers + 1):
        for metrics in range(1, bench_config.max_metrics + 1):
            for tenants in range(1, bench_config.max_tenants + 1):
                if mapped.get((servers, metrics, tenants), 0.0) > bench_config.threshold:
                    max_tenants[servers - 1, metrics - 1] = tenants
                else:
                    break
    return max_tenants


def latex_table(max_tenants: np.ndarray) -> str:
    """LaTeX tabular of maximal tenant counts, servers as rows and metrics as columns."""
    nr_servers, nr_metrics = max_tenants.shape
    lines = [
        "\\begin{tabular}{l" + "l" * nr_metrics + "}",
        "\\toprule[1pt]",
        "{\\bf Servers} & \\multicolumn{" + str(nr_metrics) + "}{c}{{\\bf Metrics}} \\\\",
        "\\cmidrule(r){2-" + str(nr_metrics + 1) + "}",
        "".join(f" & {{\\bf {m + 1}}}" for m in range(nr_metrics)) + "\\\\",
    ]
    for servers in range(nr_servers):
        lines.append("\\midrule")
        row = f"{{\\bf {servers + 1}}}"
        row += "".join(f" & {max_tenants[servers, m]}" for m in range(nr_metrics))
        lines.append(row + "\\\\")
    lines.append("\\bottomrule[1pt]")
    lines.append("\\end{tabular}")
    return "\n".join(lines)


def run_all_benchmarks(
    config: Optional[EmbeddingConfig] = None,
    verify: bool = False,
    output_dir: str = "results"
) -> Dict[str, Any]:
    """
    Run the mapping-possible benchmark for all problem sizes.

    Args:
        config: Benchmark and factory configuration
        verify: Cross-check mapped problems against the linear solver
        output_dir: Directory to save results

    Returns:
        Dict with raw results and max-tenant tables per mapper
    """
    config = config or EmbeddingConfig()
    bench = config.benchmark

    print("\n" + "=" * 60)
    print("CHIMERA CONSOLIDATION - MAPPING POSSIBLE BENCHMARK")
    print("=" * 60)

    results: List[MappingResult] = []
    for servers in range(1, bench.max_servers + 1):
        for metrics in range(1, bench.max_metrics + 1):
            for tenants in range(1, bench.max_tenants + 1):
                point = run_single_benchmark(
                    tenants, servers, metrics, bench, config.factory, verify,
                    random_seed=config.random_seed
                )
                results.extend(point)
                status = " | ".join(f"{r.mapper}: {r.nr_mapped}/{r.nr_testcases}" for r in point)
                print(f"  {tenants}T {servers}S {metrics}M  {status}")

    tables = {
        name: determine_max_tenants(results, name, bench)
        for name in BENCHMARK_MAPPERS
    }

    # Save results
    output_path = Path(output_dir)
    output_path.mkdir(exist_ok=True)

    results_file = output_path / "mapping_possible.json"
    with open(results_file, 'w') as f:
        json.dump({
            "results": [asdict(r) for r in results],
            "max_tenants": {name: table.tolist() for name, table in tables.items()},
        }, f, indent=2)

    print(f"\nResults saved to: {results_file}")

    for name, table in tables.items():
        latex_file = output_path / f"max_tenants_{name}.tex"
        latex_file.write_text(latex_table(table) + "\n")
        print(f"\nResults for {name} mapper:")
        print(latex_table(table))

    # Maximal weights
    print("\n" + "=" * 60)
    print("MAXIMUM ABSOLUTE WEIGHTS")
    print("=" * 60)
    for name in BENCHMARK_MAPPERS:
        mapped = [r for r in results if r.mapper == name and r.nr_mapped > 0]
        overall = max(
            (max(r.max_abs_single_weight, r.max_abs_connection_weight) for r in mapped),
            default=0.0
        )
        print(f"{name:<10} {overall:.3f}")

    return {"results": results, "max_tenants": tables}


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run mapping possible benchmark")
    parser.add_argument("--max-tenants", type=int, default=8, help="Largest tenant count")
    parser.add_argument("--max-servers", type=int, default=4, help="Largest server count")
    parser.add_argument("--max-metrics", type=int, default=3, help="Largest metric count")
    parser.add_argument("--testcases", type=int, default=10, help="Random problems per point")
    parser.add_argument("--verify", action="store_true",
                        help="Cross-check mapped problems against the linear solver")
    parser.add_argument("--output", default="results",
                        help="Output directory for results")

    args = parser.parse_args()

    config = EmbeddingConfig(
        benchmark=BenchmarkConfig(
            max_tenants=args.max_tenants,
            max_servers=args.max_servers,
            max_metrics=args.max_metrics,
            nr_testcases=args.testcases,
        )
    )
    run_all_benchmarks(config, args.verify, args.output)
