"""
Main entry point for Chimera consolidation embedding.

Run with: python -m chimera_consolidation.main <command> [options]
"""

import argparse
import sys
from pathlib import Path

from .config import EmbeddingConfig, create_default_config, create_small_config
from .consolidation.factory import ProblemFactory
from .errors import InfeasibleEmbeddingError
from .mappers import MAPPERS
from .solvers import LinearConsolidationSolver, QuadraticConsolidationSolver
from .utils.visualization import plot_results


def build_config(args) -> EmbeddingConfig:
    """Configuration from the command line arguments."""
    if args.test_mode:
        config = create_small_config()
        print("\n[Config] Using small test configuration")
    else:
        config = create_default_config()
        config.factory.nr_tenants = args.tenants
        config.factory.nr_servers = args.servers
        config.factory.nr_metrics = args.metrics
        config.factory.min_capacity_step = args.step
        config.random_seed = args.seed

    print(f"\n[Problem Configuration]")
    print(f"  Tenants: {config.factory.nr_tenants}")
    print(f"  Servers: {config.factory.nr_servers}")
    print(f"  Metrics: {config.factory.nr_metrics}")
    print(f"  Capacity step: {config.factory.min_capacity_step}")
    print(f"  Mapper: {args.mapper}")
    return config


def run_map(args, config: EmbeddingConfig, problem) -> int:
    """Embed the problem and print the layout statistics."""
    mapper = MAPPERS[args.mapper](config, verbose=True)
    mapping = mapper.transform(problem)
    if args.output:
        mapping.to_file(args.output, problem.summary().replace("\n", " "))
        print(f"\n[Weights written to {args.output}]")
    return 0


def run_solve(args, config: EmbeddingConfig, problem) -> int:
    """Solve the problem directly and through the embedding, then compare."""
    linear = LinearConsolidationSolver(config.solver, verbose=True)
    quadratic = QuadraticConsolidationSolver(
        MAPPERS[args.mapper](config), config.solver, verbose=True
    )

    print("\n[Solving Linear Formulation]")
    expected = linear.solve(problem)

    print("\n[Solving Embedded Formulation]")
    actual = quadratic.solve(problem)
    print(f"  {actual.summary()}")

    equivalent = expected.is_equivalent(actual)
    print(f"\n[Cross-Validation] Solutions equivalent: {equivalent}")
    return 0 if equivalent else 1


def run_weights(args, config: EmbeddingConfig, problem) -> int:
    """Print the weight range every mapper needs for the problem."""
    print(f"\n{'Mapper':<18} {'Max single':>12} {'Max coupling':>14} {'Min non-zero':>14}")
    print("-" * 60)
    for key, mapper_class in MAPPERS.items():
        try:
            mapping = mapper_class(config).transform(problem)
        except InfeasibleEmbeddingError as e:
            print(f"{key:<18} not mappable ({e})")
            continue
        print(f"{key:<18} "
              f"{mapping.get_max_abs_weight(True, False):>12.3f} "
              f"{mapping.get_max_abs_weight(False, True):>14.3f} "
              f"{mapping.get_min_abs_weight_gt_zero():>14.3f}")
    return 0


def run_plot(args, config: EmbeddingConfig, problem) -> int:
    """Render the embedding and its weight distribution."""
    if args.mapper == "qubo":
        print("\n[!] The QUBO mapper does not place qubits on the Chimera grid")
        return 1
    mapper = MAPPERS[args.mapper](config, verbose=True)
    mapping = mapper.transform(problem)
    print(f"\n[Saving plots to {args.save_plots}]")
    Path(args.save_plots).mkdir(parents=True, exist_ok=True)
    plot_results(mapping, mapper.graph, save_dir=args.save_plots)
    return 0


COMMANDS = {
    "map": run_map,
    "solve": run_solve,
    "weights": run_weights,
    "plot": run_plot,
}


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Server consolidation embedding on the Chimera graph"
    )
    parser.add_argument(
        "command",
        choices=sorted(COMMANDS),
        help="map: embed and report, solve: cross-validate solvers, "
             "weights: weight ranges per mapper, plot: render embedding"
    )
    parser.add_argument(
        "--mapper",
        choices=sorted(MAPPERS),
        default="triangle",
        help="Mapping strategy"
    )
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Run with small test configuration"
    )
    parser.add_argument(
        "--tenants",
        type=int,
        default=2,
        help="Number of tenants"
    )
    parser.add_argument(
        "--servers",
        type=int,
        default=2,
        help="Number of servers"
    )
    parser.add_argument(
        "--metrics",
        type=int,
        default=1,
        help="Number of resource metrics"
    )
    parser.add_argument(
        "--step",
        type=float,
        default=0.5,
        help="Minimum capacity step"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Weight file to write (map command)"
    )
    parser.add_argument(
        "--save-plots",
        type=str,
        default="plots",
        help="Directory to save plots (plot command)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed"
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("CHIMERA SERVER CONSOLIDATION")
    print("QUBO Embedding with Triangles and Max-Bars")
    print("=" * 60)

    config = build_config(args)

    print("\n[Generating Problem]")
    problem = ProblemFactory(config.factory, random_seed=config.random_seed).produce()
    print(problem.summary())

    try:
        exit_code = COMMANDS[args.command](args, config, problem)
    except InfeasibleEmbeddingError as e:
        print(f"\n[!] Problem cannot be embedded: {e}")
        exit_code = 2

    print("\n" + "=" * 60)
    print("DONE")
    print("=" * 60)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
