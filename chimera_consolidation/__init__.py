# Chimera Consolidation Package
"""
Embedding of server consolidation problems onto a Chimera qubit graph:
- Geometric primitives (triangles, max-bars) realizing logical variables as qubit chains
- Analytic penalty weights turning constraints into a QUBO energy landscape
- Classical MILP solvers used to validate the produced mappings
"""

__version__ = "0.1.0"
