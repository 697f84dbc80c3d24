# Utilities Package
"""Utility functions for visualization and analysis."""

from .visualization import EmbeddingVisualizer, plot_embedding, plot_results, qubit_position

__all__ = [
    "EmbeddingVisualizer",
    "plot_embedding",
    "plot_results",
    "qubit_position",
]
