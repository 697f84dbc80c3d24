"""
Visualization utilities for embeddings on the Chimera grid.
"""

from typing import List, Optional, Tuple
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import networkx as nx

from ..hardware import chimera
from ..hardware.connectivity import ChimeraGraph
from ..qubo.mapping import ConsolidationMapping


ROLE_COLORS = {
    "tenant": "#3498db",     # Blue
    "capacity": "#27ae60",   # Green
    "auxiliary": "#f39c12",  # Orange
    "server": "#e74c3c",     # Red
}
UNUSED_COLOR = "#ecf0f1"
DAMAGED_COLOR = "#2c3e50"


def qubit_position(qubit: int) -> Tuple[float, float]:
    """
    Drawing position of a qubit.

    Cells are laid out like the grid; the left column of a cell is drawn as
    a vertical line of four qubits and the right column next to it.
    """
    cell = chimera.CellPosition.of(qubit)
    offset = qubit % chimera.COLUMN_SIZE
    x = cell.col * 3 + (0 if chimera.is_left_column(qubit) else 1)
    y = -(cell.row * 5 + offset)
    return float(x), float(y)


class EmbeddingVisualizer:
    """Visualize which qubits a mapping uses and how they are coupled."""

    def __init__(self, graph: Optional[ChimeraGraph] = None):
        """
        Initialize visualizer.

        Args:
            graph: Chimera graph whose damaged qubits are highlighted
        """
        self.graph = graph or ChimeraGraph()

    def build_graph(self, mapping: ConsolidationMapping) -> nx.Graph:
        """All qubits as nodes with role and position, weighted couplers as edges."""
        G = nx.Graph()
        for qubit in range(chimera.NR_QUBITS):
            if self.graph.is_damaged(qubit):
                role = "damaged"
            else:
                role = mapping.qubit_roles.get(qubit, "unused")
            G.add_node(qubit, pos=qubit_position(qubit), role=role)
        for qubit1, qubit2, weight in mapping.nonzero_entries():
            if qubit1 != qubit2:
                G.add_edge(qubit1, qubit2, weight=weight)
        return G

    def plot_embedding(
        self,
        mapping: ConsolidationMapping,
        title: str = "Chimera Embedding",
        figsize: Tuple[int, int] = (12, 12),
        save_path: Optional[str] = None
    ) -> plt.Figure:
        """
        Plot the qubits of a mapping coloured by variable role.

        Args:
            mapping: Mapping produced by a Chimera mapper
            title: Plot title
            figsize: Figure size
            save_path: Path to save figure

        Returns:
            Matplotlib figure
        """
        fig, ax = plt.subplots(figsize=figsize)
        G = self.build_graph(mapping)
        pos = nx.get_node_attributes(G, 'pos')

        # Couplings: red for penalties, blue for rewards
        positive = [(u, v) for u, v, d in G.edges(data=True) if d['weight'] > 0]
        negative = [(u, v) for u, v, d in G.edges(data=True) if d['weight'] < 0]
        if positive:
            nx.draw_networkx_edges(G, pos, edgelist=positive, edge_color='#e74c3c', alpha=0.4, ax=ax)
        if negative:
            nx.draw_networkx_edges(G, pos, edgelist=negative, edge_color='#3498db', alpha=0.4, ax=ax)

        node_colors = dict(ROLE_COLORS, unused=UNUSED_COLOR, damaged=DAMAGED_COLOR)
        for role, color in node_colors.items():
            nodes = [n for n, d in G.nodes(data=True) if d['role'] == role]
            if nodes:
                size = 20 if role == "unused" else 60
                nx.draw_networkx_nodes(G, pos, nodelist=nodes, node_color=color, node_size=size, ax=ax)

        legend_elements = [
            mpatches.Patch(color=ROLE_COLORS["tenant"], label='Tenant assignment'),
            mpatches.Patch(color=ROLE_COLORS["capacity"], label='Capacity'),
            mpatches.Patch(color=ROLE_COLORS["auxiliary"], label='Auxiliary'),
            mpatches.Patch(color=ROLE_COLORS["server"], label='Server activation'),
            mpatches.Patch(color=DAMAGED_COLOR, label='Damaged'),
        ]
        ax.legend(handles=legend_elements, loc='upper right')
        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.set_axis_off()

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig

    def plot_weight_histogram(
        self,
        mapping: ConsolidationMapping,
        figsize: Tuple[int, int] = (12, 5),
        save_path: Optional[str] = None
    ) -> plt.Figure:
        """
        Histograms of linear and coupling weights.

        The annealer's precision depends on the ratio between largest and
        smallest absolute weight, shown in the titles.
        """
        fig, axes = plt.subplots(1, 2, figsize=figsize)
        linear = np.array([w for i, j, w in mapping.nonzero_entries() if i == j])
        couplings = np.array([w for i, j, w in mapping.nonzero_entries() if i != j])

        for ax, values, label, single in (
            (axes[0], linear, 'Linear weights', True),
            (axes[1], couplings, 'Coupling weights', False),
        ):
            if values.size:
                ax.hist(values, bins=30, color='#3498db', alpha=0.8)
            ratio = (mapping.get_max_abs_weight(single, not single)
                     / mapping.get_min_abs_weight_gt_zero(single, not single))
            ax.set_title(f'{label} (max/min ratio {ratio:.1f})', fontweight='bold')
            ax.set_xlabel('Weight')
            ax.set_ylabel('Count')

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig


def plot_embedding(
    mapping: ConsolidationMapping,
    graph: Optional[ChimeraGraph] = None,
    **kwargs
) -> plt.Figure:
    """Convenience function to plot an embedding."""
    viz = EmbeddingVisualizer(graph)
    return viz.plot_embedding(mapping, **kwargs)


def plot_results(
    mapping: ConsolidationMapping,
    graph: Optional[ChimeraGraph] = None,
    save_dir: Optional[str] = None
) -> List[plt.Figure]:
    """
    Plot embedding and weight distribution.

    Args:
        mapping: Mapping produced by a Chimera mapper
        graph: Chimera graph
        save_dir: Directory to save figures

    Returns:
        List of figures
    """
    viz = EmbeddingVisualizer(graph)
    figures = [
        viz.plot_embedding(
            mapping,
            save_path=f"{save_dir}/embedding.png" if save_dir else None
        ),
        viz.plot_weight_histogram(
            mapping,
            save_path=f"{save_dir}/weights.png" if save_dir else None
        ),
    ]
    return figures
