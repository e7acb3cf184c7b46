"""Visualization utilities for packet path simulation.

This module provides functions for drawing packet path graphs and plotting
how the sk_buff evolves over a simulation run.
"""

from typing import Optional, Sequence, Tuple
import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import os

from packet_sim.core.enums import Layer
from packet_sim.core.path import PacketPath
from packet_sim.core.simulator import SimulationStep
from packet_sim.utils.metrics import buffer_series

LAYER_COLORS = {
    Layer.USER_SPACE: "#9ecae1",
    Layer.SOCKET: "#a1d99b",
    Layer.TRANSPORT: "#fdd0a2",
    Layer.NETWORK: "#fcbba1",
    Layer.DATA_LINK: "#dadaeb",
    Layer.DRIVER: "#d9d9d9",
}
UNDEFINED_COLOR = "#ffffff"


def _finish(fig, filename: Optional[str], show: bool, block: bool = True) -> None:
    if filename:
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(filename)
        plt.close(fig)
    elif show:
        plt.show(block=block)
        if not block:
            plt.pause(0.001)


def save_path_visualization(
    path: PacketPath,
    steps: Optional[Sequence[SimulationStep]] = None,
    filename: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 10),
    show: bool = True,
    block: bool = True,
) -> None:
    """Draw a packet path, one row per stack layer.

    Error path edges are dashed red. When steps are given, the edges taken
    by the simulation are drawn in blue.

    Args:
        path: The path to draw.
        steps: Simulation steps whose trace should be highlighted.
        filename: Output filename, or None to show it immediately.
        figsize: Figure size as (width, height) in inches.
        show: Whether to show the figure when no filename is given.
        block: Whether to block execution until the figure is closed.
    """
    fig = plt.figure(figsize=figsize)

    path_graph = path.graph()
    graph = nx.DiGraph()
    undefined_row = len(Layer)
    for node_id in path_graph.graph.nodes:
        node = path_graph.lookup(node_id)
        layer = getattr(node, "layer", None)
        # Rows are stacked bottom-up, so invert to keep user space on top.
        row = undefined_row - (layer.order if layer is not None else undefined_row)
        graph.add_node(node_id, subset=row, layer=layer)

    normal_edges = [(e.source, e.target) for e in path.edges if not e.is_error_path]
    error_edges = [(e.source, e.target) for e in path.edges if e.is_error_path]
    graph.add_edges_from(normal_edges + error_edges)

    pos = nx.multipartite_layout(graph, subset_key="subset", align="horizontal")

    colors = [
        LAYER_COLORS.get(graph.nodes[n]["layer"], UNDEFINED_COLOR) for n in graph.nodes
    ]
    nx.draw_networkx_nodes(graph, pos, node_size=600, node_color=colors, edgecolors="gray")
    nx.draw_networkx_edges(graph, pos, edgelist=normal_edges, edge_color="gray", arrows=True)
    nx.draw_networkx_edges(
        graph,
        pos,
        edgelist=error_edges,
        edge_color="red",
        style="dashed",
        arrows=True,
    )

    if steps:
        taken = [
            (s.edge_taken.source, s.edge_taken.target)
            for s in steps
            if s.edge_taken is not None
        ]
        nx.draw_networkx_edges(
            graph,
            pos,
            edgelist=taken,
            width=2,
            alpha=0.6,
            edge_color="blue",
            arrows=True,
            arrowsize=20,
        )

    nx.draw_networkx_labels(graph, pos, font_size=7)

    plt.title(path.name)
    plt.axis("off")
    plt.tight_layout()

    _finish(fig, filename, show, block)


def plot_buffer_usage(
    steps: Sequence[SimulationStep],
    output_dir: Optional[str] = None,
    filename: str = "buffer_usage",
    title: Optional[str] = None,
    show: bool = True,
) -> None:
    """Plot headroom, packet data and tailroom of the sk_buff at every step.

    Args:
        steps: Simulation steps, in order.
        output_dir: Directory to save the plot into, or None to show it.
        filename: Name of the saved file, without extension.
        title: Plot title.
        show: Whether to show the plot when no output directory is given.
    """
    series = buffer_series(steps)
    x = np.arange(len(steps))
    labels = [step.node.id for step in steps]

    fig, ax = plt.subplots(figsize=(12, 6))

    ax.bar(x, series["headroom"], width=0.6, label="Headroom", color="lightgray")
    ax.bar(
        x,
        series["length"],
        width=0.6,
        bottom=series["headroom"],
        label="Packet data",
        color="steelblue",
    )
    ax.bar(
        x,
        series["tailroom"],
        width=0.6,
        bottom=series["headroom"] + series["length"],
        label="Tailroom",
        color="orange",
    )

    ax.set_title(title or "sk_buff Layout per Step")
    ax.set_ylabel("Bytes")
    ax.set_xlabel("Function")
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=60, ha="right", fontsize=7)
    ax.legend()
    ax.grid(True, axis="y", linestyle="--", alpha=0.7)

    plt.tight_layout()

    target = os.path.join(output_dir, f"{filename}.png") if output_dir else None
    _finish(fig, target, show)
