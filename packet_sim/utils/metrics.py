"""Metrics utilities for packet path simulation.

This module provides functions for summarizing how the sk_buff evolves over
a simulation run, including headroom, tailroom and packet length per step
and the bytes added or stripped along the way.
"""

import os
import json
from collections import Counter
from typing import Any, Dict, List, Sequence

import numpy as np

from packet_sim.core.mutation import Pull, Push, Put
from packet_sim.core.simulator import SimulationStep


def buffer_series(steps: Sequence[SimulationStep]) -> Dict[str, np.ndarray]:
    """Extract per-step buffer offsets as integer arrays.

    Args:
        steps: Simulation steps, in order.

    Returns:
        Arrays keyed by "data", "tail", "headroom", "tailroom" and "length".
    """
    buffers = [step.buffer for step in steps]
    return {
        "data": np.array([b.data for b in buffers], dtype=int),
        "tail": np.array([b.tail for b in buffers], dtype=int),
        "headroom": np.array([b.headroom() for b in buffers], dtype=int),
        "tailroom": np.array([b.tailroom() for b in buffers], dtype=int),
        "length": np.array([b.length() for b in buffers], dtype=int),
    }


def calculate_buffer_metrics(steps: Sequence[SimulationStep]) -> Dict[str, Any]:
    """Calculate buffer metrics for a simulation run.

    Byte counts add up the mutations that were applied, the entry
    function's included; mutations that did not fit the buffer are left out.

    Args:
        steps: Simulation steps, in order.

    Returns:
        Dictionary of calculated metrics.
    """
    if not steps:
        return {"step_count": 0}

    series = buffer_series(steps)
    applied = [step.node.mutation for step in steps if step.mutation_applied]
    pushed = np.array([m.size for m in applied if isinstance(m, Push)], dtype=int)
    pulled = np.array([m.size for m in applied if isinstance(m, Pull)], dtype=int)
    put = np.array([m.size for m in applied if isinstance(m, Put)], dtype=int)

    layers_seen: List[str] = []
    for step in steps:
        for segment in step.buffer.segments:
            if segment.label not in layers_seen:
                layers_seen.append(segment.label)

    mutations = Counter(step.node.mutation.kind.value for step in steps)
    mutations.pop("none", None)

    return {
        "step_count": len(steps),
        "headroom": series["headroom"],
        "tailroom": series["tailroom"],
        "length": series["length"],
        "bytes_pushed": int(pushed.sum()),
        "bytes_pulled": int(pulled.sum()),
        "bytes_put": int(put.sum()),
        "min_headroom": int(series["headroom"].min()),
        "max_length": int(series["length"].max()),
        "final_length": int(series["length"][-1]),
        "layers_seen": layers_seen,
        "mutations": dict(mutations),
    }


def save_metrics_to_json(
    metrics: Dict[str, Any], filename: str = "results/metrics.json"
) -> None:
    """Save metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics to save.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    # Convert non-serializable types
    serializable_metrics = {}
    for key, value in metrics.items():
        if isinstance(value, np.ndarray):
            serializable_metrics[key] = value.tolist()
        else:
            serializable_metrics[key] = value

    with open(filename, "w") as f:
        json.dump(serializable_metrics, f, indent=2)
