"""Contract export for packet path simulation.

This module bundles the packet paths, their pre-computed simulations and
rendering metadata into the versioned JSON contract read by the front end,
and reads such a contract back.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from packet_sim import config
from packet_sim.core.buffer import BufferState
from packet_sim.core.enums import Layer
from packet_sim.core.graph import GraphEdge
from packet_sim.core.mutation import HEADER_SIZES
from packet_sim.core.path import PacketPath
from packet_sim.core.simulator import SimulationStep
from packet_sim.paths import build_all_paths
from packet_sim.paths.conntrack import ConntrackEntry, ConntrackState

logger = logging.getLogger(__name__)


@dataclass
class ExportOptions:
    """Options for the JSON export.

    Attributes:
        pretty: Indent the JSON output.
        include_simulation: Include a pre-computed simulation for each path.
        buffer_size: sk_buff size used for the simulations.
        payload_size: Initial payload size used for the simulations.
    """

    pretty: bool = True
    include_simulation: bool = True
    buffer_size: int = field(default_factory=lambda: config.DEFAULT_BUFFER_SIZE)
    payload_size: int = field(default_factory=lambda: config.DEFAULT_PAYLOAD_SIZE)


@dataclass
class LoadedContract:
    """A contract read back from JSON.

    Attributes:
        version: Contract schema version.
        kernel_version: Kernel version the paths are based on.
        generated_at: Generation timestamp (may be empty).
        paths: Path definitions, in export order.
        simulations: Simulation steps keyed by path ID; paths exported
            without a simulation are absent.
        metadata: Rendering metadata, as exported.
    """

    version: str
    kernel_version: str
    generated_at: str
    paths: List[PacketPath]
    simulations: Dict[str, List[SimulationStep]]
    metadata: Dict[str, Any]


def layer_metadata() -> List[Dict[str, Any]]:
    """Rendering information for every layer, top to bottom."""
    return [
        {
            "id": layer.short_id,
            "name": layer.label,
            "cssClass": layer.css_class,
            "order": layer.order,
        }
        for layer in Layer
    ]


def build_export(
    options: Optional[ExportOptions] = None, generated_at: str = ""
) -> Dict[str, Any]:
    """Assemble the export envelope for every known path.

    Egress paths are simulated from a payload at the end of the buffer and
    ingress paths from a complete frame; every step carries an ESTABLISHED
    conntrack entry.

    Args:
        options: Export options (defaults to ``ExportOptions()``).
        generated_at: Generation timestamp to record.

    Returns:
        The export envelope as a JSON-serializable dictionary.
    """
    if options is None:
        options = ExportOptions()

    conntrack = ConntrackEntry.for_state(ConntrackState.ESTABLISHED)
    paths = []
    for path in build_all_paths():
        entry: Dict[str, Any] = {"path": path.to_dict()}
        if options.include_simulation:
            steps = path.simulate(options.buffer_size, options.payload_size, conntrack)
            entry["simulation"] = [step.to_dict() for step in steps]
            logger.info(f"Simulated {path.id}: {len(steps)} steps")
        paths.append(entry)

    return {
        "version": config.CONTRACT_VERSION,
        "kernelVersion": config.KERNEL_VERSION,
        "generatedAt": generated_at,
        "paths": paths,
        "metadata": {
            "layers": layer_metadata(),
            "headerSizes": dict(HEADER_SIZES),
            "bufferSize": options.buffer_size,
            "payloadSize": options.payload_size,
        },
    }


def to_json(envelope: Dict[str, Any], pretty: bool = True) -> str:
    if pretty:
        return json.dumps(envelope, indent=2)
    return json.dumps(envelope, separators=(",", ":"))


def export_all_paths(
    options: Optional[ExportOptions] = None, generated_at: str = ""
) -> str:
    """Export every known path as JSON text.

    Args:
        options: Export options (defaults to ``ExportOptions()``).
        generated_at: Generation timestamp to record.

    Returns:
        The contract as JSON text.
    """
    if options is None:
        options = ExportOptions()
    return to_json(build_export(options, generated_at), options.pretty)


def save_export(text: str, filename: str) -> None:
    """Write exported JSON text to a file, creating its directory if needed.

    Args:
        text: JSON text to write.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w") as f:
        f.write(text)


def steps_from_dicts(path: PacketPath, data: List[Dict[str, Any]]) -> List[SimulationStep]:
    """Rebuild simulation steps of a path from their wire form.

    The sidecar annotation is kept as the raw dictionary.

    Raises:
        ValueError: If a step refers to a function the path does not define.
    """
    steps = []
    for item in data:
        function_id = item["function"]["id"]
        node = path.get_function(function_id)
        if node is None:
            raise ValueError(f"Step {item['stepNumber']} refers to unknown function {function_id!r}")
        edge = item.get("edgeTaken")
        steps.append(
            SimulationStep(
                step_number=int(item["stepNumber"]),
                node=node,
                buffer=BufferState.from_dict(item["skbuffState"]),
                edge_taken=GraphEdge.from_dict(edge) if edge else None,
                sidecar=item.get("conntrackState"),
                mutation_applied=not item.get("mutationFailed", False),
            )
        )
    return steps


def load_export(filename: str) -> LoadedContract:
    """Read a contract written by ``save_export``.

    Args:
        filename: Contract filename.

    Returns:
        The parsed contract.
    """
    with open(filename) as f:
        envelope = json.load(f)

    paths = []
    simulations = {}
    for entry in envelope.get("paths", []):
        path = PacketPath.from_dict(entry["path"])
        paths.append(path)
        if "simulation" in entry:
            simulations[path.id] = steps_from_dicts(path, entry["simulation"])

    return LoadedContract(
        version=envelope.get("version", ""),
        kernel_version=envelope.get("kernelVersion", ""),
        generated_at=envelope.get("generatedAt", ""),
        paths=paths,
        simulations=simulations,
        metadata=envelope.get("metadata", {}),
    )
