"""Packet path definitions.

This module defines the PacketPath class, a complete path through the
kernel networking stack: its functions, the call edges between them and
where the walk starts and ends.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from packet_sim.core.enums import Direction
from packet_sim.core.function import KernelFunction
from packet_sim.core.graph import GraphEdge, PathGraph
from packet_sim.core.simulator import SimulationStep, Simulator


@dataclass
class PacketPath:
    """A path through the kernel networking stack.

    Attributes:
        id: Unique identifier (e.g. "tcp_ipv4_egress").
        name: Display name.
        description: What the path represents.
        direction: Whether the packet is sent or received.
        protocol: Primary protocol of the path (e.g. "TCP").
        functions: Every function on the path.
        edges: Call relationships between the functions.
        entry_point: ID of the starting function.
        exit_points: IDs of the possible final functions.
    """

    id: str
    name: str
    description: str
    direction: Direction
    protocol: str
    functions: List[KernelFunction] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    entry_point: str = ""
    exit_points: List[str] = field(default_factory=list)

    def graph(self) -> PathGraph:
        """Build a traversable graph of this path."""
        return PathGraph(self.functions, self.edges)

    def simulator(
        self, buffer_size: int, payload_size: int, default_sidecar: Any = None
    ) -> Simulator:
        """Create a Simulator for this path.

        Egress paths start from a payload at the end of the buffer; ingress
        paths start from a complete frame with every header present.
        """
        return Simulator(
            self.graph(),
            self.entry_point,
            buffer_size,
            payload_size,
            direction=self.direction,
            default_sidecar=default_sidecar,
        )

    def simulate(
        self, buffer_size: int, payload_size: int, default_sidecar: Any = None
    ) -> List[SimulationStep]:
        """Walk the path and return the sequence of steps.

        Args:
            buffer_size: Total sk_buff size in bytes.
            payload_size: Payload size in bytes.
            default_sidecar: Annotation attached to every step whose function
                carries none.

        Returns:
            The emitted steps, in order.
        """
        return self.simulator(buffer_size, payload_size, default_sidecar).run()

    def get_function(self, function_id: str) -> Optional[KernelFunction]:
        for function in self.functions:
            if function.id == function_id:
                return function
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "direction": self.direction.value,
            "protocol": self.protocol,
            "functions": [function.to_dict() for function in self.functions],
            "edges": [edge.to_dict() for edge in self.edges],
            "entryPoint": self.entry_point,
            "exitPoints": list(self.exit_points),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PacketPath":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            direction=Direction(data["direction"]),
            protocol=data.get("protocol", ""),
            functions=[KernelFunction.from_dict(f) for f in data.get("functions", [])],
            edges=[GraphEdge.from_dict(e) for e in data.get("edges", [])],
            entry_point=data.get("entryPoint", ""),
            exit_points=list(data.get("exitPoints", [])),
        )

    def __repr__(self) -> str:
        return f"PacketPath({self.id}, {len(self.functions)} functions, {self.direction.value})"
