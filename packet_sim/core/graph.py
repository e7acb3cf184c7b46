"""Directed graph of processing stages.

This module defines the GraphNode and GraphEdge value types and the
PathGraph class, a read-only index over a NetworkX multigraph that the
Simulator walks.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

import networkx as nx

from packet_sim.core.mutation import NO_MUTATION, Mutation


@dataclass(frozen=True)
class GraphNode:
    """A processing stage.

    Attributes:
        id: Unique identifier of the stage.
        mutation: sk_buff mutation performed at this stage.
        sidecar: Auxiliary annotation passed through to simulation steps
            unchanged (e.g. a connection tracking entry).
    """

    id: str
    mutation: Mutation = NO_MUTATION
    sidecar: Any = None


@dataclass(frozen=True)
class GraphEdge:
    """A directed call relationship between two stages.

    Attributes:
        source: ID of the calling stage.
        target: ID of the called stage.
        order: Sequence number among edges leaving the same source.
        is_error_path: Whether the edge is an error handling path.
        condition: When the edge is taken (empty for unconditional).
    """

    source: str
    target: str
    order: int = 0
    is_error_path: bool = False
    condition: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"from": self.source, "to": self.target}
        if self.condition:
            result["condition"] = self.condition
        if self.is_error_path:
            result["isErrorPath"] = True
        if self.order:
            result["order"] = self.order
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphEdge":
        return cls(
            source=data["from"],
            target=data["to"],
            order=int(data.get("order", 0)),
            is_error_path=bool(data.get("isErrorPath", False)),
            condition=data.get("condition", ""),
        )


class PathGraph:
    """Read-only index over a fixed set of stages and call edges.

    Edges may point at stages that are not defined and may form cycles;
    both are left for the Simulator to handle while walking.

    Attributes:
        graph: NetworkX multigraph holding the stages and edges.
    """

    def __init__(self, nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> None:
        """Index the given stages and edges.

        Args:
            nodes: Stages in definition order.
            edges: Edges in definition order.

        Raises:
            ValueError: If two stages share an ID.
        """
        self.graph = nx.MultiDiGraph()
        self._nodes: Dict[str, GraphNode] = {}
        self._adjacency: Dict[str, List[GraphEdge]] = {}
        self._ordered: Dict[str, List[GraphEdge]] = {}
        self._edges: List[GraphEdge] = []

        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate node id: {node.id}")
            self._nodes[node.id] = node
            self.graph.add_node(node.id, node=node)

        for edge in edges:
            self._edges.append(edge)
            self._adjacency.setdefault(edge.source, []).append(edge)
            self.graph.add_edge(edge.source, edge.target, edge=edge)

        # sorted() is stable, so definition order breaks ties in ``order``
        for source, outgoing in self._adjacency.items():
            self._ordered[source] = sorted(outgoing, key=lambda e: e.order)

    def lookup(self, node_id: str) -> Optional[GraphNode]:
        """Return the stage with the given ID, or None if it is not defined."""
        return self._nodes.get(node_id)

    def outgoing_edges(self, node_id: str) -> List[GraphEdge]:
        """Return the edges leaving a stage, in definition order."""
        return list(self._adjacency.get(node_id, ()))

    def ordered_edges(self, node_id: str) -> List[GraphEdge]:
        """Return the edges leaving a stage, sorted by ``order``."""
        return list(self._ordered.get(node_id, ()))

    def next_nodes(self, node_id: str) -> List[str]:
        """Return the IDs of the stages called by a stage, in definition order."""
        return [edge.target for edge in self._adjacency.get(node_id, ())]

    def reachable_from(self, node_id: str) -> Set[str]:
        """Return every stage ID reachable from a stage, itself included."""
        if node_id not in self.graph:
            return set()
        return nx.descendants(self.graph, node_id) | {node_id}

    def has_cycle(self) -> bool:
        return not nx.is_directed_acyclic_graph(self.graph)

    @property
    def nodes(self) -> List[GraphNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[GraphEdge]:
        return list(self._edges)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"PathGraph({len(self._nodes)} nodes, {self.graph.number_of_edges()} edges)"
