"""Packet path simulator.

This module defines the Simulator class, which walks a PathGraph from its
entry point and records the state of the sk_buff after every visited
function, and the SimulationStep values it produces.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from packet_sim.core.buffer import BufferState
from packet_sim.core.enums import Direction, SimulatorState, TerminationReason
from packet_sim.core.graph import GraphEdge, GraphNode, PathGraph

logger = logging.getLogger(__name__)


def _to_wire(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    return to_dict() if callable(to_dict) else value


@dataclass(frozen=True)
class SimulationStep:
    """A single step of a simulation run.

    Attributes:
        step_number: 1-indexed position of the step in the run.
        node: The function visited at this step.
        buffer: State of the sk_buff after the function ran. Each step owns
            its copy exclusively.
        edge_taken: The edge that led here (None for the entry point).
        sidecar: Auxiliary annotation of the step, e.g. the conntrack entry.
        mutation_applied: False if the function's mutation did not fit the
            buffer and was skipped.
    """

    step_number: int
    node: GraphNode
    buffer: BufferState
    edge_taken: Optional[GraphEdge] = None
    sidecar: Any = None
    mutation_applied: bool = True

    def to_dict(self) -> Dict[str, Any]:
        node = _to_wire(self.node)
        if node is self.node:
            node = {"id": self.node.id}
        result: Dict[str, Any] = {
            "stepNumber": self.step_number,
            "function": node,
            "skbuffState": self.buffer.to_dict(),
        }
        if self.edge_taken is not None:
            result["edgeTaken"] = self.edge_taken.to_dict()
        if self.sidecar is not None:
            result["conntrackState"] = _to_wire(self.sidecar)
        if not self.mutation_applied:
            result["mutationFailed"] = True
        return result


class Simulator:
    """Deterministic walk of a PathGraph.

    A run starts at the entry point with a freshly built sk_buff, applies the
    mutation of every visited function and follows the first non-error edge
    (lowest ``order``) out of it. It never branches and visits each function
    at most once, so a run emits at most one step per function.

    A mutation that does not fit the buffer is not fatal: the failure is
    logged and recorded in ``failed_mutations``, and the step is emitted with
    the buffer unchanged. Likewise the run ends early, without raising, when
    the walk reaches a dead end, an undefined function or a function it has
    already visited; ``termination_reason`` tells which.

    Attributes:
        graph: Graph being walked.
        entry_point: ID of the first function.
        capacity: Total sk_buff size in bytes.
        payload_size: Payload size in bytes.
        direction: Selects how the initial sk_buff is laid out.
        headers: Headers present at the start of an ingress run.
        default_sidecar: Annotation for steps whose function carries none.
        state: Lifecycle state of the current run.
        current: ID of the function being visited.
        termination_reason: Why the last run stopped.
        buffer: The live sk_buff of the current run.
        steps: Steps emitted so far.
        failed_mutations: IDs of functions whose mutation did not fit.
    """

    def __init__(
        self,
        graph: PathGraph,
        entry_point: str,
        capacity: int,
        payload_size: int,
        direction: Direction = Direction.EGRESS,
        headers: Optional[Sequence[Tuple[str, int]]] = None,
        default_sidecar: Any = None,
    ) -> None:
        """Initialize the simulator.

        Args:
            graph: Graph to walk.
            entry_point: ID of the first function.
            capacity: Total sk_buff size in bytes.
            payload_size: Payload size in bytes.
            direction: EGRESS starts from a trailing payload, INGRESS from a
                complete frame.
            headers: (label, size) pairs present at the start of an ingress
                run, outermost first. Defaults to ethernet, ip and tcp.
            default_sidecar: Annotation for steps whose function carries none.
        """
        self.graph = graph
        self.entry_point = entry_point
        self.capacity = capacity
        self.payload_size = payload_size
        self.direction = direction
        self.headers = headers
        self.default_sidecar = default_sidecar

        self.state = SimulatorState.NOT_STARTED
        self.current: Optional[str] = None
        self.termination_reason: Optional[TerminationReason] = None
        self.buffer: Optional[BufferState] = None
        self.steps: List[SimulationStep] = []
        self.failed_mutations: List[str] = []

        self.hooks: Dict[str, List[Callable[..., Any]]] = {
            "step": [],  # a step was emitted
            "mutation_failed": [],  # a mutation did not fit the buffer
            "sim_end": [],  # the run terminated
        }

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback function for a specific event type.

        Args:
            event_type: The type of event to register for.
            callback: The function to call when the event occurs.
        """
        if event_type not in self.hooks:
            raise ValueError(f"Unknown hook type: {event_type}")
        self.hooks[event_type].append(callback)

    def call_hooks(self, event_type: str, *args: Any, **kwargs: Any) -> None:
        """Call all registered callbacks for the given event type."""
        for callback in self.hooks.get(event_type, []):
            callback(*args, **kwargs)

    def _reset(self) -> None:
        self.buffer = BufferState.for_direction(
            self.direction, self.capacity, self.payload_size, self.headers
        )
        self.state = SimulatorState.VISITING
        self.current = None
        self.termination_reason = None
        self.steps = []
        self.failed_mutations = []

    def _terminate(self, reason: TerminationReason) -> None:
        self.state = SimulatorState.TERMINATED
        self.termination_reason = reason
        logger.info(
            f"Simulation from {self.entry_point!r} ended after {len(self.steps)} "
            f"steps ({reason.value})"
        )
        self.call_hooks("sim_end", reason, self.steps)

    def _next_edge(self, node_id: str) -> Optional[GraphEdge]:
        for edge in self.graph.ordered_edges(node_id):
            if not edge.is_error_path:
                return edge
        return None

    def iter_steps(self) -> Iterator[SimulationStep]:
        """Start a new run and yield its steps as they are emitted."""
        self._reset()
        visited: Set[str] = set()
        current = self.entry_point or None
        edge_taken: Optional[GraphEdge] = None
        step_number = 1

        while current is not None and current not in visited:
            self.current = current
            visited.add(current)

            node = self.graph.lookup(current)
            if node is None:
                logger.warning(f"Function {current!r} is not defined in the graph")
                self._terminate(TerminationReason.NODE_MISSING)
                return

            applied = self.buffer.apply(node.mutation)
            if not applied:
                logger.warning(
                    f"{node.mutation.description or node.mutation.kind.value} at "
                    f"{current!r} does not fit {self.buffer!r}, buffer left unchanged"
                )
                self.failed_mutations.append(current)
                self.call_hooks("mutation_failed", node, self.buffer.clone())

            sidecar = node.sidecar if node.sidecar is not None else self.default_sidecar
            step = SimulationStep(
                step_number, node, self.buffer.clone(), edge_taken, sidecar, applied
            )
            self.steps.append(step)
            logger.debug(f"Step {step_number}: {current} {step.buffer!r}")
            self.call_hooks("step", step)
            yield step
            step_number += 1

            edge_taken = self._next_edge(current)
            if edge_taken is None:
                self._terminate(TerminationReason.DEAD_END)
                return
            current = edge_taken.target

        if current is None:
            self._terminate(TerminationReason.DEAD_END)
        else:
            self._terminate(TerminationReason.REVISITED)

    def run(self) -> List[SimulationStep]:
        """Run the simulation to completion.

        Returns:
            The emitted steps, in order.
        """
        for _ in self.iter_steps():
            pass
        return list(self.steps)


def simulate(
    graph: PathGraph,
    entry_point: str,
    capacity: int,
    payload_size: int,
    direction: Direction = Direction.EGRESS,
    headers: Optional[Sequence[Tuple[str, int]]] = None,
    default_sidecar: Any = None,
) -> List[SimulationStep]:
    """Run a single simulation and return its steps.

    Args:
        graph: Graph to walk.
        entry_point: ID of the first function.
        capacity: Total sk_buff size in bytes.
        payload_size: Payload size in bytes.
        direction: Selects how the initial sk_buff is laid out.
        headers: Headers present at the start of an ingress run.
        default_sidecar: Annotation for steps whose function carries none.

    Returns:
        The emitted steps, in order.
    """
    simulator = Simulator(
        graph, entry_point, capacity, payload_size, direction, headers, default_sidecar
    )
    return simulator.run()
