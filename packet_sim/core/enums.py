"""Enumerations for packet path simulation.

This module defines enumerations used throughout the simulator, together
with the central mapping between each enumeration and its wire-format label.
"""

from enum import Enum


class Layer(Enum):
    """Layer of the Linux networking stack a kernel function belongs to.

    Members are declared top to bottom, in the order the tiers are rendered.

    Attributes:
        USER_SPACE: System call interface (write, sendto, sendmsg).
        SOCKET: Socket abstraction layer.
        TRANSPORT: Transport layer (L4), e.g. TCP, UDP.
        NETWORK: Network layer (L3), e.g. IPv4, IPv6.
        DATA_LINK: Data link layer (L2), qdisc and neighbour subsystem.
        DRIVER: Network device driver.
    """

    USER_SPACE = "User Space"
    SOCKET = "Socket Layer"
    TRANSPORT = "Transport Layer"
    NETWORK = "Network Layer"
    DATA_LINK = "Data Link Layer"
    DRIVER = "Device Driver"

    @property
    def label(self) -> str:
        """Wire-format label of the layer."""
        return self.value

    @property
    def short_id(self) -> str:
        return _LAYER_IDS[self]

    @property
    def css_class(self) -> str:
        return f"layer-{_LAYER_IDS[self]}"

    @property
    def order(self) -> int:
        """Rendering order of the layer (0 = top)."""
        return list(Layer).index(self)

    @classmethod
    def from_label(cls, label: str) -> "Layer":
        """Look up a layer by its wire-format label.

        Args:
            label: Label as written in the exported contract.

        Returns:
            The matching layer.

        Raises:
            ValueError: If the label does not name a known layer.
        """
        try:
            return cls(label)
        except ValueError:
            raise ValueError(f"Unknown layer label: {label!r}") from None

    def __str__(self) -> str:
        return self.value


_LAYER_IDS = {
    Layer.USER_SPACE: "user",
    Layer.SOCKET: "socket",
    Layer.TRANSPORT: "transport",
    Layer.NETWORK: "network",
    Layer.DATA_LINK: "datalink",
    Layer.DRIVER: "driver",
}


class Direction(Enum):
    """Direction a packet travels through the stack.

    Attributes:
        EGRESS: Sending. Headers are pushed in front of a trailing payload.
        INGRESS: Receiving. The packet arrives complete and headers are pulled.
    """

    EGRESS = "egress"
    INGRESS = "ingress"


class MutationKind(Enum):
    """Kind of sk_buff mutation performed by a kernel function."""

    NONE = "none"
    PUSH = "push"
    PULL = "pull"
    PUT = "put"
    ALLOC = "alloc"


class SimulatorState(Enum):
    """Lifecycle state of a Simulator run."""

    NOT_STARTED = 1
    VISITING = 2
    TERMINATED = 3


class TerminationReason(Enum):
    """Why a simulation run stopped walking the graph.

    Attributes:
        DEAD_END: The last node had no eligible outgoing edge.
        NODE_MISSING: An edge pointed at a node that is not defined.
        REVISITED: The next node had already been visited in this run.
    """

    DEAD_END = "deadEnd"
    NODE_MISSING = "nodeMissing"
    REVISITED = "revisited"
