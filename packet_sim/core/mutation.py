"""sk_buff mutation descriptors.

A kernel function either leaves the sk_buff alone or performs exactly one
mutation on it. The descriptors below form a closed set of variants, so
code that applies a mutation can dispatch on the concrete type.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union

from packet_sim.core.enums import MutationKind

# Common header sizes in bytes
ETHERNET_HEADER_SIZE = 14  # Ethernet II, no VLAN tag
IPV4_HEADER_SIZE = 20  # no options
IPV6_HEADER_SIZE = 40
TCP_HEADER_SIZE = 20  # no options
UDP_HEADER_SIZE = 8
ICMP_HEADER_SIZE = 8

HEADER_SIZES: Dict[str, int] = {
    "ethernet": ETHERNET_HEADER_SIZE,
    "ip": IPV4_HEADER_SIZE,
    "ipv6": IPV6_HEADER_SIZE,
    "tcp": TCP_HEADER_SIZE,
    "udp": UDP_HEADER_SIZE,
    "icmp": ICMP_HEADER_SIZE,
}


def _check_size(size: int) -> None:
    if size < 0:
        raise ValueError(f"Mutation size must be non-negative, got {size}")


@dataclass(frozen=True)
class NoMutation:
    """The function does not change the sk_buff."""

    kind: ClassVar[MutationKind] = MutationKind.NONE
    description: str = ""

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return None


@dataclass(frozen=True)
class Push:
    """Prepend a protocol header, moving ``data`` towards ``head``.

    Attributes:
        label: Protocol of the pushed header (e.g. "tcp").
        size: Header size in bytes.
        description: Human-readable explanation of the mutation.
    """

    kind: ClassVar[MutationKind] = MutationKind.PUSH
    label: str
    size: int
    description: str = ""

    def __post_init__(self) -> None:
        _check_size(self.size)
        if not self.description:
            object.__setattr__(self, "description", f"Push {self.label} header")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.kind.value,
            "headerType": self.label,
            "size": self.size,
            "description": self.description,
        }


@dataclass(frozen=True)
class Pull:
    """Strip bytes from the front of the packet, moving ``data`` towards ``tail``.

    Attributes:
        size: Number of bytes stripped.
        label: Protocol of the header being stripped, if known.
        description: Human-readable explanation of the mutation.
    """

    kind: ClassVar[MutationKind] = MutationKind.PULL
    size: int
    label: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        _check_size(self.size)
        if not self.description:
            what = f"{self.label} header" if self.label else f"{self.size} bytes"
            object.__setattr__(self, "description", f"Pull {what}")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"operation": self.kind.value}
        if self.label:
            result["headerType"] = self.label
        result["size"] = self.size
        result["description"] = self.description
        return result


@dataclass(frozen=True)
class Put:
    """Append bytes at the end of the packet, moving ``tail`` towards ``end``."""

    kind: ClassVar[MutationKind] = MutationKind.PUT
    size: int
    description: str = ""

    def __post_init__(self) -> None:
        _check_size(self.size)
        if not self.description:
            object.__setattr__(self, "description", f"Put {self.size} bytes")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.kind.value,
            "size": self.size,
            "description": self.description,
        }


@dataclass(frozen=True)
class Alloc:
    """sk_buff allocation.

    The simulated buffer already exists when a run starts, so applying an
    allocation never changes it. The descriptor is kept so the exported
    path still shows where the kernel allocates.
    """

    kind: ClassVar[MutationKind] = MutationKind.ALLOC
    size: int
    description: str = ""

    def __post_init__(self) -> None:
        _check_size(self.size)
        if not self.description:
            object.__setattr__(self, "description", f"Allocate {self.size} byte sk_buff")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.kind.value,
            "size": self.size,
            "description": self.description,
        }


Mutation = Union[NoMutation, Push, Pull, Put, Alloc]

NO_MUTATION = NoMutation()


def mutation_from_dict(data: Optional[Dict[str, Any]]) -> Mutation:
    """Rebuild a mutation descriptor from its wire form.

    Args:
        data: Dictionary as produced by ``to_dict``, or None.

    Returns:
        The matching mutation variant; ``NO_MUTATION`` for None.

    Raises:
        ValueError: If the operation is unknown.
    """
    if not data:
        return NO_MUTATION

    operation = data.get("operation")
    size = int(data.get("size", 0))
    label = data.get("headerType", "")
    description = data.get("description", "")

    if operation == MutationKind.PUSH.value:
        return Push(label, size, description)
    if operation == MutationKind.PULL.value:
        return Pull(size, label, description)
    if operation == MutationKind.PUT.value:
        return Put(size, description)
    if operation == MutationKind.ALLOC.value:
        return Alloc(size, description)
    raise ValueError(f"Unknown mutation operation: {operation!r}")
