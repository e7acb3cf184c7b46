"""sk_buff model for packet path simulation.

This module defines the BufferState class, which models the four pointers
of the kernel's sk_buff and the protocol headers currently framing the
packet data.

Memory layout::

    +------------------+ <- head
    |    headroom      |  space for prepending headers
    +------------------+ <- data
    |   packet data    |  headers followed by payload
    +------------------+ <- tail
    |    tailroom      |  space for appending data
    +------------------+ <- end

During egress headers are pushed onto the front of the packet, moving
``data`` back towards ``head``. During ingress headers are pulled from the
front, moving ``data`` forward towards ``tail``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from packet_sim.core.enums import Direction
from packet_sim.core.mutation import (
    ETHERNET_HEADER_SIZE,
    IPV4_HEADER_SIZE,
    TCP_HEADER_SIZE,
    Alloc,
    Mutation,
    NoMutation,
    Pull,
    Push,
    Put,
)

logger = logging.getLogger(__name__)

# Headers present on a received TCP/IPv4 frame, outermost first.
DEFAULT_INGRESS_HEADERS: Tuple[Tuple[str, int], ...] = (
    ("ethernet", ETHERNET_HEADER_SIZE),
    ("ip", IPV4_HEADER_SIZE),
    ("tcp", TCP_HEADER_SIZE),
)


@dataclass(frozen=True)
class Segment:
    """A protocol header inside the packet data.

    Attributes:
        label: Protocol of the header (e.g. "ethernet", "ip", "tcp").
        offset: Byte offset from the current ``data`` pointer.
        size: Header size in bytes.
    """

    label: str
    offset: int
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"protocol": self.label, "offset": self.offset, "size": self.size}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        return cls(str(data["protocol"]), int(data["offset"]), int(data["size"]))


def _check_size(size: int) -> None:
    if size < 0:
        raise ValueError(f"Size must be non-negative, got {size}")


@dataclass
class BufferState:
    """Represents an sk_buff.

    ``head`` and ``end`` bound the allocation and never move. ``data`` and
    ``tail`` move under push, pull and put, which report insufficient room by
    returning False and leave the buffer untouched in that case.

    Attributes:
        head: Start of the allocated buffer.
        data: Start of the packet data.
        tail: End of the packet data.
        end: End of the allocated buffer.
        segments: Headers present from ``data`` forward, outermost first.
    """

    head: int
    data: int
    tail: int
    end: int
    segments: List[Segment] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 0 <= self.head <= self.data <= self.tail <= self.end:
            raise ValueError(
                "Buffer offsets must satisfy 0 <= head <= data <= tail <= end, "
                f"got head={self.head} data={self.data} tail={self.tail} end={self.end}"
            )
        self.segments = list(self.segments)

    @classmethod
    def empty(cls, capacity: int) -> "BufferState":
        """Create an empty sk_buff with all of its space as headroom.

        Args:
            capacity: Total buffer size in bytes.
        """
        _check_size(capacity)
        return cls(head=0, data=capacity, tail=capacity, end=capacity)

    @classmethod
    def with_payload(cls, capacity: int, payload_size: int) -> "BufferState":
        """Create an sk_buff holding only a payload, placed at the very end.

        This leaves the largest possible headroom for headers pushed on
        the egress path.

        Args:
            capacity: Total buffer size in bytes.
            payload_size: Payload size in bytes.

        Raises:
            ValueError: If the payload does not fit the buffer.
        """
        _check_size(capacity)
        _check_size(payload_size)
        if payload_size > capacity:
            raise ValueError(
                f"Payload of {payload_size} bytes does not fit a {capacity} byte buffer"
            )
        return cls(head=0, data=capacity - payload_size, tail=capacity, end=capacity)

    @classmethod
    def with_headers(
        cls,
        capacity: int,
        payload_size: int,
        headers: Sequence[Tuple[str, int]] = DEFAULT_INGRESS_HEADERS,
    ) -> "BufferState":
        """Create an sk_buff as received from the NIC, with every header present.

        Args:
            capacity: Total buffer size in bytes.
            payload_size: Payload size in bytes.
            headers: (label, size) pairs, outermost first.

        Raises:
            ValueError: If the frame does not fit the buffer.
        """
        _check_size(capacity)
        _check_size(payload_size)
        segments = []
        offset = 0
        for label, size in headers:
            _check_size(size)
            segments.append(Segment(label, offset, size))
            offset += size

        frame_size = offset + payload_size
        if frame_size > capacity:
            raise ValueError(
                f"Frame of {frame_size} bytes does not fit a {capacity} byte buffer"
            )
        return cls(head=0, data=0, tail=frame_size, end=capacity, segments=segments)

    @classmethod
    def for_direction(
        cls,
        direction: Direction,
        capacity: int,
        payload_size: int,
        headers: Optional[Sequence[Tuple[str, int]]] = None,
    ) -> "BufferState":
        """Create the initial sk_buff for a walk in the given direction."""
        if direction is Direction.EGRESS:
            return cls.with_payload(capacity, payload_size)
        if headers is None:
            headers = DEFAULT_INGRESS_HEADERS
        return cls.with_headers(capacity, payload_size, headers)

    def push(self, label: str, size: int) -> bool:
        """Prepend a header at the front of the packet.

        Args:
            label: Protocol of the header.
            size: Header size in bytes.

        Returns:
            True on success, False if there is insufficient headroom.
        """
        _check_size(size)
        new_data = self.data - size
        if new_data < self.head:
            return False
        self.data = new_data
        shifted = [Segment(s.label, s.offset + size, s.size) for s in self.segments]
        self.segments = [Segment(label, 0, size)] + shifted
        return True

    def pull(self, size: int) -> bool:
        """Strip bytes from the front of the packet.

        The outermost header, if any, is dropped. Its declared size is not
        required to match ``size``; a mismatch is logged and the remaining
        offsets are shifted by ``size`` regardless.

        Args:
            size: Number of bytes to strip.

        Returns:
            True on success, False if the pull would run past ``tail``.
        """
        _check_size(size)
        new_data = self.data + size
        if new_data > self.tail:
            return False
        self.data = new_data

        if self.segments:
            removed = self.segments[0]
            if removed.size != size:
                logger.warning(
                    f"Pulled {size} bytes but the outermost header {removed.label!r} "
                    f"is {removed.size} bytes"
                )
            self.segments = [
                Segment(s.label, s.offset - size, s.size) for s in self.segments[1:]
            ]
        return True

    def put(self, size: int) -> bool:
        """Append bytes at the end of the packet.

        Args:
            size: Number of bytes to append.

        Returns:
            True on success, False if there is insufficient tailroom.
        """
        _check_size(size)
        new_tail = self.tail + size
        if new_tail > self.end:
            return False
        self.tail = new_tail
        return True

    def apply(self, mutation: Mutation) -> bool:
        """Apply a mutation descriptor to this buffer.

        Args:
            mutation: The mutation to apply.

        Returns:
            True if the mutation succeeded (or changes nothing), False if the
            buffer lacked room for it.
        """
        if isinstance(mutation, Push):
            return self.push(mutation.label, mutation.size)
        if isinstance(mutation, Pull):
            if mutation.label and self.segments and self.segments[0].label != mutation.label:
                logger.warning(
                    f"Pulling {mutation.label!r} but the outermost header is "
                    f"{self.segments[0].label!r}"
                )
            return self.pull(mutation.size)
        if isinstance(mutation, Put):
            return self.put(mutation.size)
        if isinstance(mutation, (NoMutation, Alloc)):
            return True
        raise TypeError(f"Unsupported mutation: {mutation!r}")

    def headroom(self) -> int:
        """Space available before ``data``."""
        return self.data - self.head

    def tailroom(self) -> int:
        """Space available after ``tail``."""
        return self.end - self.tail

    def length(self) -> int:
        """Current packet length, headers included."""
        return self.tail - self.data

    def clone(self) -> "BufferState":
        """Return an independent copy of this buffer."""
        return BufferState(self.head, self.data, self.tail, self.end, list(self.segments))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "head": self.head,
            "data": self.data,
            "tail": self.tail,
            "end": self.end,
            "layers": [segment.to_dict() for segment in self.segments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BufferState":
        return cls(
            head=int(data["head"]),
            data=int(data["data"]),
            tail=int(data["tail"]),
            end=int(data["end"]),
            segments=[Segment.from_dict(s) for s in data.get("layers", [])],
        )

    def __repr__(self) -> str:
        layers = ",".join(s.label for s in self.segments)
        return (
            f"BufferState(head={self.head}, data={self.data}, tail={self.tail}, "
            f"end={self.end}, layers=[{layers}])"
        )
