"""Kernel function nodes for packet path simulation.

This module defines the KernelFunction class, a graph node carrying the
metadata shown for each function of the kernel call graph, and the hook
annotations a function may carry.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from packet_sim.core.enums import Layer
from packet_sim.core.graph import GraphNode
from packet_sim.core.mutation import mutation_from_dict


@dataclass(frozen=True)
class NetfilterHook:
    """A netfilter hook point where iptables/nftables rules are evaluated.

    Attributes:
        hook: Hook name (PREROUTING, INPUT, FORWARD, OUTPUT, POSTROUTING).
        tables: iptables tables traversed at this hook, in order.
        description: What happens at this hook point.
        priority: Hook priority (lower runs earlier).
    """

    hook: str
    tables: Tuple[str, ...]
    description: str
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "hook": self.hook,
            "tables": list(self.tables),
            "description": self.description,
        }
        if self.priority:
            result["priority"] = self.priority
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetfilterHook":
        return cls(
            hook=data["hook"],
            tables=tuple(data.get("tables", ())),
            description=data.get("description", ""),
            priority=int(data.get("priority", 0)),
        )


@dataclass(frozen=True)
class BPFHook:
    """An eBPF/XDP attachment point.

    Attributes:
        hook_type: XDP, TC_INGRESS, TC_EGRESS, CGROUP_SKB or SOCKET.
        attach_point: Where the hook attaches in the kernel.
        description: What BPF programs can do at this hook.
        actions: Possible return values for this hook type.
    """

    hook_type: str
    attach_point: str
    description: str
    actions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.hook_type,
            "attachPoint": self.attach_point,
            "description": self.description,
            "actions": list(self.actions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BPFHook":
        return cls(
            hook_type=data["type"],
            attach_point=data.get("attachPoint", ""),
            description=data.get("description", ""),
            actions=tuple(data.get("actions", ())),
        )


@dataclass(frozen=True)
class KernelFunction(GraphNode):
    """A function of the kernel networking stack.

    Attributes:
        name: Display name (defaults to the ID).
        layer: Stack layer the function belongs to.
        source_file: Kernel source file (e.g. "net/ipv4/tcp.c").
        line_number: Approximate line number in the 5.10.8 sources.
        description: What the function does.
        netfilter_hook: Netfilter hook triggered here, if any.
        bpf_hook: BPF attachment point, if any.
        is_entry_point: Whether a path may start here.
        is_exit_point: Whether the packet leaves the kernel here.

    The inherited ``sidecar`` is written to the wire form under "sidecar" and
    read back as plain JSON data.
    """

    name: str = ""
    layer: Layer = Layer.USER_SPACE
    source_file: str = ""
    line_number: int = 0
    description: str = ""
    netfilter_hook: Optional[NetfilterHook] = None
    bpf_hook: Optional[BPFHook] = None
    is_entry_point: bool = False
    is_exit_point: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "layer": self.layer.label,
            "sourceFile": self.source_file,
        }
        if self.line_number:
            result["lineNumber"] = self.line_number
        result["description"] = self.description

        mutation = self.mutation.to_dict()
        if mutation is not None:
            result["skbMutation"] = mutation
        if self.netfilter_hook is not None:
            result["netfilterHook"] = self.netfilter_hook.to_dict()
        if self.bpf_hook is not None:
            result["bpfHook"] = self.bpf_hook.to_dict()
        if self.sidecar is not None:
            to_dict = getattr(self.sidecar, "to_dict", None)
            result["sidecar"] = to_dict() if callable(to_dict) else self.sidecar
        if self.is_entry_point:
            result["isEntryPoint"] = True
        if self.is_exit_point:
            result["isExitPoint"] = True
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KernelFunction":
        netfilter = data.get("netfilterHook")
        bpf = data.get("bpfHook")
        return cls(
            id=data["id"],
            mutation=mutation_from_dict(data.get("skbMutation")),
            sidecar=data.get("sidecar"),
            name=data.get("name", ""),
            layer=Layer.from_label(data["layer"]),
            source_file=data.get("sourceFile", ""),
            line_number=int(data.get("lineNumber", 0)),
            description=data.get("description", ""),
            netfilter_hook=NetfilterHook.from_dict(netfilter) if netfilter else None,
            bpf_hook=BPFHook.from_dict(bpf) if bpf else None,
            is_entry_point=bool(data.get("isEntryPoint", False)),
            is_exit_point=bool(data.get("isExitPoint", False)),
        )
