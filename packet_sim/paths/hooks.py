"""Netfilter and BPF hook annotations.

Factories for the hook points that kernel functions on the packet paths
are annotated with.
"""

from packet_sim.core.function import BPFHook, NetfilterHook

# Netfilter hook names
HOOK_PREROUTING = "PREROUTING"
HOOK_INPUT = "INPUT"
HOOK_FORWARD = "FORWARD"
HOOK_OUTPUT = "OUTPUT"
HOOK_POSTROUTING = "POSTROUTING"

# BPF hook types
BPF_HOOK_XDP = "XDP"
BPF_HOOK_TC_INGRESS = "TC_INGRESS"
BPF_HOOK_TC_EGRESS = "TC_EGRESS"
BPF_HOOK_CGROUP_SKB = "CGROUP_SKB"
BPF_HOOK_SOCKET = "SOCKET"

_TC_ACTIONS = ("TC_ACT_OK", "TC_ACT_SHOT", "TC_ACT_REDIRECT", "TC_ACT_PIPE")


def output_hook() -> NetfilterHook:
    """OUTPUT, called for locally generated packets before routing."""
    return NetfilterHook(
        hook=HOOK_OUTPUT,
        tables=("raw", "mangle", "nat", "filter"),
        description="Locally generated packets. Firewall rules (iptables -A OUTPUT) are evaluated here.",
        priority=-100,
    )


def postrouting_hook() -> NetfilterHook:
    """POSTROUTING, called after routing just before the packet leaves."""
    return NetfilterHook(
        hook=HOOK_POSTROUTING,
        tables=("mangle", "nat"),
        description="Final hook before packet leaves. SNAT/MASQUERADE applied here.",
        priority=100,
    )


def prerouting_hook() -> NetfilterHook:
    """PREROUTING, called for incoming packets before the routing decision."""
    return NetfilterHook(
        hook=HOOK_PREROUTING,
        tables=("raw", "mangle", "nat"),
        description="First hook for incoming packets. DNAT applied here before routing.",
        priority=-300,
    )


def input_hook() -> NetfilterHook:
    """INPUT, called for packets destined for the local machine."""
    return NetfilterHook(
        hook=HOOK_INPUT,
        tables=("mangle", "filter"),
        description="Packets destined for local delivery. Firewall rules (iptables -A INPUT) evaluated here.",
    )


def forward_hook() -> NetfilterHook:
    """FORWARD, called for packets routed through the machine."""
    return NetfilterHook(
        hook=HOOK_FORWARD,
        tables=("mangle", "filter"),
        description="Packets being forwarded/routed. Firewall rules (iptables -A FORWARD) evaluated here.",
    )


def xdp_hook() -> BPFHook:
    """XDP runs at the earliest point, before sk_buff allocation."""
    return BPFHook(
        hook_type=BPF_HOOK_XDP,
        attach_point="NIC driver RX path",
        description="eXpress Data Path. Runs before sk_buff allocation for maximum performance. Can drop, pass, or redirect packets.",
        actions=("XDP_PASS", "XDP_DROP", "XDP_TX", "XDP_REDIRECT", "XDP_ABORTED"),
    )


def tc_ingress_hook() -> BPFHook:
    return BPFHook(
        hook_type=BPF_HOOK_TC_INGRESS,
        attach_point="Traffic Control ingress qdisc",
        description="Traffic Control classifier. Can filter, modify, or redirect packets on ingress.",
        actions=_TC_ACTIONS,
    )


def tc_egress_hook() -> BPFHook:
    return BPFHook(
        hook_type=BPF_HOOK_TC_EGRESS,
        attach_point="Traffic Control egress qdisc",
        description="Traffic Control classifier on egress. Can shape, filter, or redirect outgoing packets.",
        actions=_TC_ACTIONS,
    )


def cgroup_skb_hook(direction: str) -> BPFHook:
    """cgroup/skb hook, used for container networking policies.

    Args:
        direction: "ingress" or "egress".
    """
    return BPFHook(
        hook_type=BPF_HOOK_CGROUP_SKB,
        attach_point=f"Cgroup {direction} path",
        description="Cgroup socket buffer hook. Used for container networking policies and egress filtering.",
        actions=("ALLOW", "DENY"),
    )


def socket_hook() -> BPFHook:
    return BPFHook(
        hook_type=BPF_HOOK_SOCKET,
        attach_point="Socket layer",
        description="Socket-level BPF. Can filter packets before they reach the application.",
        actions=("ALLOW", "DENY"),
    )
