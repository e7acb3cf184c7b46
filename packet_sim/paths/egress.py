"""TCP/IPv4 egress path.

The path of a socket send over TCP in Linux 5.10.8, from tcp_sendmsg down
to the NIC driver.
"""

from packet_sim.core.enums import Direction, Layer
from packet_sim.core.function import KernelFunction
from packet_sim.core.graph import GraphEdge
from packet_sim.core.mutation import (
    ETHERNET_HEADER_SIZE,
    IPV4_HEADER_SIZE,
    TCP_HEADER_SIZE,
    Alloc,
    Push,
)
from packet_sim.core.path import PacketPath
from packet_sim.paths.hooks import (
    cgroup_skb_hook,
    output_hook,
    postrouting_hook,
    tc_egress_hook,
)

TCP_IPV4_EGRESS = "tcp_ipv4_egress"


def build_tcp_ipv4_egress_path() -> PacketPath:
    """Build the TCP over IPv4 egress path.

    Returns:
        The egress PacketPath, entering at tcp_sendmsg and leaving at
        ndo_start_xmit.
    """
    functions = [
        # Transport layer - TCP
        KernelFunction(
            id="tcp_sendmsg",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp.c",
            line_number=1434,
            description="Entry point for TCP send operations. Acquires socket lock and delegates to tcp_sendmsg_locked.",
            is_entry_point=True,
        ),
        KernelFunction(
            id="tcp_sendmsg_locked",
            mutation=Alloc(2048, "Allocate sk_buff with headroom for all protocol headers"),
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp.c",
            line_number=1172,
            description="Core TCP send logic. Allocates sk_buff and copies user data into kernel space.",
        ),
        KernelFunction(
            id="tcp_push",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp.c",
            line_number=689,
            description="Pushes pending data. Sets PSH flag if socket is being closed or buffer is full.",
        ),
        KernelFunction(
            id="__tcp_push_pending_frames",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_output.c",
            line_number=2556,
            description="Checks if there is data to send and initiates transmission.",
        ),
        KernelFunction(
            id="tcp_write_xmit",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_output.c",
            line_number=2387,
            description="Main TCP transmission loop. Handles congestion control, pacing, and TSO segmentation.",
        ),
        KernelFunction(
            id="__tcp_transmit_skb",
            mutation=Push("tcp", TCP_HEADER_SIZE),
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_output.c",
            line_number=1164,
            description="Builds the TCP header. Calculates checksum and sets sequence numbers.",
        ),
        # Network layer - IP
        KernelFunction(
            id="ip_queue_xmit",
            mutation=Push("ip", IPV4_HEADER_SIZE),
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=470,
            description="Main IPv4 transmission entry point from transport layer. Handles routing lookup and IP header construction.",
        ),
        KernelFunction(
            id="ip_local_out",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=115,
            description="Wrapper for locally generated packets. Calls __ip_local_out.",
        ),
        KernelFunction(
            id="__ip_local_out",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=96,
            description="Sets IP packet length and checksum. Invokes LOCAL_OUT netfilter hook.",
            netfilter_hook=output_hook(),
        ),
        KernelFunction(
            id="ip_output",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=413,
            description="Called after LOCAL_OUT hook. Invokes POST_ROUTING netfilter hook.",
            netfilter_hook=postrouting_hook(),
        ),
        KernelFunction(
            id="ip_finish_output",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=311,
            description="BPF cgroup egress hook point. Handles GSO segmentation if needed.",
            bpf_hook=cgroup_skb_hook("egress"),
        ),
        KernelFunction(
            id="__ip_finish_output",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=287,
            description="Checks MTU and fragments packet if necessary.",
        ),
        KernelFunction(
            id="ip_finish_output2",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_output.c",
            line_number=187,
            description="Resolves next-hop neighbor (ARP lookup) and prepares for L2 transmission.",
        ),
        KernelFunction(
            id="neigh_output",
            layer=Layer.NETWORK,
            source_file="include/net/neighbour.h",
            line_number=510,
            description="Neighbour subsystem output. Uses cached hardware header if available.",
        ),
        KernelFunction(
            id="neigh_hh_output",
            mutation=Push("ethernet", ETHERNET_HEADER_SIZE),
            layer=Layer.DATA_LINK,
            source_file="include/net/neighbour.h",
            line_number=490,
            description="Fast path using cached hardware header. Pushes Ethernet header.",
        ),
        # Data link layer - queueing discipline
        KernelFunction(
            id="dev_queue_xmit",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=4044,
            description="Main device transmission entry point. Handles per-CPU processing.",
        ),
        KernelFunction(
            id="__dev_queue_xmit",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=3954,
            description="Core queuing logic. TC egress BPF programs run here before qdisc.",
            bpf_hook=tc_egress_hook(),
        ),
        KernelFunction(
            id="__dev_xmit_skb",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=3683,
            description="Submits packet to qdisc. May queue or directly transmit based on qdisc state.",
        ),
        KernelFunction(
            id="sch_direct_xmit",
            layer=Layer.DATA_LINK,
            source_file="net/sched/sch_generic.c",
            line_number=310,
            description="Bypasses qdisc queue for direct transmission when possible.",
        ),
        # Driver layer
        KernelFunction(
            id="dev_hard_start_xmit",
            layer=Layer.DRIVER,
            source_file="net/core/dev.c",
            line_number=3506,
            description="Final generic layer before driver. Handles XDP and calls driver's ndo_start_xmit.",
        ),
        KernelFunction(
            id="ndo_start_xmit",
            layer=Layer.DRIVER,
            source_file="include/linux/netdevice.h",
            line_number=1298,
            description="Driver-specific transmit function. Pointer to actual driver implementation (e.g., e1000, virtio-net).",
            is_exit_point=True,
        ),
    ]

    edges = [
        GraphEdge("tcp_sendmsg", "tcp_sendmsg_locked", order=1),
        GraphEdge("tcp_sendmsg_locked", "tcp_push", order=1),
        GraphEdge("tcp_push", "__tcp_push_pending_frames", order=1),
        GraphEdge("__tcp_push_pending_frames", "tcp_write_xmit", order=1),
        GraphEdge("tcp_write_xmit", "__tcp_transmit_skb", order=1),
        GraphEdge("__tcp_transmit_skb", "ip_queue_xmit", order=1),
        GraphEdge("ip_queue_xmit", "ip_local_out", order=1),
        GraphEdge("ip_local_out", "__ip_local_out", order=1),
        GraphEdge("__ip_local_out", "ip_output", order=1),
        GraphEdge("ip_output", "ip_finish_output", order=1),
        GraphEdge("ip_finish_output", "__ip_finish_output", order=1),
        GraphEdge("__ip_finish_output", "ip_finish_output2", order=1),
        GraphEdge("ip_finish_output2", "neigh_output", order=1),
        GraphEdge("neigh_output", "neigh_hh_output", order=1, condition="Hardware header cached"),
        GraphEdge("neigh_hh_output", "dev_queue_xmit", order=1),
        GraphEdge("dev_queue_xmit", "__dev_queue_xmit", order=1),
        GraphEdge("__dev_queue_xmit", "__dev_xmit_skb", order=1),
        GraphEdge("__dev_xmit_skb", "sch_direct_xmit", order=1, condition="Direct transmit allowed"),
        GraphEdge("sch_direct_xmit", "dev_hard_start_xmit", order=1),
        GraphEdge("dev_hard_start_xmit", "ndo_start_xmit", order=1),
    ]

    return PacketPath(
        id=TCP_IPV4_EGRESS,
        name="TCP/IPv4 Egress Path",
        description="The path of a TCP packet from user space through the kernel to the network interface (Linux 5.10.8)",
        direction=Direction.EGRESS,
        protocol="TCP",
        functions=functions,
        edges=edges,
        entry_point="tcp_sendmsg",
        exit_points=["ndo_start_xmit"],
    )
