"""TCP/IPv4 ingress path.

The path of a received TCP segment in Linux 5.10.8, from NAPI polling in
the driver up through the network stack to the socket layer.
"""

from packet_sim.core.enums import Direction, Layer
from packet_sim.core.function import KernelFunction
from packet_sim.core.graph import GraphEdge
from packet_sim.core.mutation import (
    ETHERNET_HEADER_SIZE,
    IPV4_HEADER_SIZE,
    TCP_HEADER_SIZE,
    Pull,
)
from packet_sim.core.path import PacketPath
from packet_sim.paths.hooks import (
    input_hook,
    prerouting_hook,
    tc_ingress_hook,
    xdp_hook,
)

TCP_IPV4_INGRESS = "tcp_ipv4_ingress"


def build_tcp_ipv4_ingress_path() -> PacketPath:
    """Build the TCP over IPv4 ingress path.

    Returns:
        The ingress PacketPath, entering at napi_poll and leaving at
        sk_data_ready.
    """
    functions = [
        # Driver layer - NAPI
        KernelFunction(
            id="napi_poll",
            layer=Layer.DRIVER,
            source_file="net/core/dev.c",
            line_number=6740,
            description="NAPI polling entry point. Called by softirq to process received packets from the driver's ring buffer.",
            is_entry_point=True,
        ),
        KernelFunction(
            id="napi_gro_receive",
            layer=Layer.DRIVER,
            source_file="net/core/dev.c",
            line_number=6081,
            description="Generic Receive Offload handler. XDP programs run here before sk_buff allocation.",
            bpf_hook=xdp_hook(),
        ),
        KernelFunction(
            id="napi_skb_finish",
            layer=Layer.DRIVER,
            source_file="net/core/dev.c",
            line_number=6052,
            description="Finishes GRO processing and passes the sk_buff up the stack.",
        ),
        # Data link layer
        KernelFunction(
            id="netif_receive_skb",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=5583,
            description="Main entry point for receiving packets from the driver. Timestamps and prepares the packet.",
        ),
        KernelFunction(
            id="netif_receive_skb_internal",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=5508,
            description="Internal receive handler. Handles RPS (Receive Packet Steering) if enabled.",
        ),
        KernelFunction(
            id="__netif_receive_skb",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=5405,
            description="Core receive function. TC ingress BPF programs and generic XDP run here.",
            bpf_hook=tc_ingress_hook(),
        ),
        KernelFunction(
            id="__netif_receive_skb_one_core",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=5303,
            description="Single-core receive path. Processes packet on current CPU.",
        ),
        KernelFunction(
            id="__netif_receive_skb_core",
            mutation=Pull(ETHERNET_HEADER_SIZE, "ethernet"),
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=5099,
            description="Core packet classification. Strips Ethernet header and determines protocol handler.",
        ),
        KernelFunction(
            id="deliver_skb",
            layer=Layer.DATA_LINK,
            source_file="net/core/dev.c",
            line_number=2248,
            description="Delivers packet to the registered protocol handler (e.g., ip_rcv for IPv4).",
        ),
        # Network layer - IP
        KernelFunction(
            id="ip_rcv",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_input.c",
            line_number=530,
            description="IPv4 receive entry point. Validates IP header checksum and invokes PREROUTING netfilter hook.",
            netfilter_hook=prerouting_hook(),
        ),
        KernelFunction(
            id="ip_rcv_finish",
            mutation=Pull(IPV4_HEADER_SIZE, "ip"),
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_input.c",
            line_number=414,
            description="Finishes IP header processing. Performs routing lookup and strips IP header.",
        ),
        KernelFunction(
            id="ip_local_deliver",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_input.c",
            line_number=240,
            description="Handles locally destined packets. Reassembles IP fragments if needed.",
        ),
        KernelFunction(
            id="ip_local_deliver_finish",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_input.c",
            line_number=226,
            description="Invokes INPUT netfilter hook before passing to transport layer.",
            netfilter_hook=input_hook(),
        ),
        KernelFunction(
            id="ip_protocol_deliver_rcu",
            layer=Layer.NETWORK,
            source_file="net/ipv4/ip_input.c",
            line_number=187,
            description="Dispatches packet to the transport protocol handler based on IP protocol field.",
        ),
        # Transport layer - TCP
        KernelFunction(
            id="tcp_v4_rcv",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_ipv4.c",
            line_number=1915,
            description="TCP receive entry point. Validates TCP checksum and looks up socket.",
        ),
        KernelFunction(
            id="tcp_v4_do_rcv",
            mutation=Pull(TCP_HEADER_SIZE, "tcp"),
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_ipv4.c",
            line_number=1655,
            description="Main TCP receive handler. Processes TCP header and updates connection state.",
        ),
        KernelFunction(
            id="tcp_rcv_established",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_input.c",
            line_number=5704,
            description="Fast path for established connections. Handles ACKs, window updates, and data.",
        ),
        KernelFunction(
            id="tcp_data_queue",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_input.c",
            line_number=4919,
            description="Queues received data. Handles out-of-order segments and SACK.",
        ),
        KernelFunction(
            id="tcp_queue_rcv",
            layer=Layer.TRANSPORT,
            source_file="net/ipv4/tcp_input.c",
            line_number=4837,
            description="Adds data to socket receive queue. Updates TCP receive window.",
        ),
        # Socket layer
        KernelFunction(
            id="sk_data_ready",
            layer=Layer.SOCKET,
            source_file="net/core/sock.c",
            line_number=2990,
            description="Wakes up any process waiting to read from the socket. Data is now available for recv().",
            is_exit_point=True,
        ),
    ]

    edges = [
        GraphEdge("napi_poll", "napi_gro_receive", order=1),
        GraphEdge("napi_gro_receive", "napi_skb_finish", order=1),
        GraphEdge("napi_skb_finish", "netif_receive_skb", order=1),
        GraphEdge("netif_receive_skb", "netif_receive_skb_internal", order=1),
        GraphEdge("netif_receive_skb_internal", "__netif_receive_skb", order=1),
        GraphEdge("__netif_receive_skb", "__netif_receive_skb_one_core", order=1),
        GraphEdge("__netif_receive_skb_one_core", "__netif_receive_skb_core", order=1),
        GraphEdge("__netif_receive_skb_core", "deliver_skb", order=1),
        GraphEdge("deliver_skb", "ip_rcv", order=1, condition="Protocol is IPv4"),
        GraphEdge("ip_rcv", "ip_rcv_finish", order=1),
        GraphEdge("ip_rcv_finish", "ip_local_deliver", order=1, condition="Destination is local"),
        GraphEdge("ip_local_deliver", "ip_local_deliver_finish", order=1),
        GraphEdge("ip_local_deliver_finish", "ip_protocol_deliver_rcu", order=1),
        GraphEdge("ip_protocol_deliver_rcu", "tcp_v4_rcv", order=1, condition="Protocol is TCP"),
        GraphEdge("tcp_v4_rcv", "tcp_v4_do_rcv", order=1, condition="Socket found"),
        GraphEdge("tcp_v4_do_rcv", "tcp_rcv_established", order=1, condition="Connection established"),
        GraphEdge("tcp_rcv_established", "tcp_data_queue", order=1, condition="Has data"),
        GraphEdge("tcp_data_queue", "tcp_queue_rcv", order=1),
        GraphEdge("tcp_queue_rcv", "sk_data_ready", order=1),
    ]

    return PacketPath(
        id=TCP_IPV4_INGRESS,
        name="TCP/IPv4 Ingress Path",
        description="The path of a TCP packet from the network interface through the kernel to user space (Linux 5.10.8)",
        direction=Direction.INGRESS,
        protocol="TCP",
        functions=functions,
        edges=edges,
        entry_point="napi_poll",
        exit_points=["sk_data_ready"],
    )
