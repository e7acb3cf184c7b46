#!/usr/bin/env python3
"""Example packet path simulation using the packet_sim package.

This script demonstrates how to use the packet_sim package to walk the
built-in kernel paths and a small hand-made path, and to inspect the sk_buff
at every step.
"""

from typing import List
import argparse
import logging

from packet_sim.core.enums import Direction, Layer
from packet_sim.core.function import KernelFunction
from packet_sim.core.graph import GraphEdge
from packet_sim.core.mutation import Pull, Push, Put
from packet_sim.core.path import PacketPath
from packet_sim.core.simulator import SimulationStep, Simulator
from packet_sim.paths import build_all_paths
from packet_sim.utils.metrics import calculate_buffer_metrics, save_metrics_to_json
from packet_sim.utils.visualization import plot_buffer_usage, save_path_visualization


def build_udp_tunnel_path() -> PacketPath:
    """Build a small UDP encapsulation path.

    The path has an error branch that the simulator never follows and a
    retransmit edge back to its start, which ends the walk.
    """
    functions = [
        KernelFunction(id="udp_sendmsg", layer=Layer.TRANSPORT, is_entry_point=True),
        KernelFunction(id="udp_send_skb", mutation=Push("udp", 8), layer=Layer.TRANSPORT),
        KernelFunction(id="udp_tunnel_xmit", mutation=Push("ip", 20), layer=Layer.NETWORK),
        KernelFunction(id="skb_pad", mutation=Put(4), layer=Layer.DATA_LINK),
        KernelFunction(id="kfree_skb", layer=Layer.DATA_LINK),
        KernelFunction(id="dev_queue_xmit", mutation=Push("ethernet", 14), layer=Layer.DATA_LINK),
        KernelFunction(id="tunnel_rcv_loopback", mutation=Pull(14, "ethernet"), layer=Layer.DRIVER),
    ]
    edges = [
        GraphEdge("udp_sendmsg", "udp_send_skb", order=1),
        GraphEdge("udp_send_skb", "udp_tunnel_xmit", order=1),
        GraphEdge("udp_tunnel_xmit", "kfree_skb", order=1, is_error_path=True, condition="No route"),
        GraphEdge("udp_tunnel_xmit", "skb_pad", order=2),
        GraphEdge("skb_pad", "dev_queue_xmit", order=1),
        GraphEdge("dev_queue_xmit", "tunnel_rcv_loopback", order=1),
        GraphEdge("tunnel_rcv_loopback", "udp_sendmsg", order=1, condition="Retransmit"),
    ]
    return PacketPath(
        id="udp_tunnel_egress",
        name="UDP Tunnel Example",
        description="Hand-made path used to demonstrate the simulator",
        direction=Direction.EGRESS,
        protocol="UDP",
        functions=functions,
        edges=edges,
        entry_point="udp_sendmsg",
        exit_points=["tunnel_rcv_loopback"],
    )


def print_steps(steps: List[SimulationStep]) -> None:
    """Print one line per step with the sk_buff pointers and headers."""
    for step in steps:
        buffer = step.buffer
        layers = " | ".join(f"{s.label}@{s.offset}" for s in buffer.segments) or "-"
        print(
            f"{step.step_number:>3} {step.node.id:<32} data={buffer.data:>5} "
            f"tail={buffer.tail:>5} headroom={buffer.headroom():>5}  {layers}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Packet path simulation example")
    parser.add_argument("--buffer", type=int, default=2048, help="sk_buff size")
    parser.add_argument("--payload", type=int, default=1000, help="Payload size")
    parser.add_argument("--output-dir", default=None, help="Directory for plots and metrics")
    parser.add_argument("--show", action="store_true", help="Show plots interactively")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    for path in build_all_paths() + [build_udp_tunnel_path()]:
        print(f"\n=== {path.name} ===")
        simulator = Simulator(
            path.graph(), path.entry_point, args.buffer, args.payload, path.direction
        )
        steps = simulator.run()
        print_steps(steps)
        print(f"Terminated: {simulator.termination_reason.value}")

        metrics = calculate_buffer_metrics(steps)
        if args.output_dir:
            save_metrics_to_json(metrics, f"{args.output_dir}/{path.id}_metrics.json")

        if args.output_dir or args.show:
            save_path_visualization(
                path,
                steps,
                filename=f"{args.output_dir}/{path.id}_graph.png" if args.output_dir else None,
                show=args.show,
                block=False,
            )
            plot_buffer_usage(
                steps,
                output_dir=args.output_dir,
                filename=f"{path.id}_buffer",
                title=path.name,
                show=args.show,
            )


if __name__ == "__main__":
    main()
