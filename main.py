"""Generate the JSON data contract for the packet path visualizer.

Usage:
    python main.py > egress_path.json
    python main.py -o frontend/public/data/egress_path.json
"""

import os
import sys
import logging
import argparse
from datetime import datetime, timezone

from packet_sim import config
from packet_sim.paths import build_all_paths
from packet_sim.paths.conntrack import ConntrackEntry, ConntrackState
from packet_sim.utils.export import ExportOptions, export_all_paths, save_export
from packet_sim.utils.metrics import calculate_buffer_metrics


def run_summary(buffer_size, payload_size):
    """Simulate every path and print a short summary of each run"""
    conntrack = ConntrackEntry.for_state(ConntrackState.ESTABLISHED)
    for path in build_all_paths():
        simulator = path.simulator(buffer_size, payload_size, conntrack)
        steps = simulator.run()
        metrics = calculate_buffer_metrics(steps)

        print(f"\n=== {path.name} ===", file=sys.stderr)
        print(f"Steps: {metrics['step_count']} ({simulator.termination_reason.value})", file=sys.stderr)
        if steps:
            print(f"Bytes pushed: {metrics['bytes_pushed']}", file=sys.stderr)
            print(f"Bytes pulled: {metrics['bytes_pulled']}", file=sys.stderr)
            print(f"Final length: {metrics['final_length']}", file=sys.stderr)
            print(f"Minimum headroom: {metrics['min_headroom']}", file=sys.stderr)
        if simulator.failed_mutations:
            print(f"Failed mutations: {', '.join(simulator.failed_mutations)}", file=sys.stderr)


def save_plots(output_dir, buffer_size, payload_size):
    """Save a graph drawing and a buffer usage plot for every path"""
    # Imported here so matplotlib is only loaded when plotting
    from packet_sim.utils.visualization import plot_buffer_usage, save_path_visualization

    for path in build_all_paths():
        steps = path.simulate(buffer_size, payload_size)
        save_path_visualization(
            path, steps, filename=os.path.join(output_dir, f"{path.id}_graph.png")
        )
        plot_buffer_usage(
            steps, output_dir=output_dir, filename=f"{path.id}_buffer", title=path.name
        )
    print(f"Plots written to {output_dir}", file=sys.stderr)


def main(argv=None):
    """Main function to generate the contract"""
    parser = argparse.ArgumentParser(description="Packet path contract generator")
    parser.add_argument("-o", "--output", default="", help="Output file path (default: stdout)")
    parser.add_argument(
        "--compact", action="store_true", help="Output compact JSON (no indentation)"
    )
    parser.add_argument(
        "--no-sim", action="store_true", help="Exclude pre-computed simulation"
    )
    parser.add_argument(
        "--buffer",
        type=int,
        default=config.DEFAULT_BUFFER_SIZE,
        help="sk_buff buffer size for simulation",
    )
    parser.add_argument(
        "--payload",
        type=int,
        default=config.DEFAULT_PAYLOAD_SIZE,
        help="Initial payload size for simulation",
    )
    parser.add_argument("--plot", metavar="DIR", help="Save path and buffer plots to DIR")
    parser.add_argument(
        "--summary", action="store_true", help="Print a summary of each simulation run"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable info logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else config.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = ExportOptions(
        pretty=not args.compact,
        include_simulation=not args.no_sim,
        buffer_size=args.buffer,
        payload_size=args.payload,
    )
    generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    try:
        data = export_all_paths(options, generated_at)
    except ValueError as e:
        print(f"Error generating contract: {e}", file=sys.stderr)
        return 1

    if args.output:
        try:
            save_export(data, args.output)
        except OSError as e:
            print(f"Error writing to file: {e}", file=sys.stderr)
            return 1
        print(f"Contract written to {args.output}", file=sys.stderr)
    else:
        print(data)

    try:
        if args.summary:
            run_summary(args.buffer, args.payload)
        if args.plot:
            save_plots(args.plot, args.buffer, args.payload)
    except (ValueError, OSError) as e:
        print(f"Error simulating paths: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
