#!/usr/bin/env python3
"""
Simple demo script showing maze growth from a circle.
"""

import numpy as np
from py_mazer.core import MazeSimulation, SimulationParameters, points_circle
from py_mazer.core.diagnostics import curve_stats, debug_text


def main():
    """Grow a maze and print how the curve develops."""
    print("Py-Mazer Growth Demo")
    print("=" * 40)

    params = SimulationParameters()
    curve = points_circle(420.0, 75)
    print(f"\nInitial circle: {debug_text(curve)}")

    with MazeSimulation(curve, params=params, seed="demo123", executor_kind="thread") as simulation:
        for batch in range(1, 6):
            simulation.request_steps(40)
            curve = simulation.wait()
            stats = curve_stats(curve)

            print(f"\nAfter {simulation.steps_completed} steps (batch {batch}):")
            print("-" * 30)
            print(f"  {debug_text(curve)}")
            print(f"  Perimeter: {stats.perimeter:.1f}")
            print(f"  Enclosed area: {stats.area:.1f}")
            print(f"  Segment length: {stats.min_segment:.1f}-{stats.max_segment:.1f} "
                  f"(mean {stats.mean_segment:.1f})")
            print(f"  Self-avoiding: {stats.is_simple}")
            print(f"  Batch time: {simulation.last_batch_seconds:.2f}s")

    # Segment length distribution of the final curve
    lengths = curve.segment_lengths()
    bins = [0, 10, 20, 30, 40, 50]
    hist, _ = np.histogram(lengths, bins=bins)
    print("\nSegment length distribution:")
    for i in range(len(bins) - 1):
        bar = '#' * int(hist[i] / max(hist.max(), 1) * 20)
        print(f"  {bins[i]:3d}-{bins[i+1]:3d}: {bar} ({hist[i]})")


if __name__ == "__main__":
    main()
