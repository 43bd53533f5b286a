#!/usr/bin/env python3
"""
Simple demo script showing flatness map generation.
"""

import numpy as np
from py_habitat.config import settings
from py_habitat.core import (
    FlatnessMap, SampleMapParams, VoronoiSampleMap, generate_tessellation, sqrt_flatness
)
from py_habitat.utils import configure_logging


def island(x, y, width, height):
    """Radial island with a ridge running across it."""
    cx, cy = width / 2, height / 2
    r = np.hypot(x - cx, y - cy) / (min(width, height) / 2)
    ridge = 15.0 * np.exp(-((x - cx) / (width * 0.08)) ** 2)
    return 40.0 * (1.0 - r ** 2) + ridge - 5.0


def main():
    """Demonstrate flatness scoring."""
    configure_logging(settings.log_level, "console")

    print("Py-Habitat Flatness Demo")
    print("=" * 40)

    width, height = settings.default_map_width, settings.default_map_height
    params = SampleMapParams(scale=settings.default_scale, seed="demo123",
                             jitter=settings.default_jitter)

    print(f"\nGenerating tessellation ({width}x{height}, scale {params.scale})...")
    tessellation = generate_tessellation(width, height, params)
    print(f"Generated {len(tessellation)} sites")

    elevation_map = VoronoiSampleMap.from_function(
        tessellation, lambda x, y: island(x, y, width, height)
    )

    for minimum_neighbor_num in (0, 3, 5):
        print(f"\nminimum_neighbor_num = {minimum_neighbor_num}")
        print("-" * 30)

        flatness = FlatnessMap(
            elevation_map,
            minimum_neighbor_num=minimum_neighbor_num,
            sea_level=settings.default_sea_level,
            gradient_to_flatness=sqrt_flatness(settings.default_steepness),
        )
        summary = flatness.summary()

        print(f"  Total points: {summary.total_points}")
        print(f"  Kept: {summary.kept}")
        print(f"  Underwater: {summary.underwater}")
        print(f"  No gradient: {summary.no_gradient}")
        print(f"  Too steep: {summary.rejected_by_transform}")
        print(f"  Too few neighbors: {summary.too_few_neighbors}")
        if summary.kept:
            print(f"  Score range: {summary.min_score:.2f}-{summary.max_score:.2f} "
                  f"(mean {summary.mean_score:.2f})")

            scores = np.array(list(flatness.map.values()))
            bins = [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]
            hist, _ = np.histogram(scores, bins=bins)
            print("  Score distribution:")
            for i in range(len(bins) - 1):
                bar = '#' * int(hist[i] / max(hist.max(), 1) * 20)
                print(f"    {bins[i]:.1f}-{bins[i+1]:.1f}: {bar} ({hist[i]})")


if __name__ == "__main__":
    main()
