"""
Core flatness analysis functionality.
"""

from .sample_map import (SamplePoint, SampleMap, SampleMapParams, Gradient,
                         GradDifferenceType, GradStrategy, IDWStrategy, NearestStrategy)
from .voronoi_sample_map import VoronoiSampleMap, VoronoiTessellation, generate_tessellation
from .flatness import (FlatnessMap, FlatnessSummary, PointStatus, build_flatness_map,
                       score_flatness, filter_by_neighbor_density, sqrt_flatness)

__all__ = ['SamplePoint', 'SampleMap', 'SampleMapParams', 'Gradient',
           'GradDifferenceType', 'GradStrategy', 'IDWStrategy', 'NearestStrategy',
           'VoronoiSampleMap', 'VoronoiTessellation', 'generate_tessellation',
           'FlatnessMap', 'FlatnessSummary', 'PointStatus', 'build_flatness_map',
           'score_flatness', 'filter_by_neighbor_density', 'sqrt_flatness']
