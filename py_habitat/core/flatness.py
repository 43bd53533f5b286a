"""
Flatness (habitability) scoring over a spatial sample map.

This module implements:
- Gradient-based flatness scoring with sea-level exclusion
- Neighbor-density filtering against the tessellation adjacency
- A read-only FlatnessMap result that records how it was produced

Points that do not qualify are left out of the result. The reason for each
omission is kept as a PointStatus so callers can inspect it.
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

import numpy as np
import structlog

from .sample_map import (
    GradDifferenceType,
    GradStrategy,
    IDWStrategy,
    SampleMap,
    SamplePoint,
)

logger = structlog.get_logger()

GradientToFlatness = Callable[[float], Optional[float]]


class PointStatus(str, Enum):
    """Outcome of the pipeline for a single sample point."""

    KEPT = "kept"
    UNDERWATER = "underwater"
    NO_GRADIENT = "no_gradient"
    REJECTED_BY_TRANSFORM = "rejected_by_transform"
    TOO_FEW_NEIGHBORS = "too_few_neighbors"


def sqrt_flatness(steepness: float = 5.0) -> GradientToFlatness:
    """
    Build the default gradient-to-flatness transform.

    The returned function maps a gradient g to sqrt(1 - |g| / steepness) and
    rejects gradients steeper than ``steepness``. Scores fall in [0, 1].

    Args:
        steepness: Gradient magnitude at which the score reaches zero

    Returns:
        Transform suitable for build_flatness_map

    Raises:
        ValueError: If steepness is not positive
    """
    if steepness <= 0:
        raise ValueError("steepness must be positive")

    def gradient_to_flatness(gradient: float) -> Optional[float]:
        flatness = 1.0 - abs(gradient) / steepness
        if flatness < 0.0:
            return None
        return math.sqrt(flatness)

    return gradient_to_flatness


def score_flatness(
    elevation_map: SampleMap,
    sea_level: float,
    gradient_to_flatness: GradientToFlatness,
    statuses: Optional[Dict[SamplePoint, PointStatus]] = None,
) -> SampleMap:
    """
    Score every point of an elevation map by how gentle its slope is.

    Points below sea level, points whose gradient cannot be estimated and
    points the transform rejects are left out.

    Args:
        elevation_map: Elevation values per sample point
        sea_level: Elevations below this are excluded
        gradient_to_flatness: Maps a gradient magnitude to a score or None
        statuses: Optional dict that receives the outcome for every point

    Returns:
        Sample map of point -> flatness score
    """
    params = elevation_map.params
    grad_strategy = GradStrategy(delta=params.scale, difference_type=GradDifferenceType.CENTRAL)
    interpolation = IDWStrategy.default_from_params(params)

    def score(point: SamplePoint, elevation: float) -> Tuple[PointStatus, Optional[float]]:
        if elevation < sea_level:
            return PointStatus.UNDERWATER, None

        gradient = elevation_map.get_gradient(point.x, point.y, grad_strategy, interpolation)
        if gradient is None:
            return PointStatus.NO_GRADIENT, None

        flatness = gradient_to_flatness(gradient.value)
        if flatness is None:
            return PointStatus.REJECTED_BY_TRANSFORM, None
        return PointStatus.KEPT, flatness

    scored = []
    for point, elevation in elevation_map.items():
        status, flatness = score(point, elevation)
        if statuses is not None:
            statuses[point] = status
        if status == PointStatus.KEPT:
            scored.append((point, flatness))

    logger.debug(
        "Flatness scored", candidates=len(elevation_map), scored=len(scored), sea_level=sea_level
    )
    return elevation_map.derive(scored)


def filter_by_neighbor_density(
    flatness_map: SampleMap,
    minimum_neighbor_num: int,
    statuses: Optional[Dict[SamplePoint, PointStatus]] = None,
) -> SampleMap:
    """
    Drop points with fewer than ``minimum_neighbor_num`` scored neighbors.

    Neighbor counts are taken against ``flatness_map`` as given: removing a
    point never lowers the count of another. A threshold of 0 returns the
    input unchanged.

    Args:
        flatness_map: Scored points from score_flatness
        minimum_neighbor_num: Required number of scored neighbors
        statuses: Optional dict updated for every removed point

    Returns:
        Filtered sample map
    """
    if minimum_neighbor_num == 0:
        return flatness_map

    kept = []
    for point, flatness in flatness_map.items():
        count = sum(1 for neighbor in flatness_map.neighbors(point) if neighbor in flatness_map)
        if count >= minimum_neighbor_num:
            kept.append((point, flatness))
        elif statuses is not None:
            statuses[point] = PointStatus.TOO_FEW_NEIGHBORS

    logger.debug(
        "Neighbor density filter applied",
        minimum_neighbor_num=minimum_neighbor_num,
        before=len(flatness_map),
        after=len(kept),
    )
    return flatness_map.derive(kept)


def build_flatness_map(
    elevation_map: SampleMap,
    minimum_neighbor_num: int,
    sea_level: float,
    gradient_to_flatness: GradientToFlatness,
    statuses: Optional[Dict[SamplePoint, PointStatus]] = None,
) -> SampleMap:
    """
    Run flatness scoring followed by neighbor-density filtering.

    Args:
        elevation_map: Elevation values per sample point
        minimum_neighbor_num: Non-negative neighbor threshold (0 disables filtering)
        sea_level: Elevations below this are excluded
        gradient_to_flatness: Maps a gradient magnitude to a score or None
        statuses: Optional dict that receives the outcome for every point

    Returns:
        Sample map of point -> flatness score

    Raises:
        ValueError: If minimum_neighbor_num is not a non-negative integer
    """
    if (
        isinstance(minimum_neighbor_num, bool)
        or not isinstance(minimum_neighbor_num, (int, np.integer))
        or minimum_neighbor_num < 0
    ):
        raise ValueError(
            f"minimum_neighbor_num must be a non-negative integer, got {minimum_neighbor_num!r}"
        )

    scored = score_flatness(elevation_map, sea_level, gradient_to_flatness, statuses)
    return filter_by_neighbor_density(scored, int(minimum_neighbor_num), statuses)


@dataclass(frozen=True)
class FlatnessSummary:
    """Counts and score statistics of a FlatnessMap."""

    total_points: int
    kept: int
    underwater: int
    no_gradient: int
    rejected_by_transform: int
    too_few_neighbors: int
    min_score: Optional[float]
    mean_score: Optional[float]
    max_score: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FlatnessMap:
    """Flatness scores of an elevation map, with the parameters that produced them.

    The wrapped map and parameters are exposed read-only.
    """

    def __init__(
        self,
        elevation_map: SampleMap,
        minimum_neighbor_num: int,
        sea_level: float,
        gradient_to_flatness: Optional[GradientToFlatness] = None,
    ):
        """
        Build the flatness map.

        Args:
            elevation_map: Elevation values per sample point
            minimum_neighbor_num: Non-negative neighbor threshold
            sea_level: Elevations below this are excluded
            gradient_to_flatness: Transform; defaults to sqrt_flatness with
                the configured steepness
        """
        if gradient_to_flatness is None:
            from ..config import settings

            gradient_to_flatness = sqrt_flatness(settings.default_steepness)

        statuses: Dict[SamplePoint, PointStatus] = {}
        self._map = build_flatness_map(
            elevation_map, minimum_neighbor_num, sea_level, gradient_to_flatness, statuses
        )
        self._statuses = MappingProxyType(statuses)
        self._minimum_neighbor_num = minimum_neighbor_num
        self._sea_level = sea_level
        self._gradient_to_flatness = gradient_to_flatness

        logger.info(
            "Flatness map built",
            points=len(elevation_map),
            kept=len(self._map),
            sea_level=sea_level,
            minimum_neighbor_num=minimum_neighbor_num,
        )

    @property
    def map(self) -> SampleMap:
        return self._map

    @property
    def minimum_neighbor_num(self) -> int:
        return self._minimum_neighbor_num

    @property
    def sea_level(self) -> float:
        return self._sea_level

    @property
    def gradient_to_flatness(self) -> GradientToFlatness:
        return self._gradient_to_flatness

    @property
    def statuses(self) -> Mapping[SamplePoint, PointStatus]:
        return self._statuses

    def status(self, point: SamplePoint) -> PointStatus:
        """Outcome for ``point``; KeyError if it was not in the elevation map."""
        return self._statuses[point]

    def get(self, point: SamplePoint, default: Any = None) -> Any:
        return self._map.get(point, default)

    def __getitem__(self, point: SamplePoint) -> float:
        return self._map[point]

    def __contains__(self, point: object) -> bool:
        return point in self._map

    def __len__(self) -> int:
        return len(self._map)

    def __iter__(self) -> Iterator[SamplePoint]:
        return iter(self._map)

    def items(self) -> Iterator[Tuple[SamplePoint, float]]:
        return self._map.items()

    def __repr__(self) -> str:
        return (
            f"FlatnessMap(points={len(self)}, sea_level={self._sea_level}, "
            f"minimum_neighbor_num={self._minimum_neighbor_num})"
        )

    def summary(self) -> FlatnessSummary:
        counts = {status: 0 for status in PointStatus}
        for status in self._statuses.values():
            counts[status] += 1

        scores = np.fromiter((score for _, score in self._map.items()), dtype=float)
        has_scores = len(scores) > 0

        return FlatnessSummary(
            total_points=len(self._statuses),
            kept=len(self._map),
            underwater=counts[PointStatus.UNDERWATER],
            no_gradient=counts[PointStatus.NO_GRADIENT],
            rejected_by_transform=counts[PointStatus.REJECTED_BY_TRANSFORM],
            too_few_neighbors=counts[PointStatus.TOO_FEW_NEIGHBORS],
            min_score=float(np.min(scores)) if has_scores else None,
            mean_score=float(np.mean(scores)) if has_scores else None,
            max_score=float(np.max(scores)) if has_scores else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Parameters and summary as plain data."""
        return {
            "sea_level": float(self._sea_level),
            "minimum_neighbor_num": int(self._minimum_neighbor_num),
            "summary": self.summary().to_dict(),
        }
