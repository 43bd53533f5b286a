"""Voronoi-backed spatial sample map."""

import zlib
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import Voronoi, cKDTree

from .sample_map import (
    IDWStrategy,
    InterpolationMethod,
    NearestStrategy,
    SampleMap,
    SampleMapParams,
    SamplePoint,
)

logger = structlog.get_logger()


def _rng_from_seed(seed: str) -> np.random.Generator:
    return np.random.default_rng(zlib.crc32(seed.encode("utf-8")))


def get_jittered_grid(
    width: float, height: float, spacing: float, seed: str = "default", jitter: float = 0.9
) -> np.ndarray:
    """
    Generate jittered square grid points.

    Creates a regular grid and moves every point by a random offset so the
    tessellation has no visible grid artifacts.

    Args:
        width: Grid width
        height: Grid height
        spacing: Distance between grid points
        seed: Random seed for reproducibility
        jitter: Max deviation as a fraction of half the spacing

    Returns:
        Array of [x, y] point coordinates
    """
    rng = _rng_from_seed(seed)

    radius = spacing / 2
    jittering = radius * jitter
    double_jittering = jittering * 2

    points = []
    y = radius
    while y < height:
        x = radius
        while x < width:
            xj = min(round(x + rng.random() * double_jittering - jittering, 2), width)
            yj = min(round(y + rng.random() * double_jittering - jittering, 2), height)
            points.append([xj, yj])
            x += spacing
        y += spacing

    return np.array(points, dtype=float).reshape(-1, 2)


def get_boundary_points(width: float, height: float, spacing: float) -> np.ndarray:
    """
    Generate boundary points for pseudo-clipping Voronoi cells.

    Points are placed one spacing outside the map edge so that no real
    site ends up with an infinite cell.

    Args:
        width: Grid width
        height: Grid height
        spacing: Base spacing for points

    Returns:
        Array of boundary point coordinates
    """
    offset = round(-1 * spacing)
    b_spacing = spacing * 2
    w = width - offset * 2
    h = height - offset * 2

    number_x = int(np.ceil(w / b_spacing) - 1)
    number_y = int(np.ceil(h / b_spacing) - 1)

    points = []
    for i in range(number_x):
        x = int(np.ceil((w * (i + 0.5)) / number_x + offset))
        points.append([x, offset])
        points.append([x, h + offset])

    for i in range(number_y):
        y = int(np.ceil((h * (i + 0.5)) / number_y + offset))
        points.append([offset, y])
        points.append([w + offset, y])

    return np.array(points, dtype=float).reshape(-1, 2)


def build_cell_connectivity(vor: Voronoi, n_sites: int) -> Tuple[List[List[int]], np.ndarray]:
    """
    Build site adjacency from a scipy Voronoi diagram.

    Two sites are neighbors when their cells share a ridge. Ridges against
    boundary points only mark the site as a border cell.

    Args:
        vor: scipy Voronoi diagram
        n_sites: Number of real sites (boundary points follow them)

    Returns:
        Tuple of (cell_neighbors, border_flags)
    """
    cell_neighbors = [set() for _ in range(n_sites)]
    border_flags = np.zeros(n_sites, dtype=np.uint8)

    for p1, p2 in vor.ridge_points:
        if p1 < n_sites and p2 < n_sites:
            cell_neighbors[p1].add(p2)
            cell_neighbors[p2].add(p1)
        elif p1 < n_sites:
            border_flags[p1] = 1
        elif p2 < n_sites:
            border_flags[p2] = 1

    return [sorted(int(n) for n in neighbors) for neighbors in cell_neighbors], border_flags


@dataclass(eq=False)
class VoronoiTessellation:
    """Sites of a jittered grid and their Voronoi adjacency."""

    params: SampleMapParams
    width: float
    height: float
    sites: np.ndarray
    boundary_points: np.ndarray
    cell_neighbors: List[List[int]]
    border_flags: np.ndarray
    tree: cKDTree = field(repr=False)
    _points: List[SamplePoint] = field(init=False, repr=False)

    def __post_init__(self):
        self._points = [
            SamplePoint(index=i, x=float(x), y=float(y))
            for i, (x, y) in enumerate(self.sites)
        ]

    def __len__(self) -> int:
        return len(self._points)

    def points(self) -> List[SamplePoint]:
        return list(self._points)

    def point(self, index: int) -> SamplePoint:
        return self._points[index]

    def owns(self, point: object) -> bool:
        """Check that ``point`` was produced by this tessellation."""
        if not isinstance(point, SamplePoint):
            return False
        return 0 <= point.index < len(self._points) and self._points[point.index] == point

    def neighbors(self, point: SamplePoint) -> List[SamplePoint]:
        if not self.owns(point):
            raise KeyError(point)
        return [self._points[i] for i in self.cell_neighbors[point.index]]

    def query_radius(self, x: float, y: float, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        """Return (indices, distances) of all sites within ``radius`` of (x, y)."""
        indices = np.asarray(self.tree.query_ball_point([x, y], r=radius), dtype=int)
        if len(indices) == 0:
            return indices, np.zeros(0)
        distances = np.hypot(self.sites[indices, 0] - x, self.sites[indices, 1] - y)
        return indices, distances


def generate_tessellation(
    width: float, height: float, params: SampleMapParams
) -> VoronoiTessellation:
    """
    Generate a jittered-grid Voronoi tessellation.

    Args:
        width: Map width
        height: Map height
        params: Spacing, seed and jitter of the sites

    Returns:
        VoronoiTessellation covering [0, width] x [0, height]

    Raises:
        ValueError: If width, height or scale is not positive
    """
    if width <= 0 or height <= 0:
        raise ValueError("Tessellation width and height must be positive")
    if params.scale <= 0:
        raise ValueError("Tessellation scale must be positive")

    logger.info(
        "Generating tessellation",
        width=width, height=height, scale=params.scale, seed=params.seed,
    )

    sites = get_jittered_grid(width, height, params.scale, params.seed, params.jitter)
    boundary_points = get_boundary_points(width, height, params.scale)

    vor = Voronoi(np.vstack([sites, boundary_points]))
    cell_neighbors, border_flags = build_cell_connectivity(vor, len(sites))

    logger.info("Tessellation generated", sites=len(sites), ridges=len(vor.ridge_points))

    return VoronoiTessellation(
        params=params,
        width=width,
        height=height,
        sites=sites,
        boundary_points=boundary_points,
        cell_neighbors=cell_neighbors,
        border_flags=border_flags,
        tree=cKDTree(sites),
    )


class VoronoiSampleMap(SampleMap):
    """Sample map over a VoronoiTessellation.

    The map's domain may be any subset of the tessellation's sites;
    interpolation only draws on sites inside the domain.
    """

    def __init__(
        self,
        tessellation: VoronoiTessellation,
        values: Optional[Dict[SamplePoint, float]] = None,
    ):
        self.tessellation = tessellation
        self._values: Dict[SamplePoint, float] = {}
        self._mask = np.zeros(len(tessellation), dtype=bool)
        self._array = np.zeros(len(tessellation), dtype=float)

        for point, value in (values or {}).items():
            if not tessellation.owns(point):
                raise KeyError(point)
            self._values[point] = value
            self._mask[point.index] = True
            self._array[point.index] = value

    @classmethod
    def from_array(cls, tessellation: VoronoiTessellation, values: np.ndarray) -> "VoronoiSampleMap":
        """Build a map with one value per site; NaN marks a site as absent."""
        values = np.asarray(values, dtype=float)
        if values.shape != (len(tessellation),):
            raise ValueError(
                f"Expected {len(tessellation)} values, got array of shape {values.shape}"
            )
        return cls(
            tessellation,
            {
                point: float(values[point.index])
                for point in tessellation.points()
                if not np.isnan(values[point.index])
            },
        )

    @classmethod
    def from_function(
        cls, tessellation: VoronoiTessellation, fn: Callable[[float, float], float]
    ) -> "VoronoiSampleMap":
        """Build a map by evaluating ``fn(x, y)`` at every site."""
        return cls(tessellation, {p: float(fn(p.x, p.y)) for p in tessellation.points()})

    @property
    def params(self) -> SampleMapParams:
        return self.tessellation.params

    def items(self) -> Iterator[Tuple[SamplePoint, float]]:
        return iter(self._values.items())

    def get(self, point: SamplePoint, default: Any = None) -> Any:
        return self._values.get(point, default)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VoronoiSampleMap(points={len(self)}, scale={self.params.scale})"

    def neighbors(self, point: SamplePoint) -> List[SamplePoint]:
        return self.tessellation.neighbors(point)

    def derive(self, items: Iterable[Tuple[SamplePoint, Any]]) -> "VoronoiSampleMap":
        return VoronoiSampleMap(self.tessellation, dict(items))

    def to_array(self) -> np.ndarray:
        """Values indexed by site, NaN where the map has no value."""
        return np.where(self._mask, self._array, np.nan)

    def interpolate(self, x: float, y: float, method: InterpolationMethod) -> Optional[float]:
        indices, distances = self.tessellation.query_radius(x, y, method.search_radius)
        in_domain = self._mask[indices]
        indices, distances = indices[in_domain], distances[in_domain]
        if len(indices) == 0:
            return None

        if isinstance(method, NearestStrategy):
            return float(self._array[indices[np.argmin(distances)]])

        if not isinstance(method, IDWStrategy):
            raise TypeError(f"Unsupported interpolation method: {method!r}")

        order = np.argsort(distances, kind="stable")[: method.max_neighbors]
        indices, distances = indices[order], distances[order]

        # Exact hit on a site returns the stored value
        if distances[0] < 1e-12:
            return float(self._array[indices[0]])

        weights = 1.0 / np.power(distances, method.power)
        return float(np.sum(weights * self._array[indices]) / np.sum(weights))
