"""
Spatial sample map interface.

A sample map associates one scalar value with each site of a tessellation.
This module defines what the flatness pipeline needs from such a map:
- Point-keyed, read-only lookup and iteration
- Interpolation at arbitrary coordinates
- Finite-difference gradient built on top of interpolation
- Tessellation adjacency for each sample point
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union


@dataclass(frozen=True)
class SamplePoint:
    """One site of a tessellation.

    Points compare equal only when built from the same tessellation slot,
    so two sites sharing coordinates but not an index stay distinct.
    """

    index: int
    x: float
    y: float

    @property
    def site(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class SampleMapParams:
    """Parameters shared by every map built over one tessellation."""

    scale: float  # characteristic spacing between sites
    seed: str = "default"
    jitter: float = 0.9  # max site deviation as a fraction of half-spacing


@dataclass(frozen=True)
class Gradient:
    """Local gradient of a sample map."""

    value: float  # magnitude
    dx: float
    dy: float

    @property
    def angle(self) -> float:
        """Direction of steepest ascent in radians."""
        return math.atan2(self.dy, self.dx)


class GradDifferenceType(str, Enum):
    """Finite-difference scheme used for gradient estimation."""

    CENTRAL = "central"
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class GradStrategy:
    delta: float = 1.0
    difference_type: GradDifferenceType = GradDifferenceType.CENTRAL


@dataclass(frozen=True)
class IDWStrategy:
    """Inverse-distance-weighted interpolation settings."""

    search_radius: float
    power: float = 2.0
    max_neighbors: int = 8

    @classmethod
    def default_from_params(cls, params: SampleMapParams) -> "IDWStrategy":
        return cls(search_radius=params.scale * 2.0)


@dataclass(frozen=True)
class NearestStrategy:
    """Take the value of the closest sample within the search radius."""

    search_radius: float


InterpolationMethod = Union[IDWStrategy, NearestStrategy]


class SampleMap(ABC):
    """Read-only mapping from sample point to value.

    Subclasses supply storage, interpolation and adjacency; gradient
    estimation is shared and only relies on ``interpolate``.
    """

    @property
    @abstractmethod
    def params(self) -> SampleMapParams:
        """Parameters of the underlying tessellation."""

    @abstractmethod
    def items(self) -> Iterator[Tuple[SamplePoint, Any]]:
        """Iterate over (point, value) pairs."""

    @abstractmethod
    def get(self, point: SamplePoint, default: Any = None) -> Any:
        """Look up the value stored for ``point``."""

    @abstractmethod
    def __len__(self) -> int:
        ...

    @abstractmethod
    def neighbors(self, point: SamplePoint) -> List[SamplePoint]:
        """Tessellation-adjacent points of ``point``.

        Adjacency belongs to the tessellation, not to this map's domain, so
        the result may include points that carry no value here.
        """

    @abstractmethod
    def interpolate(
        self, x: float, y: float, method: InterpolationMethod
    ) -> Optional[float]:
        """Estimate the value at (x, y), or None when no samples are in range."""

    @abstractmethod
    def derive(self, items: Iterable[Tuple[SamplePoint, Any]]) -> "SampleMap":
        """Build a new map over the same tessellation from (point, value) pairs."""

    def __iter__(self) -> Iterator[SamplePoint]:
        for point, _ in self.items():
            yield point

    def __contains__(self, point: object) -> bool:
        _missing = object()
        return self.get(point, _missing) is not _missing

    def __getitem__(self, point: SamplePoint) -> Any:
        _missing = object()
        value = self.get(point, _missing)
        if value is _missing:
            raise KeyError(point)
        return value

    def values(self) -> Iterator[Any]:
        for _, value in self.items():
            yield value

    def get_gradient(
        self,
        x: float,
        y: float,
        strategy: GradStrategy,
        method: InterpolationMethod,
    ) -> Optional[Gradient]:
        """
        Estimate the gradient at (x, y) by finite differences.

        Args:
            x, y: Coordinates to evaluate
            strategy: Step size and difference scheme
            method: Interpolation used to sample off-site values

        Returns:
            Gradient, or None if any required sample could not be interpolated

        Raises:
            ValueError: If the step size is not positive
        """
        d = strategy.delta
        if d <= 0:
            raise ValueError("Gradient delta must be positive")

        kind = strategy.difference_type
        if kind == GradDifferenceType.CENTRAL:
            offsets, span = (d, -d), 2.0 * d
        elif kind == GradDifferenceType.FORWARD:
            offsets, span = (d, 0.0), d
        else:
            offsets, span = (0.0, -d), d

        hi, lo = offsets
        samples = (
            self.interpolate(x + hi, y, method),
            self.interpolate(x + lo, y, method),
            self.interpolate(x, y + hi, method),
            self.interpolate(x, y + lo, method),
        )
        if any(s is None for s in samples):
            return None

        x_hi, x_lo, y_hi, y_lo = samples
        dx = (x_hi - x_lo) / span
        dy = (y_hi - y_lo) / span
        return Gradient(value=math.hypot(dx, dy), dx=dx, dy=dy)
