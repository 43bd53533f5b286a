"""Shared fixtures for py-habitat tests."""

import pytest

from py_habitat.core.sample_map import Gradient, SampleMap, SampleMapParams


class InMemorySampleMap(SampleMap):
    """Dictionary-backed sample map with hand-written adjacency.

    ``field`` drives interpolation when given; ``gradients`` short-circuits
    gradient estimation with fixed magnitudes keyed by site (None = unavailable).
    """

    def __init__(self, values, adjacency=None, gradients=None, field=None, scale=1.0):
        self._values = dict(values)
        self._adjacency = adjacency or {}
        self._gradients = gradients
        self._field = field
        self._params = SampleMapParams(scale=scale)

    @property
    def params(self):
        return self._params

    def items(self):
        return iter(self._values.items())

    def get(self, point, default=None):
        return self._values.get(point, default)

    def __len__(self):
        return len(self._values)

    def neighbors(self, point):
        return list(self._adjacency.get(point, []))

    def interpolate(self, x, y, method):
        if self._field is not None:
            return self._field(x, y)
        best = None
        for point, value in self._values.items():
            distance = ((point.x - x) ** 2 + (point.y - y) ** 2) ** 0.5
            if distance <= method.search_radius and (best is None or distance < best[0]):
                best = (distance, value)
        return None if best is None else best[1]

    def get_gradient(self, x, y, strategy, method):
        if self._gradients is None:
            return super().get_gradient(x, y, strategy, method)
        value = self._gradients.get((x, y))
        if value is None:
            return None
        return Gradient(value=value, dx=value, dy=0.0)

    def derive(self, items):
        return InMemorySampleMap(
            dict(items),
            adjacency=self._adjacency,
            gradients=self._gradients,
            field=self._field,
            scale=self._params.scale,
        )


@pytest.fixture
def in_memory_map():
    """The InMemorySampleMap class, for building test maps."""
    return InMemorySampleMap
