"""Geometry of the basic shapes used to draw the scene: cone, cube, grid, icosahedron, axes."""

from __future__ import annotations

import math
from enum import IntEnum

import numpy as np


class PrimitiveType(IntEnum):
    """Identifiers of the shared primitive shapes."""

    ICOSAHEDRON = 0
    SPHERE = 1
    CUBE = 2
    CONE = 3
    GRID = 4
    COORDINATE_SYSTEM = 5
    BUNNY = 6


def _normalized_rows(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    safe = np.where(norms > 0.0, norms, 1.0)
    return (vectors / safe).astype(np.float32)


class Cone:
    """Unit cone: apex at +Z, base circle of radius 1 in the XY plane."""

    def __init__(self, div: int = 10) -> None:
        if div < 1:
            raise ValueError("a cone needs at least one division")

        vertices = [(0.0, 0.0, 0.0), (0.0, 0.0, 1.0)]
        indices: list[int] = []
        step = 2.0 * math.pi / div
        for i in range(div):
            rad = step * i
            vertices.append((math.cos(rad), math.sin(rad), 0.0))
            current_index = i + 2
            next_index = (i + 1) % div + 2
            indices += [0, current_index, next_index, current_index, 1, next_index]

        self.vertices = np.array(vertices, dtype=np.float32)
        self.indices = indices


class Cube:
    """Unit cube centred at the origin."""

    def __init__(self) -> None:
        self.vertices = np.array(
            [
                (-0.5, -0.5, -0.5),
                (-0.5, -0.5, 0.5),
                (-0.5, 0.5, -0.5),
                (-0.5, 0.5, 0.5),
                (0.5, -0.5, -0.5),
                (0.5, -0.5, 0.5),
                (0.5, 0.5, -0.5),
                (0.5, 0.5, 0.5),
            ],
            dtype=np.float32,
        )
        self.normals = _normalized_rows(self.vertices)
        self.indices = [
            0, 1, 2, 1, 3, 2, 1, 5, 3, 3, 5, 7, 0, 4, 1, 1, 4, 5,
            3, 6, 2, 3, 7, 6, 0, 2, 4, 2, 6, 4, 4, 6, 5, 5, 6, 7,
        ]


class Grid:
    """Square line grid on the XY plane; consecutive vertex pairs form lines."""

    def __init__(self, half_extent: float = 5.0, step: float = 1.0) -> None:
        if step <= 0.0:
            raise ValueError("grid step must be positive")

        vertices = []
        x = -half_extent
        while x <= half_extent + 1e-9:
            vertices += [
                (x, -half_extent, 0.0),
                (x, half_extent, 0.0),
                (-half_extent, x, 0.0),
                (half_extent, x, 0.0),
            ]
            x += step
        self.vertices = np.array(vertices, dtype=np.float32).reshape(-1, 3)


class Icosahedron:
    """Regular icosahedron that can be subdivided and projected onto a sphere."""

    def __init__(self) -> None:
        t = (1.0 + math.sqrt(5.0)) / 2.0
        self.vertices = np.array(
            [
                (-1, t, 0), (1, t, 0), (-1, -t, 0), (1, -t, 0),
                (0, -1, t), (0, 1, t), (0, -1, -t), (0, 1, -t),
                (t, 0, -1), (t, 0, 1), (-t, 0, -1), (-t, 0, 1),
            ],
            dtype=np.float32,
        )
        self.normals = _normalized_rows(self.vertices)
        self.indices = [
            0, 11, 5, 0, 5, 1, 0, 1, 7, 0, 7, 10, 0, 10, 11, 1, 5, 9, 5, 11,
            4, 11, 10, 2, 10, 7, 6, 7, 1, 8, 3, 9, 4, 3, 4, 2, 3, 2, 6, 3,
            6, 8, 3, 8, 9, 4, 9, 5, 2, 4, 11, 6, 2, 10, 8, 6, 7, 9, 8, 1,
        ]
        self.middle_points_cache: dict[tuple[int, int], int] = {}

    def subdivide(self) -> None:
        """Split every triangle into four by inserting edge midpoints."""
        vertices = list(self.vertices)
        new_indices: list[int] = []
        triangles = zip(self.indices[0::3], self.indices[1::3], self.indices[2::3])
        for i0, i1, i2 in triangles:
            a = self._insert_middle_point(vertices, i0, i1)
            b = self._insert_middle_point(vertices, i1, i2)
            c = self._insert_middle_point(vertices, i2, i0)
            new_indices += [i0, a, c, i1, b, a, i2, c, b, a, b, c]

        self.indices = new_indices
        self.vertices = np.array(vertices, dtype=np.float32).reshape(-1, 3)
        self.normals = _normalized_rows(self.vertices)

    def spherize(self) -> None:
        """Push every vertex onto the unit sphere."""
        self.vertices = _normalized_rows(self.vertices)
        self.normals = _normalized_rows(self.vertices)

    def _insert_middle_point(self, vertices: list, v1: int, v2: int) -> int:
        key = (min(v1, v2), max(v1, v2))
        found = self.middle_points_cache.get(key)
        if found is not None:
            return found

        middle = (vertices[v1] + vertices[v2]) / np.float32(2.0)
        vertices.append(middle.astype(np.float32))
        index = len(vertices) - 1
        self.middle_points_cache[key] = index
        return index


class CoordinateSystem:
    """Three coloured unit axes: X red, Y green, Z blue."""

    def __init__(self) -> None:
        self.vertices = np.array(
            [
                (0.0, 0.0, 0.0), (1.0, 0.0, 0.0),
                (0.0, 0.0, 0.0), (0.0, 1.0, 0.0),
                (0.0, 0.0, 0.0), (0.0, 0.0, 1.0),
            ],
            dtype=np.float32,
        )
        self.colors = np.array(
            [
                (1.0, 0.0, 0.0, 1.0), (1.0, 0.0, 0.0, 1.0),
                (0.0, 1.0, 0.0, 1.0), (0.0, 1.0, 0.0, 1.0),
                (0.0, 0.0, 1.0, 1.0), (0.0, 0.0, 1.0, 1.0),
            ],
            dtype=np.float32,
        )