"""Draw settings, pickable object kinds and a batched line buffer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Any

import numpy as np

from .render import Shader

LINE_WIDTH = 0.1


@dataclass
class DrawFlags:
    """Which parts of the graph are drawn."""

    draw_vertices: bool = True
    draw_edges: bool = True
    draw_keyframe_vertices: bool = True
    draw_plane_vertices: bool = True
    draw_se3_edges: bool = True
    draw_se3_plane_edges: bool = True
    draw_floor_edges: bool = False
    draw_plane_edges: bool = True
    z_clipping: bool = True


class ObjectType(IntFlag):
    """Kinds of objects that can be picked in the scene; combined as bit flags."""

    POINTS = 1
    VERTEX = 1 << 1
    EDGE = 1 << 2
    KEYFRAME = 1 << 3
    PLANE = 1 << 4


class DrawableObject:
    """An object of the graph scene; the base draws nothing and is always available."""

    def available(self) -> bool:
        """Whether the object can currently be drawn."""
        return True

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        """Draw with the object's own appearance; the base draws nothing."""
        return None

    def draw_with(self, flags: DrawFlags, shader: Shader, color: Any, model_matrix: Any) -> None:
        """Draw with a given colour and model matrix; the base draws nothing."""
        return None


@dataclass(frozen=True)
class LineBatch:
    """Line segments submitted in one draw: consecutive vertex pairs form lines."""

    line_width: float
    vertices: np.ndarray
    colors: np.ndarray
    infos: np.ndarray


def _vector(value: Any, size: int, dtype: type, what: str) -> np.ndarray:
    arr = np.asarray(value, dtype=dtype).reshape(-1)
    if arr.shape != (size,):
        raise ValueError(f"{what} must have {size} components, got {arr.size}")
    return arr


class LineBuffer:
    """Collects coloured line segments and draws them as one batch."""

    def __init__(self) -> None:
        self._vertices: list[np.ndarray] = []
        self._colors: list[np.ndarray] = []
        self._infos: list[np.ndarray] = []

    def clear(self) -> None:
        """Drop every collected line."""
        self._vertices.clear()
        self._colors.clear()
        self._infos.clear()

    def add_line(self, v0: Any, v1: Any, c0: Any, c1: Any, info: Any) -> None:
        """Add a segment from ``v0`` to ``v1`` with end colours and pick info."""
        p0 = _vector(v0, 3, np.float32, "vertex")
        p1 = _vector(v1, 3, np.float32, "vertex")
        col0 = _vector(c0, 4, np.float32, "color")
        col1 = _vector(c1, 4, np.float32, "color")
        info_arr = _vector(info, 4, np.int32, "info")
        self._vertices += [p0, p1]
        self._colors += [col0, col1]
        self._infos += [info_arr, info_arr.copy()]

    def __len__(self) -> int:
        return len(self._vertices) // 2

    def batch(self) -> LineBatch:
        """The collected lines as arrays."""
        return LineBatch(
            LINE_WIDTH,
            np.array(self._vertices, dtype=np.float32).reshape(-1, 3),
            np.array(self._colors, dtype=np.float32).reshape(-1, 4),
            np.array(self._infos, dtype=np.int32).reshape(-1, 4),
        )

    def draw(self, shader: Shader) -> None:
        """Draw every collected line in vertex-colour mode with an identity model matrix."""
        shader.set_uniform("color_mode", 2)
        shader.set_uniform("model_matrix", np.eye(4, dtype=np.float32))
        shader.record_draw("lines", self.batch())