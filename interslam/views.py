"""Drawable views of graph vertices, keyframes and edges."""

from __future__ import annotations

import abc
import warnings
import weakref

import numpy as np

from .drawables import DrawableObject, DrawFlags, LineBuffer, ObjectType
from .hypergraph import Edge, EdgeKind, KeyFrame, Vertex, VertexPlane, VertexSE3
from .plane_cache import VertexPlaneCache
from .primitives import PrimitiveType
from .render import Shader

_FLOOR_COEFFS = np.array([0.0, 0.0, 1.0, 0.0])
_PLANE_EDGE_KINDS = frozenset(
    {EdgeKind.PLANE, EdgeKind.PLANE_IDENTITY, EdgeKind.PLANE_PARALLEL, EdgeKind.PLANE_PERPENDICULAR}
)


def _plane_cache(vertex: VertexPlane) -> VertexPlaneCache | None:
    data = vertex.user_data
    return data if isinstance(data, VertexPlaneCache) else None


def _info(kind: int, object_id: int) -> np.ndarray:
    return np.array([int(kind), object_id, 0, 0], dtype=np.int32)


class VertexView(DrawableObject):
    """View of one graph vertex."""

    def __init__(self, vertex: Vertex) -> None:
        self.vertex = vertex

    def id(self) -> int:
        return self.vertex.id


class VertexPlaneView(VertexView):
    """Draws a plane vertex as a flat box at its cached pose."""

    def __init__(self, vertex: VertexPlane) -> None:
        if not isinstance(vertex, VertexPlane):
            raise TypeError("a plane view needs a plane vertex")
        super().__init__(vertex)
        self.vertex_plane = vertex
        if vertex.user_data is None:
            vertex.user_data = VertexPlaneCache(vertex)

    def _cache(self) -> VertexPlaneCache:
        cache = _plane_cache(self.vertex_plane)
        if cache is None:
            raise LookupError(f"plane vertex {self.vertex.id} has no plane cache")
        return cache

    def _draw_cube(self, shader: Shader, model_matrix: np.ndarray, color) -> None:
        shader.set_uniform("color_mode", 1)
        shader.set_uniform("model_matrix", model_matrix.astype(np.float32))
        shader.set_uniform("material_color", np.asarray(color, dtype=np.float32))
        shader.set_uniform("info_values", _info(ObjectType.VERTEX | ObjectType.PLANE, self.vertex.id))
        shader.record_draw("primitive", PrimitiveType.CUBE)

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        cache = self._cache()
        cache.update()
        if not flags.draw_vertices or not flags.draw_plane_vertices:
            return
        model_matrix = cache.pose() @ np.diag([5.0, 5.0, 0.1, 1.0])
        self._draw_cube(shader, model_matrix, (0.0, 1.0, 0.0, 1.0))

    def draw_with(self, flags: DrawFlags, shader: Shader, color, model_matrix) -> None:
        cache = self._cache()
        cache.update()
        if not flags.draw_vertices or not flags.draw_plane_vertices:
            return
        model = cache.pose().astype(np.float32) @ np.asarray(model_matrix, dtype=np.float32)
        self._draw_cube(shader, model, color)


class KeyFrameView(VertexView):
    """Draws a keyframe's cloud and a sphere marking its vertex; holds the keyframe weakly."""

    def __init__(self, keyframe: KeyFrame) -> None:
        super().__init__(keyframe.node)
        self._keyframe = weakref.ref(keyframe)
        self.points = np.array(keyframe.cloud, dtype=np.float32, copy=True)

    def lock(self) -> KeyFrame | None:
        """The keyframe, or None once it no longer exists."""
        return self._keyframe()

    def _locked(self) -> KeyFrame:
        keyframe = self.lock()
        if keyframe is None:
            raise ReferenceError("keyframe no longer exists")
        return keyframe

    def available(self) -> bool:
        return self.lock() is not None

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        keyframe = self._locked()
        model_matrix = keyframe.estimate().astype(np.float32)
        shader.set_uniform("color_mode", 0)
        shader.set_uniform("model_matrix", model_matrix)
        shader.set_uniform("info_values", _info(ObjectType.POINTS, 0))
        shader.record_draw("points", self.points)

        if not flags.draw_vertices or not flags.draw_keyframe_vertices:
            return

        shader.set_uniform("color_mode", 1)
        shader.set_uniform("material_color", np.array([1.0, 0.0, 0.0, 1.0], dtype=np.float32))
        shader.set_uniform("info_values", _info(ObjectType.VERTEX | ObjectType.KEYFRAME, keyframe.id))
        model_matrix[:3, :3] *= np.float32(0.35)
        shader.set_uniform("model_matrix", model_matrix)
        shader.record_draw("primitive", PrimitiveType.SPHERE)

    def draw_with(self, flags: DrawFlags, shader: Shader, color, model_matrix) -> None:
        keyframe = self.lock()
        if keyframe is None:
            return
        shader.set_uniform("color_mode", 1)
        shader.set_uniform("material_color", np.asarray(color, dtype=np.float32))
        shader.set_uniform("model_matrix", np.asarray(model_matrix, dtype=np.float32))
        shader.set_uniform("info_values", _info(ObjectType.POINTS, 0))
        shader.record_draw("points", self.points)

        shader.set_uniform("color_mode", 1)
        shader.set_uniform("info_values", _info(ObjectType.VERTEX | ObjectType.KEYFRAME, keyframe.id))
        shader.record_draw("primitive", PrimitiveType.SPHERE)


def _two_vertices(edge: Edge, first: type, second: type) -> tuple:
    if len(edge.vertices) < 2:
        raise TypeError(f"edge {edge.id} does not join two vertices")
    v1, v2 = edge.vertices[0], edge.vertices[1]
    if not isinstance(v1, first) or not isinstance(v2, second):
        raise TypeError(f"edge {edge.id} joins vertices of the wrong types")
    return v1, v2


class EdgeView(DrawableObject, abc.ABC):
    """View of one graph edge; draws by adding a line to a shared buffer."""

    def __init__(self, edge: Edge, line_buffer: LineBuffer) -> None:
        self.edge = edge
        self.line_buffer = line_buffer

    def id(self) -> int:
        return self.edge.id

    @abc.abstractmethod
    def representative_point(self) -> np.ndarray:
        """A point that stands for the edge, such as its midpoint."""


class EdgeSE3View(EdgeView):
    """A red line between two SE3 vertices."""

    def __init__(self, edge: Edge, line_buffer: LineBuffer) -> None:
        super().__init__(edge, line_buffer)
        self.v1, self.v2 = _two_vertices(edge, VertexSE3, VertexSE3)

    def _endpoints(self) -> tuple[np.ndarray, np.ndarray]:
        return self.v1.translation().astype(np.float32), self.v2.translation().astype(np.float32)

    def representative_point(self) -> np.ndarray:
        p1, p2 = self._endpoints()
        return (p1 + p2) * np.float32(0.5)

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        if not flags.draw_edges or not flags.draw_se3_edges:
            return
        p1, p2 = self._endpoints()
        color = (0.95, 0.0, 0.0, 1.0)
        self.line_buffer.add_line(p1, p2, color, color, _info(ObjectType.EDGE, self.edge.id))


class EdgeSE3PlaneView(EdgeView):
    """A red-to-green line from an SE3 vertex to the plane it observes."""

    def __init__(self, edge: Edge, line_buffer: LineBuffer) -> None:
        super().__init__(edge, line_buffer)
        self.v_se3, self.v_plane = _two_vertices(edge, VertexSE3, VertexPlane)

    def representative_point(self) -> np.ndarray:
        cache = _plane_cache(self.v_plane)
        if cache is None:
            return np.zeros(3, dtype=np.float32)
        p1 = self.v_se3.translation().astype(np.float32)
        p2 = cache.pose()[:3, 3].astype(np.float32)
        return (p1 + p2) * np.float32(0.5)

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        if not flags.draw_edges or not flags.draw_se3_plane_edges:
            return
        if not flags.draw_floor_edges and np.linalg.norm(self.v_plane.coeffs - _FLOOR_COEFFS) < 1e-6:
            return
        cache = _plane_cache(self.v_plane)
        if cache is None:
            return
        p1 = self.v_se3.translation()
        p2 = cache.pose()[:3, 3]
        self.line_buffer.add_line(
            p1, p2, (1.0, 0.0, 0.0, 1.0), (0.0, 1.0, 0.0, 1.0), _info(ObjectType.EDGE, self.edge.id)
        )


class EdgePlaneView(EdgeView):
    """A blue line between two related planes."""

    def __init__(self, edge: Edge, line_buffer: LineBuffer) -> None:
        super().__init__(edge, line_buffer)
        self.v1, self.v2 = _two_vertices(edge, VertexPlane, VertexPlane)

    def _positions(self) -> tuple[np.ndarray, np.ndarray] | None:
        cache1, cache2 = _plane_cache(self.v1), _plane_cache(self.v2)
        if cache1 is None or cache2 is None:
            warnings.warn("vertex plane cache has not been created", RuntimeWarning, stacklevel=3)
            return None
        return cache1.pose()[:3, 3].astype(np.float32), cache2.pose()[:3, 3].astype(np.float32)

    def representative_point(self) -> np.ndarray:
        positions = self._positions()
        if positions is None:
            return np.zeros(3, dtype=np.float32)
        p1, p2 = positions
        return (p1 + p2) * np.float32(0.5)

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        if not flags.draw_edges or not flags.draw_plane_edges:
            return
        positions = self._positions()
        if positions is None:
            return
        color = (0.0, 0.0, 1.0, 1.0)
        self.line_buffer.add_line(*positions, color, color, _info(ObjectType.EDGE, self.edge.id))


def is_plane_edge(edge: Edge) -> bool:
    """Whether ``edge`` relates two planes."""
    return edge.kind in _PLANE_EDGE_KINDS


def create_vertex_view(vertex: Vertex) -> VertexView | None:
    """A view for ``vertex`` if it is drawn on its own; keyframes get theirs separately."""
    if isinstance(vertex, VertexPlane):
        return VertexPlaneView(vertex)
    return None


def create_edge_view(edge: Edge, line_buffer: LineBuffer) -> EdgeView | None:
    """A view for ``edge``, or None for edges that are not drawn."""
    if edge.kind is EdgeKind.SE3:
        return EdgeSE3View(edge, line_buffer)
    if edge.kind is EdgeKind.SE3_PLANE:
        return EdgeSE3PlaneView(edge, line_buffer)
    if is_plane_edge(edge):
        return EdgePlaneView(edge, line_buffer)
    return None