"""Keeps drawable views in step with a pose graph and draws them together."""

from __future__ import annotations

from collections.abc import Mapping

from .drawables import DrawableObject, DrawFlags, LineBuffer
from .hypergraph import Edge, HyperGraph, KeyFrame
from .render import Shader
from .views import EdgeView, KeyFrameView, VertexView, create_edge_view, create_vertex_view


class InteractiveGraphView:
    """A pose graph with its keyframes and a view for every drawable part of it."""

    def __init__(self, graph: HyperGraph | None = None, keyframes: Mapping[int, KeyFrame] | None = None) -> None:
        self.graph = graph if graph is not None else HyperGraph()
        self.keyframes: dict[int, KeyFrame] = dict(keyframes) if keyframes is not None else {}
        self.line_buffer = LineBuffer()

        self.keyframes_view: list[KeyFrameView] = []
        self.keyframes_view_map: dict[KeyFrame, KeyFrameView] = {}

        self.vertices_view: list[VertexView] = []
        self.vertices_view_map: dict[int, VertexView] = {}

        self.edges_view: list[EdgeView] = []
        self.edges_view_map: dict[Edge, EdgeView] = {}

        self.drawables: list[DrawableObject] = []

    def update_view(self) -> None:
        """Create views for keyframes, vertices and edges that do not have one yet."""
        keyframe_inserted = False
        for keyframe in self.keyframes.values():
            if keyframe in self.keyframes_view_map:
                continue
            keyframe_inserted = True
            view = KeyFrameView(keyframe)
            self.keyframes_view.append(view)
            self.keyframes_view_map[keyframe] = view
            self.vertices_view.append(view)
            self.vertices_view_map[keyframe.id] = view
            self.drawables.append(view)

        if keyframe_inserted:
            self.keyframes_view.sort(key=lambda view: view.id())

        for vertex_id, vertex in self.graph.vertices.items():
            if vertex_id in self.vertices_view_map:
                continue
            vertex_view = create_vertex_view(vertex)
            if vertex_view is not None:
                self.vertices_view.append(vertex_view)
                self.vertices_view_map[vertex_id] = vertex_view
                self.drawables.append(vertex_view)

        for edge in self.graph.edges:
            if edge in self.edges_view_map:
                continue
            edge_view = create_edge_view(edge, self.line_buffer)
            if edge_view is not None:
                self.edges_view.append(edge_view)
                self.edges_view_map[edge] = edge_view
                self.drawables.append(edge_view)

    def draw(self, flags: DrawFlags, shader: Shader) -> None:
        """Refresh the views, draw every available one, then draw the collected lines."""
        self.update_view()
        self.line_buffer.clear()
        for drawable in self.drawables:
            if drawable.available():
                drawable.draw(flags, shader)
        self.line_buffer.draw(shader)