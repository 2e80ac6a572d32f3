import numpy as np
import pytest

from interslam.drawables import DrawFlags
from interslam.graph_view import InteractiveGraphView
from interslam.hypergraph import Edge, EdgeKind, HyperGraph, KeyFrame, VertexPlane, VertexSE3
from interslam.primitives import PrimitiveType
from interslam.render import Shader


def _pose(x, y, z):
    pose = np.eye(4)
    pose[:3, 3] = (x, y, z)
    return pose


@pytest.fixture
def scene():
    graph = HyperGraph()
    v0 = graph.add_vertex(VertexSE3(0, estimate=_pose(0.0, 0.0, 0.0)))
    v1 = graph.add_vertex(VertexSE3(1, estimate=_pose(4.0, 0.0, 0.0)))
    plane = graph.add_vertex(VertexPlane(2, coeffs=[1.0, 0.0, 0.0, -2.0]))
    graph.add_edge(Edge(10, EdgeKind.SE3, (v0, v1)))
    graph.add_edge(Edge(11, EdgeKind.SE3_PLANE, (v0, plane)))
    graph.add_edge(Edge(12, EdgeKind.OTHER, (v1,)))
    cloud = np.array([[0.0, 0.0, 0.0, 1.0], [1.0, 1.0, 1.0, 2.0]], dtype=np.float32)
    keyframes = {1: KeyFrame(v1, cloud), 0: KeyFrame(v0, cloud)}
    return InteractiveGraphView(graph, keyframes)


def test_update_view_creates_views(scene):
    scene.update_view()
    assert [view.id() for view in scene.keyframes_view] == [0, 1]
    assert set(scene.vertices_view_map) == {0, 1, 2}
    assert sorted(view.id() for view in scene.edges_view) == [10, 11]
    assert len(scene.drawables) == 5


def test_update_view_is_idempotent(scene):
    scene.update_view()
    first = list(scene.drawables)
    scene.update_view()
    assert scene.drawables == first


def test_new_vertex_is_picked_up(scene):
    scene.update_view()
    v3 = scene.graph.add_vertex(VertexSE3(3))
    scene.graph.add_edge(Edge(13, EdgeKind.SE3, (scene.graph.vertices[0], v3)))
    scene.update_view()
    assert 13 in {view.id() for view in scene.edges_view}
    assert 3 not in scene.vertices_view_map


def test_draw_issues_expected_calls(scene):
    shader = Shader()
    scene.draw(DrawFlags(), shader)
    kinds = [call.kind for call in shader.draw_calls]
    assert kinds.count("points") == 2
    primitives = [call.payload for call in shader.draw_calls if call.kind == "primitive"]
    assert primitives.count(PrimitiveType.SPHERE) == 2
    assert primitives.count(PrimitiveType.CUBE) == 1
    assert kinds[-1] == "lines"
    batch = shader.draw_calls[-1].payload
    assert batch.vertices.shape == (4, 3)
    assert set(batch.infos[:, 1].tolist()) == {10, 11}


def test_draw_without_edges_has_empty_lines(scene):
    shader = Shader()
    scene.draw(DrawFlags(draw_edges=False), shader)
    batch = shader.draw_calls[-1].payload
    assert batch.vertices.shape == (0, 3)
    assert len(scene.line_buffer) == 0


def test_draw_clears_lines_between_frames(scene):
    shader = Shader()
    scene.draw(DrawFlags(), shader)
    scene.draw(DrawFlags(), shader)
    assert len(scene.line_buffer) == 2


def test_empty_view_draws_only_lines():
    view = InteractiveGraphView()
    shader = Shader()
    view.draw(DrawFlags(), shader)
    assert [call.kind for call in shader.draw_calls] == ["lines"]