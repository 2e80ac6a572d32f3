import numpy as np
import pytest

from interslam.hypergraph import Edge, EdgeKind, HyperGraph, KeyFrame, VertexPlane, VertexSE3


def _pose(translation):
    pose = np.eye(4)
    pose[:3, 3] = translation
    return pose


def test_add_vertex_rejects_duplicate_id():
    graph = HyperGraph()
    graph.add_vertex(VertexSE3(1))
    with pytest.raises(ValueError):
        graph.add_vertex(VertexPlane(1))
    assert len(graph.vertices) == 1


def test_add_edge_attaches_to_vertices():
    graph = HyperGraph()
    a = graph.add_vertex(VertexSE3(0))
    b = graph.add_vertex(VertexSE3(1))
    edge = graph.add_edge(Edge(5, EdgeKind.SE3, [a, b]))
    assert graph.edges == [edge]
    assert a.edges == [edge] and b.edges == [edge]
    assert edge.vertices == (a, b)


def test_add_edge_rejects_foreign_vertex_and_duplicates():
    graph = HyperGraph()
    a = graph.add_vertex(VertexSE3(0))
    stranger = VertexSE3(1)
    with pytest.raises(ValueError):
        graph.add_edge(Edge(1, EdgeKind.SE3, (a, stranger)))
    assert a.edges == []
    b = graph.add_vertex(VertexSE3(2))
    edge = graph.add_edge(Edge(2, EdgeKind.SE3, (a, b)))
    with pytest.raises(ValueError):
        graph.add_edge(edge)
    assert len(a.edges) == 1


def test_vertex_validation():
    with pytest.raises(ValueError):
        VertexSE3(0, estimate=np.eye(3))
    with pytest.raises(ValueError):
        VertexPlane(0, coeffs=(0, 0, 1))
    with pytest.raises(ValueError):
        VertexPlane(0, coeffs=(0, 0, 0, 1))
    with pytest.raises(ValueError):
        Edge(0, EdgeKind.OTHER, ())


def test_translation_reads_estimate():
    vertex = VertexSE3(3, estimate=_pose((1.5, -2.0, 4.0)))
    np.testing.assert_allclose(vertex.translation(), [1.5, -2.0, 4.0])


def test_keyframe_delegates_to_node_and_bounds_cloud():
    node = VertexSE3(9, estimate=_pose((1, 2, 3)))
    cloud = np.array([[1, -2, 3, 0.5], [-4, 5, 0, 0.1]])
    keyframe = KeyFrame(node, cloud)
    assert keyframe.id == 9
    np.testing.assert_allclose(keyframe.estimate(), node.estimate)
    np.testing.assert_allclose(keyframe.min_pt, [-4, -2, 0])
    np.testing.assert_allclose(keyframe.max_pt, [1, 5, 3])


def test_keyframe_estimate_is_a_copy():
    node = VertexSE3(0)
    keyframe = KeyFrame(node)
    pose = keyframe.estimate()
    pose[0, 3] = 100.0
    assert node.estimate[0, 3] == 0.0


def test_keyframe_rejects_bad_cloud():
    with pytest.raises(ValueError):
        KeyFrame(VertexSE3(0), np.zeros((2, 2)))