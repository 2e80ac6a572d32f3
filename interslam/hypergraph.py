"""A small pose graph: SE3 and plane vertices joined by typed edges, plus keyframes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np


@dataclass(eq=False)
class Vertex:
    """A graph vertex; ``edges`` lists the edges attached to it."""

    id: int
    edges: list = field(default_factory=list, repr=False)
    user_data: Any = field(default=None, repr=False)


@dataclass(eq=False)
class VertexSE3(Vertex):
    """A vertex whose estimate is a 4x4 rigid transform."""

    estimate: np.ndarray = field(default_factory=lambda: np.eye(4))

    def __post_init__(self) -> None:
        estimate = np.array(self.estimate, dtype=np.float64)
        if estimate.shape != (4, 4):
            raise ValueError("an SE3 estimate must be a 4x4 matrix")
        self.estimate = estimate

    def translation(self) -> np.ndarray:
        return self.estimate[:3, 3].copy()


@dataclass(eq=False)
class VertexPlane(Vertex):
    """A vertex whose estimate is a plane ``a x + b y + c z + d = 0``."""

    coeffs: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0, 0.0]))

    def __post_init__(self) -> None:
        coeffs = np.array(self.coeffs, dtype=np.float64).reshape(-1)
        if coeffs.shape != (4,):
            raise ValueError("plane coefficients must have four components")
        if not np.any(coeffs[:3]):
            raise ValueError("plane normal must not be zero")
        self.coeffs = coeffs


class EdgeKind(Enum):
    """Type of constraint an edge expresses."""

    SE3 = "se3"
    SE3_PLANE = "se3_plane"
    PLANE = "plane"
    PLANE_IDENTITY = "plane_identity"
    PLANE_PARALLEL = "plane_parallel"
    PLANE_PERPENDICULAR = "plane_perpendicular"
    PLANE_PRIOR_NORMAL = "plane_prior_normal"
    PLANE_PRIOR_DISTANCE = "plane_prior_distance"
    OTHER = "other"


@dataclass(eq=False)
class Edge:
    """A constraint between the vertices it joins."""

    id: int
    kind: EdgeKind
    vertices: tuple
    measurement: Any = None

    def __post_init__(self) -> None:
        self.vertices = tuple(self.vertices)
        if not self.vertices:
            raise ValueError("an edge needs at least one vertex")


class HyperGraph:
    """Vertices by id and edges in insertion order."""

    def __init__(self) -> None:
        self.vertices: dict[int, Vertex] = {}
        self.edges: list[Edge] = []

    def add_vertex(self, vertex: Vertex) -> Vertex:
        """Add ``vertex``; its id must be new to the graph."""
        if vertex.id in self.vertices:
            raise ValueError(f"vertex {vertex.id} already exists")
        self.vertices[vertex.id] = vertex
        return vertex

    def add_edge(self, edge: Edge) -> Edge:
        """Add ``edge`` and attach it to its vertices, which must be in the graph."""
        if any(existing is edge for existing in self.edges):
            raise ValueError(f"edge {edge.id} is already in the graph")
        for vertex in edge.vertices:
            if self.vertices.get(vertex.id) is not vertex:
                raise ValueError(f"vertex {vertex.id} is not part of the graph")
        self.edges.append(edge)
        for vertex in edge.vertices:
            vertex.edges.append(edge)
        return edge


@dataclass(eq=False)
class KeyFrame:
    """A point cloud attached to an SE3 vertex; rows are x, y, z[, intensity]."""

    node: VertexSE3
    cloud: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype=np.float32))
    min_pt: np.ndarray = field(init=False, repr=False)
    max_pt: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        cloud = np.asarray(self.cloud, dtype=np.float32)
        if cloud.ndim != 2 or cloud.shape[1] not in (3, 4):
            raise ValueError("a keyframe cloud must have three or four columns")
        self.cloud = cloud
        if len(cloud):
            self.min_pt = cloud[:, :3].min(axis=0)
            self.max_pt = cloud[:, :3].max(axis=0)
        else:
            self.min_pt = np.zeros(3, dtype=np.float32)
            self.max_pt = np.zeros(3, dtype=np.float32)

    @property
    def id(self) -> int:
        return self.node.id

    def estimate(self) -> np.ndarray:
        """Current pose of the keyframe's vertex."""
        return self.node.estimate.copy()