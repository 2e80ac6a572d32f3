"""Display pose of a plane vertex, placed near the keyframes that observe it."""

from __future__ import annotations

import numpy as np

from .hypergraph import EdgeKind, VertexPlane, VertexSE3


class VertexPlaneCache:
    """Caches a pose on the plane below the mean of the observing keyframes."""

    def __init__(self, vertex: VertexPlane) -> None:
        self.vertex = vertex
        self._pose = np.eye(4)
        self.update()

    def update(self) -> None:
        """Recompute the pose from the plane estimate and its SE3-plane edges."""
        positions = [
            edge.vertices[0].translation()
            for edge in self.vertex.edges
            if edge.kind is EdgeKind.SE3_PLANE and isinstance(edge.vertices[0], VertexSE3)
        ]
        if not positions:
            raise ValueError(f"plane vertex {self.vertex.id} has no SE3-plane edges")

        coeffs = self.vertex.coeffs
        normal = coeffs[:3]
        se3_center = np.mean(positions, axis=0)

        t = -(coeffs[3] + float(normal @ se3_center)) / float(normal @ normal)
        position = se3_center + t * normal

        unit_x = np.array([1.0, 0.0, 0.0])
        axis = unit_x if abs(float(unit_x @ normal)) < 0.9 else np.array([0.0, 0.0, 1.0])
        z_axis = normal / np.linalg.norm(normal)
        x_axis = np.cross(z_axis, axis)
        y_axis = np.cross(z_axis, x_axis)

        pose = np.eye(4)
        pose[:3, 0] = x_axis
        pose[:3, 1] = y_axis
        pose[:3, 2] = z_axis
        pose[:3, 3] = position
        self._pose = pose

    def pose(self) -> np.ndarray:
        """The cached 4x4 pose."""
        return self._pose.copy()