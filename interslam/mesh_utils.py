"""Helpers that derive per-vertex normals for triangle meshes."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class FlatMesh:
    """A triangle mesh with one unshared vertex per corner."""

    vertices: np.ndarray
    normals: np.ndarray
    indices: list[int]


def _triangles(vertices, indices) -> tuple[np.ndarray, np.ndarray]:
    verts = np.asarray(vertices, dtype=np.float32).reshape(-1, 3)
    idx = np.asarray(indices, dtype=np.int64)
    if idx.size % 3 != 0:
        raise ValueError("index count must be a multiple of three")
    if idx.size and (idx.min() < 0 or idx.max() >= len(verts)):
        raise IndexError("triangle index out of range")
    return verts, idx.reshape(-1, 3)


def _face_normals(verts: np.ndarray, tris: np.ndarray) -> np.ndarray:
    v1, v2, v3 = verts[tris[:, 0]], verts[tris[:, 1]], verts[tris[:, 2]]
    return np.cross(v2 - v1, v3 - v2).astype(np.float32)


def flatize(vertices, indices) -> FlatMesh:
    """Unshare vertices so every triangle carries its own (unnormalised) face normal."""
    verts, tris = _triangles(vertices, indices)
    face_normals = _face_normals(verts, tris)
    flat_vertices = verts[tris.reshape(-1)]
    flat_normals = np.repeat(face_normals, 3, axis=0)
    return FlatMesh(
        vertices=flat_vertices.reshape(-1, 3),
        normals=flat_normals.reshape(-1, 3),
        indices=list(range(len(flat_vertices))),
    )


def estimate_normals(vertices, indices) -> np.ndarray:
    """Per-vertex normals: the normalised sum of adjacent face normals."""
    verts, tris = _triangles(vertices, indices)
    normals = np.zeros_like(verts)
    face_normals = _face_normals(verts, tris)
    for corner in range(3):
        np.add.at(normals, tris[:, corner], face_normals)
    norms = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.where(norms > 0.0, normals / np.where(norms > 0.0, norms, 1.0), normals)