"""Reading, writing and downsampling of x, y, z, intensity point clouds."""

from __future__ import annotations

import os
from pathlib import Path

import numpy as np


class CloudFormatError(ValueError):
    """A point cloud file is malformed or of an unknown kind."""


_TYPE_CODES = {
    ("F", 4): "<f4",
    ("F", 8): "<f8",
    ("I", 1): "i1",
    ("I", 2): "<i2",
    ("I", 4): "<i4",
    ("I", 8): "<i8",
    ("U", 1): "u1",
    ("U", 2): "<u2",
    ("U", 4): "<u4",
    ("U", 8): "<u8",
}

_OUTPUT_FIELDS = ("x", "y", "z", "intensity")


def _parse_header(raw: bytes) -> tuple[dict[str, list[str]], int]:
    header: dict[str, list[str]] = {}
    pos = 0
    while pos < len(raw):
        end = raw.find(b"\n", pos)
        if end < 0:
            end = len(raw)
        line = raw[pos:end].decode("ascii", errors="replace").strip()
        pos = end + 1
        if not line or line.startswith("#"):
            continue
        key, *values = line.split()
        header[key.upper()] = values
        if key.upper() == "DATA":
            return header, pos
    raise CloudFormatError("PCD header has no DATA line")


def _ints(values: list[str], what: str) -> list[int]:
    try:
        return [int(value) for value in values]
    except ValueError as exc:
        raise CloudFormatError(f"bad {what} in PCD header") from exc


def _lzf_decompress(data: bytes, expected: int) -> bytes:
    out = bytearray()
    i = 0
    try:
        while i < len(data):
            ctrl = data[i]
            i += 1
            if ctrl < 32:
                length = ctrl + 1
                if i + length > len(data):
                    raise CloudFormatError("truncated LZF literal run")
                out += data[i:i + length]
                i += length
                continue
            length = ctrl >> 5
            if length == 7:
                length += data[i]
                i += 1
            ref = len(out) - ((ctrl & 0x1F) << 8) - data[i] - 1
            i += 1
            if ref < 0:
                raise CloudFormatError("LZF back reference before start of data")
            for _ in range(length + 2):
                out.append(out[ref])
                ref += 1
    except IndexError as exc:
        raise CloudFormatError("truncated LZF data") from exc
    if len(out) != expected:
        raise CloudFormatError("LZF data decompressed to an unexpected size")
    return bytes(out)


def read_pcd(path: str | os.PathLike) -> np.ndarray:
    """Read a PCD file (ascii, binary or binary_compressed) as an (N, 4) float32 array."""
    raw = Path(path).read_bytes()
    header, body_start = _parse_header(raw)
    body = raw[body_start:]

    fields = header.get("FIELDS")
    if not fields:
        raise CloudFormatError("PCD header has no FIELDS")
    sizes = _ints(header.get("SIZE", []), "SIZE")
    types = header.get("TYPE", [])
    counts = _ints(header.get("COUNT", ["1"] * len(fields)), "COUNT")
    if not len(fields) == len(sizes) == len(types) == len(counts):
        raise CloudFormatError("PCD field descriptions have different lengths")

    if "POINTS" in header:
        (num_points,) = _ints(header["POINTS"][:1], "POINTS")
    else:
        width = _ints(header.get("WIDTH", ["0"])[:1], "WIDTH")[0]
        height = _ints(header.get("HEIGHT", ["1"])[:1], "HEIGHT")[0]
        num_points = width * height

    codes = []
    for type_char, size in zip(types, sizes):
        code = _TYPE_CODES.get((type_char.upper(), size))
        if code is None:
            raise CloudFormatError(f"unsupported PCD field type {type_char}{size}")
        codes.append(code)

    data_kind = header["DATA"][0].lower() if header["DATA"] else ""
    columns: list[np.ndarray] = []
    if data_kind == "ascii":
        per_point = sum(counts)
        rows = [line.split() for line in body.decode("ascii", errors="replace").splitlines() if line.strip()]
        rows = rows[:num_points]
        if len(rows) < num_points or any(len(row) < per_point for row in rows):
            raise CloudFormatError("PCD ascii data is shorter than declared")
        try:
            table = np.array([row[:per_point] for row in rows], dtype=np.float64).reshape(num_points, per_point)
        except ValueError as exc:
            raise CloudFormatError("PCD ascii data holds a non-numeric value") from exc
        offset = 0
        for count in counts:
            columns.append(table[:, offset:offset + count])
            offset += count
    elif data_kind == "binary":
        dtype = np.dtype([(f"f{i}", code, (count,)) for i, (code, count) in enumerate(zip(codes, counts))])
        if len(body) < num_points * dtype.itemsize:
            raise CloudFormatError("PCD binary data is shorter than declared")
        records = np.frombuffer(body, dtype=dtype, count=num_points)
        columns = [records[f"f{i}"].reshape(num_points, -1).astype(np.float64) for i in range(len(fields))]
    elif data_kind == "binary_compressed":
        if len(body) < 8:
            raise CloudFormatError("PCD compressed data has no size header")
        compressed_size, uncompressed_size = np.frombuffer(body[:8], dtype="<u4")
        payload = body[8:8 + int(compressed_size)]
        if len(payload) < compressed_size:
            raise CloudFormatError("PCD compressed data is shorter than declared")
        data = _lzf_decompress(payload, int(uncompressed_size))
        offset = 0
        for code, size, count in zip(codes, sizes, counts):
            span = num_points * size * count
            if offset + span > len(data):
                raise CloudFormatError("PCD compressed data is shorter than declared")
            values = np.frombuffer(data[offset:offset + span], dtype=code)
            columns.append(values.reshape(num_points, count).astype(np.float64))
            offset += span
    else:
        raise CloudFormatError(f"unsupported PCD data kind {data_kind!r}")

    by_name: dict[str, np.ndarray] = {}
    for name, column in zip(fields, columns):
        by_name.setdefault(name, column[:, 0])

    missing = [name for name in ("x", "y", "z") if name not in by_name]
    if missing:
        raise CloudFormatError(f"PCD file lacks fields: {' '.join(missing)}")

    points = np.zeros((num_points, 4), dtype=np.float32)
    for index, name in enumerate(_OUTPUT_FIELDS):
        if name in by_name:
            points[:, index] = by_name[name]
    return points


def _as_xyzi(points) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float32)
    if arr.ndim != 2 or arr.shape[1] not in (3, 4):
        raise ValueError("points must be an (N, 3) or (N, 4) array")
    if arr.shape[1] == 3:
        arr = np.hstack([arr, np.zeros((len(arr), 1), dtype=np.float32)])
    return arr


def write_pcd_binary(path: str | os.PathLike, points) -> None:
    """Write points as a binary PCD file with fields x y z intensity."""
    arr = np.ascontiguousarray(_as_xyzi(points), dtype="<f4")
    n = len(arr)
    header = (
        "# .PCD v0.7 - Point Cloud Data file format\n"
        "VERSION 0.7\n"
        "FIELDS x y z intensity\n"
        "SIZE 4 4 4 4\n"
        "TYPE F F F F\n"
        "COUNT 1 1 1 1\n"
        f"WIDTH {n}\n"
        "HEIGHT 1\n"
        "VIEWPOINT 0 0 0 1 0 0 0\n"
        f"POINTS {n}\n"
        "DATA binary\n"
    )
    with open(path, "wb") as stream:
        stream.write(header.encode("ascii"))
        stream.write(arr.tobytes())


def read_text_cloud(path: str | os.PathLike) -> np.ndarray:
    """Read lines of ``x y z intensity``; blank lines are skipped, missing values are 0."""
    rows = []
    with open(path, encoding="utf-8") as stream:
        for lineno, line in enumerate(stream, 1):
            tokens = line.split()
            if not tokens:
                continue
            try:
                values = [float(token) for token in tokens[:4]]
            except ValueError as exc:
                raise CloudFormatError(f"{path}:{lineno}: non-numeric value") from exc
            rows.append(values + [0.0] * (4 - len(values)))
    return np.array(rows, dtype=np.float32).reshape(-1, 4)


def load_cloud(path: str | os.PathLike) -> np.ndarray:
    """Load a ``.pcd`` or ``.txt`` point cloud by its extension."""
    extension = Path(path).suffix
    if extension == ".pcd":
        return read_pcd(path)
    if extension == ".txt":
        return read_text_cloud(path)
    raise CloudFormatError(f"unknown extension {extension!r} of {path}")


def voxel_downsample(points, leaf_size: float) -> np.ndarray:
    """Replace the points in each cubic voxel by their centroid, ordered by voxel index."""
    if leaf_size <= 0.0:
        raise ValueError("leaf size must be positive")
    arr = np.asarray(points, dtype=np.float32)
    if arr.ndim != 2 or arr.shape[1] < 3:
        raise ValueError("points must be an (N, 3+) array")

    arr = arr[np.all(np.isfinite(arr[:, :3]), axis=1)]
    if len(arr) == 0:
        return np.zeros((0, arr.shape[1]), dtype=np.float32)

    inverse_leaf = np.float32(1.0) / np.float32(leaf_size)
    ijk = np.floor(arr[:, :3] * inverse_leaf).astype(np.int64)
    ijk -= ijk.min(axis=0)
    dims = ijk.max(axis=0) + 1
    linear = ijk[:, 0] + ijk[:, 1] * dims[0] + ijk[:, 2] * dims[0] * dims[1]

    _, inverse, counts = np.unique(linear, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)
    sums = np.zeros((len(counts), arr.shape[1]), dtype=np.float64)
    np.add.at(sums, inverse, arr.astype(np.float64))
    return (sums / counts[:, None]).astype(np.float32)