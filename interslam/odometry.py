"""Odometry sequences turned into a pose graph with keyframe directories."""

from __future__ import annotations

import argparse
import os
import re
import shutil
import sys
from enum import IntEnum
from pathlib import Path

import numpy as np

from .g2o_format import (
    format_edge_se3,
    format_matrix,
    format_vertex_se3,
    isometry,
    quaternion_to_matrix,
    rotation_angle,
)
from .pointcloud import load_cloud, voxel_downsample, write_pcd_binary
from .progress import ProgressInterface

DEFAULT_DOWNSAMPLE_RESOLUTION = 0.1
_RESOLUTION_TOLERANCE = 0.01
_STAMP_PATTERN = re.compile(r"\s*(\d+)\s*(\S)\s*(\d+)")


def parse_stamp(filename: str) -> tuple[int, int]:
    """Seconds and microseconds from a name such as ``1500000000_123456.pcd``."""
    match = _STAMP_PATTERN.match(filename)
    if match is None:
        raise ValueError(f"no time stamp in file name {filename!r}")
    return int(match.group(1)), int(match.group(3))


class OdometryFormat(IntEnum):
    """Layout of an odometry directory."""

    ROS = 1
    YOKOZUKA = 2


class OdometryFrame:
    """A point cloud file with its odometry pose and time stamp; the cloud loads lazily."""

    def __init__(
        self,
        raw_cloud_path: str | os.PathLike,
        pose,
        stamp_sec: int,
        stamp_usec: int,
        downsample_resolution: float = DEFAULT_DOWNSAMPLE_RESOLUTION,
    ) -> None:
        pose_arr = np.array(pose, dtype=np.float64)
        if pose_arr.shape != (4, 4):
            raise ValueError("a pose must be a 4x4 matrix")
        self.raw_cloud_path = str(raw_cloud_path)
        self.pose = pose_arr
        self.stamp_sec = stamp_sec
        self.stamp_usec = stamp_usec
        self.downsample_resolution = downsample_resolution
        self._cloud: np.ndarray | None = None

    @classmethod
    def from_pose_file(cls, cloud_path: str | os.PathLike, pose_path: str | os.PathLike) -> OdometryFrame:
        """A frame whose pose is the 4x4 matrix in ``pose_path`` and stamp comes from the cloud's name."""
        tokens = Path(pose_path).read_text(encoding="utf-8").split()
        if len(tokens) < 16:
            raise ValueError(f"{pose_path} holds fewer than 16 values")
        try:
            matrix = np.array([float(token) for token in tokens[:16]]).reshape(4, 4)
        except ValueError as exc:
            raise ValueError(f"{pose_path} holds a non-numeric value") from exc
        stamp_sec, stamp_usec = parse_stamp(Path(cloud_path).name)
        return cls(cloud_path, matrix, stamp_sec, stamp_usec)

    def cloud(self, downsample_resolution: float | None = None) -> np.ndarray:
        """The downsampled cloud; reloaded when the resolution changes by more than 0.01."""
        if downsample_resolution is None:
            downsample_resolution = self.downsample_resolution
        if self._cloud is None or abs(self.downsample_resolution - downsample_resolution) > _RESOLUTION_TOLERANCE:
            raw = load_cloud(self.raw_cloud_path)
            self._cloud = voxel_downsample(raw, downsample_resolution)
            self.downsample_resolution = downsample_resolution
        return self._cloud

    def __repr__(self) -> str:
        return f"OdometryFrame({self.raw_cloud_path!r}, stamp={self.stamp_sec}.{self.stamp_usec:06d})"


def _information_matrix() -> np.ndarray:
    info = np.eye(6)
    info[:3, :3] *= 10.0
    info[3:, 3:] *= 20.0
    return info


class OdometrySet:
    """The frames of an odometry directory and the keyframes chosen among them."""

    def __init__(
        self,
        progress: ProgressInterface,
        directory: str | os.PathLike,
        format: OdometryFormat = OdometryFormat.ROS,
    ) -> None:
        self.frames: list[OdometryFrame] = []
        self.keyframes: list[OdometryFrame] = []
        if format == OdometryFormat.YOKOZUKA:
            self._load_yokozuka(progress, Path(directory))
        else:
            self._load_ros(progress, Path(directory))

    def select_keyframes(self, keyframe_delta_x: float, keyframe_delta_angle: float) -> None:
        """Keep the first frame and every frame that moved or turned enough since the last kept one."""
        if not self.frames:
            return
        keyframes = [self.frames[0]]
        for frame in self.frames:
            delta = np.linalg.inv(keyframes[-1].pose) @ frame.pose
            delta_x = float(np.linalg.norm(delta[:3, 3]))
            delta_angle = rotation_angle(delta[:3, :3])
            if delta_x > keyframe_delta_x or delta_angle > keyframe_delta_angle:
                keyframes.append(frame)
        self.keyframes = keyframes

    def save(self, progress: ProgressInterface, dst_directory: str | os.PathLike) -> None:
        """Write ``graph.g2o`` and one directory per keyframe into ``dst_directory``."""
        if not self.keyframes:
            raise ValueError("no keyframes have been selected")
        destination = Path(dst_directory)
        self._save_graph(progress, destination / "graph.g2o")
        self._save_keyframes(destination)

    def _load_ros(self, progress: ProgressInterface, directory: Path) -> None:
        progress.set_text("sweeping the directory")
        stems = sorted(
            entry.stem
            for entry in directory.iterdir()
            if entry.suffix == ".pcd" and (entry.parent / f"{entry.stem}.odom").exists()
        )

        progress.set_text("loading odometry frames")
        progress.set_maximum(len(stems))
        progress.set_current(0)
        for stem in stems:
            progress.increment()
            try:
                frame = OdometryFrame.from_pose_file(directory / f"{stem}.pcd", directory / f"{stem}.odom")
            except OSError as exc:
                print(f"error : failed to load {directory / f'{stem}.odom'}: {exc}", file=sys.stderr)
                continue
            self.frames.append(frame)

    def _load_yokozuka(self, progress: ProgressInterface, directory: Path) -> None:
        progress.set_text("loading graph structure")
        progress.increment()

        graph_path = directory / "Scan3Graph.txt"
        try:
            text = graph_path.read_text(encoding="utf-8")
        except OSError:
            return

        entries: list[tuple[int, np.ndarray]] = []
        for lineno, line in enumerate(text.splitlines(), 1):
            tokens = line.split()
            if not tokens:
                continue
            if len(tokens) < 8:
                raise ValueError(f"{graph_path}:{lineno}: expected id, translation and quaternion")
            try:
                frame_id = int(tokens[0])
                values = [float(token) for token in tokens[1:8]]
            except ValueError as exc:
                raise ValueError(f"{graph_path}:{lineno}: non-numeric value") from exc
            pose = isometry(quaternion_to_matrix(values[3:7]), values[0:3])
            entries.append((frame_id, pose))

        progress.set_text("loading frames")
        progress.set_maximum(len(entries))
        for frame_id, pose in entries:
            progress.increment()
            cloud_path = directory / "Scan3Map" / f"submap-{frame_id:03d}.txt"
            self.frames.append(OdometryFrame(cloud_path, pose, frame_id, 0))

    def _save_graph(self, progress: ProgressInterface, path: Path) -> None:
        progress.set_text("save graph file")
        progress.increment()

        lines = [format_vertex_se3(i, keyframe.pose) for i, keyframe in enumerate(self.keyframes)]
        lines.append("FIX 0")
        information = _information_matrix()
        for i, (current, following) in enumerate(zip(self.keyframes, self.keyframes[1:])):
            delta = np.linalg.inv(current.pose) @ following.pose
            lines.append(format_edge_se3(i, i + 1, delta, information))

        with open(path, "w", encoding="utf-8") as stream:
            stream.write("\n".join(lines) + "\n")

    def _save_keyframes(self, directory: Path) -> None:
        for i, keyframe in enumerate(self.keyframes):
            keyframe_directory = directory / f"{i:06d}"
            keyframe_directory.mkdir(parents=True, exist_ok=True)

            raw_destination = keyframe_directory / "raw.pcd"
            if raw_destination.exists():
                raise FileExistsError(f"{raw_destination} already exists")
            shutil.copyfile(keyframe.raw_cloud_path, raw_destination)
            write_pcd_binary(keyframe_directory / "cloud.pcd", keyframe.cloud())

            matrix = format_matrix(keyframe.pose)
            with open(keyframe_directory / "data", "w", encoding="utf-8") as stream:
                stream.write(f"stamp {keyframe.stamp_sec} {keyframe.stamp_usec}\n")
                stream.write(f"estimate\n{matrix}\n")
                stream.write(f"odom \n{matrix}\n")
                stream.write(f"id {i}\n")


class _ConsoleProgress(ProgressInterface):
    def set_text(self, text: str) -> None:
        print(text, file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Convert an odometry directory into a graph directory."""
    parser = argparse.ArgumentParser(description="Convert an odometry sequence into a pose graph.")
    parser.add_argument("directory", help="odometry directory")
    parser.add_argument("destination", help="directory to write the graph into")
    parser.add_argument("--format", choices=("ros", "yokozuka"), default="ros")
    parser.add_argument("--keyframe-delta-x", type=float, default=3.0)
    parser.add_argument("--keyframe-delta-angle", type=float, default=1.0)
    parser.add_argument("--downsample-resolution", type=float, default=0.2)
    args = parser.parse_args(argv)

    progress = _ConsoleProgress()
    odometry_format = OdometryFormat.YOKOZUKA if args.format == "yokozuka" else OdometryFormat.ROS
    try:
        odometry_set = OdometrySet(progress, args.directory, odometry_format)
    except (OSError, ValueError) as exc:
        print(f"error: failed to load odometry data: {exc}", file=sys.stderr)
        return 1

    odometry_set.select_keyframes(args.keyframe_delta_x, args.keyframe_delta_angle)
    try:
        for keyframe in odometry_set.keyframes:
            keyframe.cloud(args.downsample_resolution)
        odometry_set.save(progress, args.destination)
    except (OSError, ValueError) as exc:
        print(f"error: failed to save graph data: {exc}", file=sys.stderr)
        return 1
    return 0