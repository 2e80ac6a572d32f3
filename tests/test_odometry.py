import math
from pathlib import Path

import numpy as np
import pytest

from interslam.g2o_format import format_edge_se3, format_vertex_se3, isometry, quaternion_to_matrix
from interslam.odometry import OdometryFormat, OdometryFrame, OdometrySet, main, parse_stamp
from interslam.pointcloud import read_pcd, voxel_downsample, write_pcd_binary
from interslam.progress import ProgressInterface

POINTS = np.array(
    [[0.01, 0.01, 0.01, 1.0], [0.02, 0.02, 0.02, 3.0], [5.0, 5.0, 5.0, 2.0]],
    dtype=np.float32,
)


class Recorder(ProgressInterface):
    def __init__(self):
        self.texts = []
        self.maximum = None
        self.increments = 0

    def set_text(self, text):
        self.texts.append(text)

    def set_maximum(self, maximum):
        self.maximum = maximum

    def increment(self):
        self.increments += 1


def _pose(x=0.0, yaw=0.0):
    c, s = math.cos(yaw), math.sin(yaw)
    return isometry([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]], [x, 0.0, 0.0])


def _write_frame(directory, stem, pose, points=POINTS):
    write_pcd_binary(directory / f"{stem}.pcd", points)
    text = "\n".join(" ".join(repr(float(v)) for v in row) for row in pose)
    (directory / f"{stem}.odom").write_text(text)


def _ros_dir(tmp_path, poses):
    src = tmp_path / "odom"
    src.mkdir()
    for i, pose in enumerate(poses):
        _write_frame(src, f"{1500000000 + i}_000000", pose)
    return src


def test_parse_stamp():
    assert parse_stamp("1500000000_123456.pcd") == (1500000000, 123456)


def test_parse_stamp_rejects_names_without_stamp():
    with pytest.raises(ValueError):
        parse_stamp("cloud.pcd")


def test_from_pose_file_reads_matrix_and_stamp(tmp_path):
    pose = _pose(2.0, 0.3)
    _write_frame(tmp_path, "1500000000_250000", pose)
    frame = OdometryFrame.from_pose_file(tmp_path / "1500000000_250000.pcd", tmp_path / "1500000000_250000.odom")
    assert np.allclose(frame.pose, pose)
    assert (frame.stamp_sec, frame.stamp_usec) == (1500000000, 250000)


def test_from_pose_file_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        OdometryFrame.from_pose_file(tmp_path / "1_2.pcd", tmp_path / "1_2.odom")


def test_from_pose_file_short_file(tmp_path):
    (tmp_path / "1_2.odom").write_text("1 0 0 0")
    with pytest.raises(ValueError):
        OdometryFrame.from_pose_file(tmp_path / "1_2.pcd", tmp_path / "1_2.odom")


def test_cloud_is_downsampled_and_cached(tmp_path):
    write_pcd_binary(tmp_path / "1_0.pcd", POINTS)
    frame = OdometryFrame(tmp_path / "1_0.pcd", np.eye(4), 1, 0)
    first = frame.cloud(0.5)
    assert np.allclose(first, voxel_downsample(POINTS, 0.5))
    assert len(first) < len(POINTS)

    write_pcd_binary(tmp_path / "1_0.pcd", POINTS[:1])
    assert frame.cloud(0.505) is first
    reloaded = frame.cloud(1.0)
    assert len(reloaded) == 1
    assert frame.downsample_resolution == 1.0


def test_ros_loading_sorts_and_skips(tmp_path):
    src = tmp_path / "odom"
    src.mkdir()
    _write_frame(src, "1500000002_000000", _pose(2.0))
    _write_frame(src, "1500000000_000000", _pose(0.0))
    _write_frame(src, "1500000001_500000", _pose(1.0))
    write_pcd_binary(src / "1500000003_000001.pcd", POINTS)
    (src / "notes.txt").write_text("not a cloud")

    progress = Recorder()
    odometry = OdometrySet(progress, src, OdometryFormat.ROS)
    stamps = [(f.stamp_sec, f.stamp_usec) for f in odometry.frames]
    assert stamps == [(1500000000, 0), (1500000001, 500000), (1500000002, 0)]
    assert progress.maximum == 3
    assert progress.increments == 3
    assert odometry.keyframes == []


def test_ros_loading_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        OdometrySet(Recorder(), tmp_path / "absent", OdometryFormat.ROS)


def test_select_keyframes_by_distance(tmp_path):
    src = _ros_dir(tmp_path, [_pose(float(x)) for x in range(7)])
    odometry = OdometrySet(Recorder(), src)
    odometry.select_keyframes(2.5, 1.0)
    assert [kf.pose[0, 3] for kf in odometry.keyframes] == [0.0, 3.0, 6.0]

    odometry.select_keyframes(100.0, 3.0)
    assert odometry.keyframes == [odometry.frames[0]]


def test_select_keyframes_by_angle(tmp_path):
    src = _ros_dir(tmp_path, [_pose(0.0, yaw) for yaw in (0.0, 0.2, 0.4, 0.6)])
    odometry = OdometrySet(Recorder(), src)
    odometry.select_keyframes(10.0, 0.5)
    assert len(odometry.keyframes) == 2
    assert odometry.keyframes[0] is odometry.frames[0]
    assert odometry.keyframes[1] is odometry.frames[3]


def test_empty_set_cannot_be_saved(tmp_path):
    src = tmp_path / "empty"
    src.mkdir()
    odometry = OdometrySet(Recorder(), src)
    odometry.select_keyframes(1.0, 1.0)
    assert odometry.keyframes == []
    with pytest.raises(ValueError):
        odometry.save(Recorder(), tmp_path / "out")


def test_yokozuka_loading(tmp_path):
    src = tmp_path / "yoko"
    (src / "Scan3Map").mkdir(parents=True)
    s = math.sqrt(0.5)
    (src / "Scan3Graph.txt").write_text(f"3 1.0 2.0 3.0 0 0 0 1\n\n7 4.0 5.0 6.0 0 0 {s!r} {s!r}\n")
    (src / "Scan3Map" / "submap-003.txt").write_text("0 0 0 1\n\n0.01 0 0 2\n3 3 3 4\n")

    odometry = OdometrySet(Recorder(), src, OdometryFormat.YOKOZUKA)
    assert len(odometry.frames) == 2
    second = odometry.frames[1]
    assert Path(second.raw_cloud_path).parts[-2:] == ("Scan3Map", "submap-007.txt")
    assert (second.stamp_sec, second.stamp_usec) == (7, 0)
    assert np.allclose(second.pose[:3, 3], [4.0, 5.0, 6.0])
    assert np.allclose(second.pose[:3, :3], quaternion_to_matrix([0, 0, s, s]))
    assert len(odometry.frames[0].cloud(0.1)) == 2


def test_yokozuka_without_graph_file(tmp_path):
    odometry = OdometrySet(Recorder(), tmp_path, OdometryFormat.YOKOZUKA)
    assert odometry.frames == []


def test_save_writes_graph_and_keyframes(tmp_path):
    src = _ros_dir(tmp_path, [_pose(float(x)) for x in range(7)])
    odometry = OdometrySet(Recorder(), src)
    odometry.select_keyframes(2.5, 1.0)
    out = tmp_path / "out"
    out.mkdir()
    odometry.save(Recorder(), out)

    kfs = odometry.keyframes
    lines = (out / "graph.g2o").read_text().splitlines()
    vertex_lines = [line for line in lines if line.startswith("VERTEX_SE3:QUAT")]
    edge_lines = [line for line in lines if line.startswith("EDGE_SE3:QUAT")]
    assert len(vertex_lines) == len(kfs)
    assert len(edge_lines) == len(kfs) - 1
    assert "FIX 0" in lines
    assert vertex_lines[1] == format_vertex_se3(1, kfs[1].pose)
    info = np.diag([10.0, 10.0, 10.0, 20.0, 20.0, 20.0])
    assert edge_lines[0] == format_edge_se3(0, 1, np.linalg.inv(kfs[0].pose) @ kfs[1].pose, info)

    first = out / "000000"
    assert (first / "raw.pcd").read_bytes() == Path(kfs[0].raw_cloud_path).read_bytes()
    assert np.allclose(read_pcd(first / "cloud.pcd"), kfs[0].cloud())

    data = (out / "000002" / "data").read_text().splitlines()
    assert data[0] == f"stamp {kfs[2].stamp_sec} {kfs[2].stamp_usec}"
    assert data[1] == "estimate"
    estimate = np.array([[float(v) for v in line.split()] for line in data[2:6]])
    assert np.allclose(estimate, kfs[2].pose)
    assert data[6] == "odom "
    assert data[-1] == "id 2"


def test_save_twice_refuses_to_overwrite(tmp_path):
    src = _ros_dir(tmp_path, [_pose(0.0), _pose(5.0)])
    odometry = OdometrySet(Recorder(), src)
    odometry.select_keyframes(1.0, 1.0)
    out = tmp_path / "out"
    out.mkdir()
    odometry.save(Recorder(), out)
    with pytest.raises(FileExistsError):
        odometry.save(Recorder(), out)


def test_main_converts_directory(tmp_path):
    src = _ros_dir(tmp_path, [_pose(0.0), _pose(5.0)])
    out = tmp_path / "out"
    out.mkdir()
    assert main([str(src), str(out), "--keyframe-delta-x", "1.0"]) == 0
    assert len((out / "graph.g2o").read_text().splitlines()) == 4
    assert (out / "000001" / "cloud.pcd").exists()


def test_main_reports_empty_input(tmp_path):
    src = tmp_path / "empty"
    src.mkdir()
    assert main([str(src), str(tmp_path / "out"), "--format", "yokozuka"]) == 1