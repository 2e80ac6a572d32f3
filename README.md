# interslam

Building blocks for 3D pose-graph SLAM on lidar data.

The core of the package turns a sequence of odometry frames into a pose
graph in the g2o text format, together with one directory per keyframe.

## Installation

```
pip install .
```

The only runtime dependency is NumPy. Python 3.10 or newer is required.

## Command line

```
odometry2graph DIRECTORY DESTINATION [--format {ros,yokozuka}]
               [--keyframe-delta-x 3.0] [--keyframe-delta-angle 1.0]
               [--downsample-resolution 0.2]
```

The command loads the odometry frames in `DIRECTORY`, selects keyframes,
downsamples each keyframe's cloud with the given voxel size and writes the
result into `DESTINATION`. It exits with status 1 and a message on standard
error if loading or saving fails. Run `odometry2graph --help` for the full
list of options.

### Input layouts

- `ros` (`OdometryFormat.ROS`): every `NAME.pcd` in the directory that has a
  matching `NAME.odom` file becomes a frame, in sorted name order. The
  `.odom` file holds the 4x4 pose matrix as 16 numbers; the time stamp is
  read from the file name, e.g. `1500000000_123456.pcd`.
- `yokozuka` (`OdometryFormat.YOKOZUKA`): `Scan3Graph.txt` lists one frame
  per line as `id x y z qx qy qz qw`; the cloud of frame `id` is
  `Scan3Map/submap-NNN.txt` (id padded to three digits), a text file of
  `x y z intensity` lines.

### Output

- `graph.g2o`: one `VERTEX_SE3:QUAT` line per keyframe, `FIX 0`, and an
  `EDGE_SE3:QUAT` line between consecutive keyframes holding their relative
  pose and an information matrix of 10 on the translation block and 20 on
  the rotation block.
- `000000/`, `000001/`, ...: per keyframe a copy of the raw cloud as
  `raw.pcd` (an existing `raw.pcd` is an error), the downsampled cloud as a
  binary `cloud.pcd`, and a `data` file with the stamp, the pose (as
  `estimate` and `odom`) and the keyframe id.

## Library use

```python
from interslam.odometry import OdometryFormat, OdometrySet
from interslam.progress import ProgressInterface

progress = ProgressInterface()
odometry = OdometrySet(progress, "recording/", OdometryFormat.ROS)
odometry.select_keyframes(3.0, 1.0)
odometry.save(progress, "graph_out/")
```

`select_keyframes` keeps the first frame and every frame whose translation
or rotation angle relative to the last kept frame exceeds the thresholds.
`save` raises `ValueError` when no keyframes have been selected.
`OdometryFrame.cloud()` loads and downsamples a frame's cloud on first use
and reloads it when the requested resolution changes by more than 0.01.

`ProgressInterface` ignores every update. `ProgressTask` records title,
text, current and maximum, and can also run a job on a worker thread:
`start(name, task)` launches it, `poll(name)` returns `True` once when it
has finished, and `result()` returns its value or re-raises its exception.

## Modules

- `interslam.odometry`: `OdometryFormat`, `OdometryFrame`, `OdometrySet`,
  `parse_stamp` and the `main` entry point of the command.
- `interslam.pointcloud`: `read_pcd` (ascii, binary and binary_compressed
  PCD files, returned as an `(N, 4)` float32 array of `x y z intensity`),
  `write_pcd_binary`, `read_text_cloud`, `load_cloud` (by `.pcd` or `.txt`
  extension) and `voxel_downsample` (centroid per voxel). Malformed files
  raise `CloudFormatError`.
- `interslam.g2o_format`: `isometry`, `quaternion_to_matrix`,
  `matrix_to_quaternion`, `rotation_angle`, `format_vertex_se3`,
  `format_edge_se3` and `format_matrix`.
- `interslam.hypergraph`: `VertexSE3`, `VertexPlane`, `Edge`, `EdgeKind`,
  `HyperGraph` and `KeyFrame`.
- `interslam.views`, `interslam.plane_cache`, `interslam.graph_view`:
  drawable views of keyframes, plane vertices and edges;
  `InteractiveGraphView` keeps a view for each part of a graph and draws
  them through a `LineBuffer` (`interslam.drawables`) and a `Shader`
  (`interslam.render`), with `DrawFlags` choosing what is drawn.
- `interslam.primitives`, `interslam.mesh_utils`: `Cone`, `Cube`, `Grid`,
  `Icosahedron` (with `subdivide` and `spherize`), `CoordinateSystem`,
  `flatize` and `estimate_normals`.
- `interslam.parameters` (`ParameterServer`), `interslam.robust_kernels`
  (`RobustKernels`), `interslam.progress` and `interslam.version`
  (`version_info`, `version_string`).

## What the package does not do

There is no graphical window and no on-screen rendering: `Shader` only
stores uniform values and records the draws issued against it. The package
does not optimise pose graphs, read back saved graph directories, detect
loop closures or planes, or edit graphs interactively.

## Tests

```
pip install .[test]
pytest
```