[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "interslam"
version = "1.0.0"
description = "Pose-graph building blocks for 3D lidar SLAM: odometry-to-graph conversion, point cloud I/O, g2o output and graph views"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["slam", "pose graph", "g2o", "point cloud", "odometry", "lidar", "pcd"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
odometry2graph = "interslam.odometry:main"

[tool.hatch.build.targets.wheel]
packages = ["interslam"]

[tool.hatch.build.targets.sdist]
include = ["interslam", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
