"""Pose-graph building blocks for 3D lidar SLAM: odometry conversion, point clouds, g2o output and graph views."""

__version__ = "1.0.0"