"""Depth-map rendering helpers (numpy + OpenCV, no Qt)."""
from __future__ import annotations

import math
from typing import Sequence

import cv2
import numpy as np

from splitviewer.services.camera_device import CameraModel, DepthFrame

PLANE_COLORMAPS = {
    "Depth": cv2.COLORMAP_JET,
}


def normalize_plane(plane: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Scale valid (> 0) samples to 0..255. Returns (uint8 image, valid mask)."""
    data = np.asarray(plane, dtype=np.float32)
    valid = np.isfinite(data) & (data > 0)
    out = np.zeros(data.shape, dtype=np.uint8)
    if not valid.any():
        return out, valid
    lo = float(data[valid].min())
    hi = float(data[valid].max())
    scale = 255.0 / (hi - lo) if hi > lo else 0.0
    out[valid] = np.clip((data[valid] - lo) * scale, 0, 255).astype(np.uint8)
    return out, valid


def colorize_plane(name: str, plane: np.ndarray) -> np.ndarray:
    """BGR rendering of one image plane; invalid pixels are black."""
    gray, valid = normalize_plane(plane)
    colormap = PLANE_COLORMAPS.get(name)
    if colormap is None:
        return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
    bgr = cv2.applyColorMap(gray, colormap)
    bgr[~valid] = 0
    return bgr


def render_planes(frame: DepthFrame, plane_names: Sequence[str]) -> np.ndarray:
    """Side-by-side BGR tiles of the requested planes."""
    tiles = [colorize_plane(name, frame.plane(name)) for name in plane_names]
    if not tiles:
        raise ValueError("no planes requested")
    return cv2.hconcat(tiles)


def render_point_cloud(
    frame: DepthFrame,
    model: CameraModel,
    plane_names: Sequence[str],
    yaw_deg: float = 25.0,
) -> np.ndarray:
    """Project the frame's point cloud from a virtual camera rotated about the scene.

    Points are colored by intensity when the Intensity plane is requested,
    otherwise by depth; nearer points are drawn last.
    """
    depth = frame.plane("Depth")
    canvas = np.zeros((model.height, model.width, 3), dtype=np.uint8)
    points = model.to_points(depth)
    if points.size == 0:
        return canvas

    valid_mask = np.asarray(depth, dtype=np.float32) > 0
    if "Intensity" in plane_names:
        shade = np.asarray(frame.plane("Intensity"), dtype=np.float32)[valid_mask]
        colormap = cv2.COLORMAP_BONE
    else:
        shade = points[:, 2]
        colormap = cv2.COLORMAP_JET

    pivot = float(np.median(points[:, 2]))
    theta = math.radians(yaw_deg)
    x = points[:, 0]
    z = points[:, 2] - pivot
    xr = math.cos(theta) * x + math.sin(theta) * z
    zr = -math.sin(theta) * x + math.cos(theta) * z + pivot

    ahead = zr > 1.0
    u = np.round(xr[ahead] / zr[ahead] * model.fx + model.cx).astype(np.int64)
    v = np.round(points[ahead, 1] / zr[ahead] * model.fy + model.cy).astype(np.int64)
    zr = zr[ahead]
    shade = shade[ahead]
    inside = (u >= 0) & (u < model.width) & (v >= 0) & (v < model.height)
    u, v, zr, shade = u[inside], v[inside], zr[inside], shade[inside]
    if u.size == 0:
        return canvas

    gray, _ = normalize_plane(shade.reshape(-1, 1) + 1e-6)
    colors = cv2.applyColorMap(gray, colormap).reshape(-1, 3)
    order = np.argsort(-zr)
    canvas[v[order], u[order]] = colors[order]
    return canvas
