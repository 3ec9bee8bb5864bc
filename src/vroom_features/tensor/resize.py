"""Bilinear resampling of 2-D feature grids to fixed plane sizes."""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def _source_coords(target: int, source: int):
    """Source index pairs and fractional weights for each target index."""
    scale = np.float32(source) / np.float32(target)
    coords = np.arange(target, dtype=np.float32) * scale
    i0 = np.minimum(coords.astype(np.int64), source - 1)
    i1 = np.minimum(i0 + 1, source - 1)
    weight = (coords - i0.astype(np.float32)).astype(np.float32)
    return i0, i1, weight


def resize_feature(feature: np.ndarray, target_width: int, target_height: int) -> np.ndarray:
    """Resize a (rows, cols) grid to (target_height, target_width) bilinearly.

    Target cell (y, x) samples the source at (y * rows / target_height,
    x * cols / target_width); neighbours past the last row/column clamp to
    it. A grid already of the target size is returned unchanged. An empty
    grid (no frames) becomes an all-zero plane.
    """
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"Invalid target size {target_width}x{target_height}")
    grid = np.asarray(feature, dtype=np.float32)
    if grid.ndim != 2:
        raise ValueError(f"Expected a 2-D feature grid, got shape {grid.shape}")

    src_h, src_w = grid.shape
    if src_h == 0 or src_w == 0:
        logger.warning(
            "Empty %dx%d feature grid; using zero plane of %dx%d",
            src_h,
            src_w,
            target_height,
            target_width,
        )
        return np.zeros((target_height, target_width), dtype=np.float32)

    x0, x1, x_weight = _source_coords(target_width, src_w)
    y0, y1, y_weight = _source_coords(target_height, src_h)
    xw = x_weight[np.newaxis, :]
    yw = y_weight[:, np.newaxis]

    resized = (
        grid[np.ix_(y0, x0)] * (1 - xw) * (1 - yw)
        + grid[np.ix_(y0, x1)] * xw * (1 - yw)
        + grid[np.ix_(y1, x0)] * (1 - xw) * yw
        + grid[np.ix_(y1, x1)] * xw * yw
    )
    return resized.astype(np.float32)
