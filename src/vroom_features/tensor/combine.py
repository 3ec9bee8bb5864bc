"""Min-max normalization of feature planes and assembly of the combined uint8 tensor.

Layout (row-major, 241 columns, 428 rows):
  rows   0-12   left MFCC
  rows  13-213  left spectrogram
  rows 214-226  right MFCC
  rows 227-427  right spectrogram
"""

import logging
from typing import Optional, Tuple

import numpy as np

from vroom_features.audio.config import FeatureConfig

logger = logging.getLogger(__name__)


class NonFiniteFeatureError(ValueError):
    """A feature plane contains NaN or infinite values (strict mode only)."""


def _clamp_non_finite(grid: np.ndarray, config: FeatureConfig) -> np.ndarray:
    finite = np.isfinite(grid)
    if finite.all():
        return grid
    bad = int((~finite).sum())
    if config.strict:
        raise NonFiniteFeatureError(f"Feature plane contains {bad} non-finite values")
    logger.warning("Clamping %d non-finite values in feature plane", bad)
    if not finite.any():
        return np.zeros_like(grid)
    lo = grid[finite].min()
    hi = grid[finite].max()
    return np.clip(np.where(np.isnan(grid), lo, grid), lo, hi)


def normalize_feature(feature: np.ndarray, config: Optional[FeatureConfig] = None) -> np.ndarray:
    """Rescale a plane linearly so its minimum maps to 0 and maximum to 255.

    A constant plane has no range and is filled with config.degenerate_fill.
    Returns float32 values in [0, 255] (not yet truncated).
    """
    config = config or FeatureConfig()
    grid = _clamp_non_finite(np.asarray(feature, dtype=np.float32), config)
    if grid.size == 0:
        return grid.copy()

    lo = grid.min()
    hi = grid.max()
    if not hi > lo:
        logger.warning(
            "Constant feature plane (value %g); filling with %g",
            float(lo),
            config.degenerate_fill,
        )
        return np.full(grid.shape, config.degenerate_fill, dtype=np.float32)

    normalized = 255.0 * (grid - lo) / (hi - lo)
    return np.clip(normalized, 0.0, 255.0).astype(np.float32)


def _check_plane(name: str, plane: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    plane = np.asarray(plane)
    if plane.shape != shape:
        raise ValueError(f"{name} has shape {plane.shape}, expected {shape}")
    return plane


def combine_features(
    left_mfcc: np.ndarray,
    left_spec: np.ndarray,
    right_mfcc: np.ndarray,
    right_spec: np.ndarray,
    config: Optional[FeatureConfig] = None,
) -> bytes:
    """Stack four normalized planes into one flat uint8 buffer.

    Order: left MFCC, left spectrogram, right MFCC, right spectrogram, each
    row-major. Values are truncated (not rounded) to 8 bits.
    """
    config = config or FeatureConfig()
    mfcc_shape = (config.mfcc_height, config.mfcc_width)
    spec_shape = (config.spec_height, config.spec_width)
    planes = [
        _check_plane("left_mfcc", left_mfcc, mfcc_shape),
        _check_plane("left_spec", left_spec, spec_shape),
        _check_plane("right_mfcc", right_mfcc, mfcc_shape),
        _check_plane("right_spec", right_spec, spec_shape),
    ]
    image = np.vstack([np.clip(np.trunc(p), 0, 255).astype(np.uint8) for p in planes])
    return image.tobytes()


def tensor_to_image(tensor: bytes, config: Optional[FeatureConfig] = None) -> np.ndarray:
    """View a combined tensor as a (final_height, spec_width) uint8 image."""
    config = config or FeatureConfig()
    if len(tensor) != config.tensor_size:
        raise ValueError(f"Tensor has {len(tensor)} bytes, expected {config.tensor_size}")
    return np.frombuffer(tensor, dtype=np.uint8).reshape(config.final_height, config.spec_width)


def tensor_to_planes(
    tensor: bytes,
    config: Optional[FeatureConfig] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Split a combined tensor back into (left_mfcc, left_spec, right_mfcc, right_spec)."""
    config = config or FeatureConfig()
    image = tensor_to_image(tensor, config)
    bounds = np.cumsum(
        [config.mfcc_height, config.spec_height, config.mfcc_height]
    )
    left_mfcc, left_spec, right_mfcc, right_spec = np.split(image, bounds, axis=0)
    return left_mfcc, left_spec, right_mfcc, right_spec
