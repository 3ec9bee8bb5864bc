"""Resizing, normalization and stacking of feature planes."""

from vroom_features.tensor.combine import (
    NonFiniteFeatureError,
    combine_features,
    normalize_feature,
    tensor_to_image,
    tensor_to_planes,
)
from vroom_features.tensor.resize import resize_feature

__all__ = [
    "NonFiniteFeatureError",
    "combine_features",
    "normalize_feature",
    "resize_feature",
    "tensor_to_image",
    "tensor_to_planes",
]
