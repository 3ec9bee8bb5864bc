"""Stereo clip -> combined feature tensor for the vehicle-sound classifier."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from vroom_features.audio.config import FeatureConfig
from vroom_features.audio.features import FeatureExtractor
from vroom_features.tensor.combine import combine_features, normalize_feature
from vroom_features.tensor.resize import resize_feature

logger = logging.getLogger(__name__)


@dataclass
class ChannelPlanes:
    """Resized and normalized planes of one channel, values in [0, 255]."""

    mfcc: np.ndarray  # (mfcc_height, mfcc_width)
    spectrogram: np.ndarray  # (spec_height, spec_width)


class AudioProcessor:
    """Runs the full feature pipeline on a pair of 16-bit PCM channels.

    Each channel goes through normalization, STFT, dB scaling and MFCC
    independently; the four grids are resized to the fixed plane sizes,
    min-max normalized and stacked.

    Interface:
      processor = AudioProcessor()
      tensor = processor.process_audio_channels(left, right)  # 103148 bytes

    Stateless per call; the window and filterbank it holds are read-only.
    """

    def __init__(
        self,
        config: Optional[FeatureConfig] = None,
        extractor: Optional[FeatureExtractor] = None,
    ):
        self.config = config or FeatureConfig()
        self.extractor = extractor or FeatureExtractor(self.config)

    def channel_planes(self, samples: np.ndarray) -> ChannelPlanes:
        """Extract, resize and normalize both feature planes of one channel."""
        cfg = self.config
        spec_db, mfcc = self.extractor.extract_channel(samples)
        spec_plane = resize_feature(spec_db, cfg.spec_width, cfg.spec_height)
        mfcc_plane = resize_feature(mfcc, cfg.mfcc_width, cfg.mfcc_height)
        return ChannelPlanes(
            mfcc=normalize_feature(mfcc_plane, cfg),
            spectrogram=normalize_feature(spec_plane, cfg),
        )

    def process_audio_channels(self, left: np.ndarray, right: np.ndarray) -> bytes:
        """Convert a stereo clip to the combined uint8 tensor.

        Args:
            left: Left channel, 1-D 16-bit PCM at config.sample_rate.
            right: Right channel, same length as left.

        Returns:
            config.tensor_size bytes: left MFCC, left spectrogram, right
            MFCC, right spectrogram planes, row-major.
        """
        left = np.asarray(left)
        right = np.asarray(right)
        if left.ndim != 1 or right.ndim != 1:
            raise ValueError(
                f"Expected 1-D channels, got shapes {left.shape} and {right.shape}"
            )
        if len(left) != len(right):
            raise ValueError(f"Channel lengths differ: {len(left)} != {len(right)}")

        logger.debug(
            "Processing %d samples/channel (%d frames)",
            len(left),
            self.config.frame_count(len(left)),
        )
        left_planes = self.channel_planes(left)
        right_planes = self.channel_planes(right)
        return combine_features(
            left_planes.mfcc,
            left_planes.spectrogram,
            right_planes.mfcc,
            right_planes.spectrogram,
            self.config,
        )
