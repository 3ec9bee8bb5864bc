"""Streaming loop: interleaved stereo chunks -> 3 s ring -> feature tensor -> callback.

Chunks are pushed as they arrive from the capture layer. Once the ring
holds a full clip, every further chunk produces a tensor over the most
recent window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import numpy as np

from vroom_features.audio.buffer import StereoRingBuffer
from vroom_features.audio.config import FeatureConfig
from vroom_features.pipeline.processor import AudioProcessor

logger = logging.getLogger(__name__)


@dataclass
class StreamingConfig:
    """Streaming overrides. Sample rate and the default window come from FeatureConfig."""

    window_sec: Optional[float] = None  # None: FeatureConfig.window_sec

    def __post_init__(self) -> None:
        if self.window_sec is not None and self.window_sec <= 0:
            raise ValueError("window_sec must be > 0")

    def window_samples(self, feature_config: FeatureConfig) -> int:
        """Samples per channel in the rolling window."""
        if self.window_sec is None:
            return feature_config.window_samples
        return int(self.window_sec * feature_config.sample_rate)


TensorCallback = Callable[[bytes], None]


class StreamingFeaturePipeline:
    """Buffers interleaved stereo PCM and emits a combined tensor per chunk once full.

    Not thread-safe: use one pipeline per capture thread.
    """

    def __init__(
        self,
        config: Optional[StreamingConfig] = None,
        feature_config: Optional[FeatureConfig] = None,
        processor: Optional[AudioProcessor] = None,
        on_tensor: Optional[TensorCallback] = None,
    ):
        if feature_config is None:
            feature_config = processor.config if processor is not None else FeatureConfig()
        elif processor is not None and processor.config != feature_config:
            raise ValueError("processor.config does not match feature_config")
        self.feature_config = feature_config
        self.streaming_config = config or StreamingConfig()
        self.window_samples = self.streaming_config.window_samples(self.feature_config)
        self.processor = processor or AudioProcessor(self.feature_config)
        self.on_tensor = on_tensor or (lambda t: None)

        self._ring = StereoRingBuffer(self.window_samples)
        self._stopped = False

    def stop(self) -> None:
        """Signal the run loop to exit (checked each iteration)."""
        self._stopped = True

    def reset(self) -> None:
        """Drop buffered audio."""
        self._ring.clear()

    def push(self, chunk: np.ndarray) -> Optional[bytes]:
        """Buffer one interleaved chunk. Returns a tensor if the window is full."""
        chunk = np.asarray(chunk, dtype=np.int16)
        if chunk.size == 0:
            return None
        self._ring.push_interleaved(chunk)
        if not self._ring.is_full:
            return None
        left, right = self._ring.get_channels()
        logger.debug("Window full (%d samples/channel); extracting features", len(left))
        return self.processor.process_audio_channels(left, right)

    def run(self, chunk_iterator: Iterator[np.ndarray]) -> None:
        """Consume chunks until stopped or the iterator is exhausted."""
        self._stopped = False
        for chunk in chunk_iterator:
            if self._stopped:
                break
            tensor = self.push(chunk)
            if tensor is not None:
                self.on_tensor(tensor)

    def run_for_n_updates(
        self,
        n: int,
        chunk_iterator: Iterator[np.ndarray],
    ) -> list[bytes]:
        """Run until n tensors are produced; used for tests. Returns the tensors."""
        self._stopped = False
        tensors: list[bytes] = []
        for chunk in chunk_iterator:
            if len(tensors) >= n or self._stopped:
                break
            tensor = self.push(chunk)
            if tensor is not None:
                tensors.append(tensor)
                self.on_tensor(tensor)
        return tensors
