"""Stereo feature pipeline: one-shot processor and streaming loop."""

from vroom_features.pipeline.processor import AudioProcessor, ChannelPlanes
from vroom_features.pipeline.streaming_loop import StreamingConfig, StreamingFeaturePipeline

__all__ = ["AudioProcessor", "ChannelPlanes", "StreamingConfig", "StreamingFeaturePipeline"]
