"""Vehicle-sound features - stereo PCM to MFCC/spectrogram tensor for the classifier."""

from vroom_features.audio.config import FeatureConfig
from vroom_features.pipeline.processor import AudioProcessor

__all__ = ["AudioProcessor", "FeatureConfig"]
