"""Audio normalization, buffering and per-channel feature extraction."""

from vroom_features.audio.config import FeatureConfig
from vroom_features.audio.buffer import StereoRingBuffer, bytes_to_pcm16, deinterleave, pcm16_to_bytes
from vroom_features.audio.features import (
    FeatureExtractor,
    amplitude_to_db,
    dct,
    generate_mfcc,
    generate_spectrogram,
    hann_window,
    mel_filterbank,
    normalize_audio,
)

__all__ = [
    "FeatureConfig",
    "FeatureExtractor",
    "StereoRingBuffer",
    "amplitude_to_db",
    "bytes_to_pcm16",
    "dct",
    "deinterleave",
    "generate_mfcc",
    "generate_spectrogram",
    "hann_window",
    "mel_filterbank",
    "normalize_audio",
    "pcm16_to_bytes",
]
