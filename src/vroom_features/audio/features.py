"""Feature extraction: PCM normalization, Hann-windowed STFT, dB scaling, mel filterbank, MFCC."""

import logging
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy import fft as sp_fft
from scipy.signal import windows

from vroom_features.audio.config import FeatureConfig

logger = logging.getLogger(__name__)

_INT16_MIN = np.iinfo(np.int16).min
_INT16_MAX = np.iinfo(np.int16).max


def normalize_audio(samples: np.ndarray, config: Optional[FeatureConfig] = None) -> np.ndarray:
    """Convert 16-bit PCM samples to float32 in [-1, 1] (sample / 32768)."""
    config = config or FeatureConfig()
    pcm = np.asarray(samples)
    if pcm.ndim != 1:
        raise ValueError(f"Expected a 1-D channel, got shape {pcm.shape}")
    if pcm.dtype != np.int16:
        if pcm.size and pcm.dtype.kind not in "iu":
            raise ValueError(f"Expected integer PCM samples, got {pcm.dtype}")
        if pcm.size and (pcm.min() < _INT16_MIN or pcm.max() > _INT16_MAX):
            raise ValueError("PCM samples out of 16-bit range")
        pcm = pcm.astype(np.int16)
    return pcm.astype(np.float32) / np.float32(config.pcm_scale)


@lru_cache(maxsize=None)
def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window: 0.5 * (1 - cos(2*pi*i / (size - 1))). Read-only, cached."""
    window = windows.hann(size, sym=True).astype(np.float32)
    window.setflags(write=False)
    return window


def _frame_signal(audio: np.ndarray, n_fft: int, hop_length: int, n_frames: int) -> np.ndarray:
    """Slice audio into (n_frames, n_fft) overlapping frames, zero-filling past the end."""
    needed = (n_frames - 1) * hop_length + n_fft
    if len(audio) < needed:
        audio = np.pad(audio, (0, needed - len(audio)))
    return sliding_window_view(audio, n_fft)[::hop_length][:n_frames]


def generate_spectrogram(
    audio: np.ndarray,
    config: Optional[FeatureConfig] = None,
    window: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Magnitude spectrogram (n_frames, n_fft // 2 + 1) of one normalized channel.

    Frame f covers samples [f * hop, f * hop + n_fft), Hann-windowed, then a
    real FFT of length n_fft. Bin 0 and the Nyquist bin are the absolute
    values of the (purely real) boundary coefficients.

    A channel shorter than n_fft yields an empty (0, n_bins) grid.
    """
    config = config or FeatureConfig()
    if window is None:
        window = hann_window(config.n_fft)
    audio = np.asarray(audio, dtype=np.float32)
    if audio.ndim != 1:
        raise ValueError(f"Expected a 1-D channel, got shape {audio.shape}")

    n_frames = config.frame_count(len(audio))
    if n_frames == 0:
        logger.warning(
            "Channel has %d samples, fewer than n_fft=%d; spectrogram is empty",
            len(audio),
            config.n_fft,
        )
        return np.zeros((0, config.n_bins), dtype=np.float32)

    frames = _frame_signal(audio, config.n_fft, config.hop_length, n_frames)
    spectrum = sp_fft.rfft(frames * window, n=config.n_fft, axis=-1)

    magnitude = np.abs(spectrum)
    magnitude[:, 0] = np.abs(spectrum[:, 0].real)
    magnitude[:, config.n_fft // 2] = np.abs(spectrum[:, config.n_fft // 2].real)
    logger.debug("Spectrogram: %d frames x %d bins", n_frames, config.n_bins)
    return magnitude.astype(np.float32)


def amplitude_to_db(spec: np.ndarray, floor: float = 1e-10) -> np.ndarray:
    """20 * log10(value / max) with values (and the reference) floored at `floor`.

    The grid maximum maps to exactly 0 dB; an all-zero grid maps to 0 dB
    everywhere instead of -inf.
    """
    grid = np.asarray(spec, dtype=np.float32)
    if grid.size == 0:
        return grid.copy()
    # The reference shares the floor: an all-zero grid is 0 dB throughout, keeping max -> 0.
    floor32 = np.float32(floor)
    ref = np.maximum(grid.max(), floor32)
    clamped = np.maximum(grid, floor32)
    return (20.0 * np.log10(clamped / ref)).astype(np.float32)


def _hz_to_mel(hz):
    return 2595 * np.log10(1 + hz / 700)


def _mel_to_hz(mel):
    return 700 * (10 ** (mel / 2595) - 1)


@lru_cache(maxsize=None)
def mel_filterbank(sample_rate: int, n_fft: int, n_mels: int) -> np.ndarray:
    """Build the (n_mels, n_fft // 2 + 1) triangular mel filterbank. Read-only, cached.

    n_mels + 2 points are spaced evenly on the mel scale between 0 Hz and
    Nyquist and rounded (half up) to FFT bins. Filter i rises from 0 at
    bin[i] to 1 at bin[i + 1] and falls back towards 0 at bin[i + 2]
    (exclusive).
    """
    mel_points = np.linspace(_hz_to_mel(0.0), _hz_to_mel(sample_rate / 2), n_mels + 2)
    hz_points = _mel_to_hz(mel_points)
    bin_points = np.floor(hz_points * n_fft / sample_rate + 0.5).astype(int)
    bin_points = np.clip(bin_points, 0, n_fft // 2)

    filters = np.zeros((n_mels, n_fft // 2 + 1), dtype=np.float32)
    for i in range(n_mels):
        left, center, right = bin_points[i], bin_points[i + 1], bin_points[i + 2]
        if center > left:
            filters[i, left:center] = (np.arange(left, center) - left) / (center - left)
        if right > center:
            filters[i, center:right] = (right - np.arange(center, right)) / (right - center)
    filters.setflags(write=False)
    return filters


def dct(grid: np.ndarray) -> np.ndarray:
    """Unnormalized DCT-II along the last axis.

    out[..., j] = sum_k grid[..., k] * cos(pi * j * (2k + 1) / (2N)).
    scipy's unnormalized DCT-II carries an extra factor of 2, removed here.
    """
    grid = np.asarray(grid, dtype=np.float32)
    if grid.size == 0:
        return grid.copy()
    return (sp_fft.dct(grid, type=2, axis=-1, norm=None) / 2.0).astype(np.float32)


def generate_mfcc(audio: np.ndarray, config: Optional[FeatureConfig] = None) -> np.ndarray:
    """MFCC grid (n_frames, n_mfcc): spectrogram -> mel projection -> dB -> DCT."""
    config = config or FeatureConfig()
    filters = mel_filterbank(config.sample_rate, config.n_fft, config.n_mfcc)
    return _mfcc_from_spectrogram(generate_spectrogram(audio, config), filters, config)


def _mfcc_from_spectrogram(spec: np.ndarray, filters: np.ndarray, config: FeatureConfig) -> np.ndarray:
    mel_spec = np.dot(spec, filters.T)
    return dct(amplitude_to_db(mel_spec, config.amplitude_floor))


class FeatureExtractor:
    """Per-channel spectrogram (dB) and MFCC extraction for one config.

    Holds only read-only state (window, filterbank); safe to share across
    threads. FFTs go through scipy.fft, which keeps no per-instance plan.
    """

    def __init__(self, config: Optional[FeatureConfig] = None):
        self.config = config or FeatureConfig()
        self.window = hann_window(self.config.n_fft)
        self.mel_filters = mel_filterbank(
            self.config.sample_rate,
            self.config.n_fft,
            self.config.n_mfcc,
        )

    def normalize(self, samples: np.ndarray) -> np.ndarray:
        """16-bit PCM -> float32 [-1, 1]."""
        return normalize_audio(samples, self.config)

    def spectrogram(self, audio: np.ndarray) -> np.ndarray:
        """Magnitude spectrogram (n_frames, n_bins)."""
        return generate_spectrogram(audio, self.config, self.window)

    def spectrogram_db(self, audio: np.ndarray) -> np.ndarray:
        """Spectrogram in dB relative to its own maximum."""
        return amplitude_to_db(self.spectrogram(audio), self.config.amplitude_floor)

    def mfcc(self, audio: np.ndarray) -> np.ndarray:
        """MFCC grid (n_frames, n_mfcc)."""
        return _mfcc_from_spectrogram(self.spectrogram(audio), self.mel_filters, self.config)

    def extract_channel(self, samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Extract (spectrogram_db, mfcc) for one raw PCM channel.

        The magnitude spectrogram is computed once and shared by both
        features.

        Args:
            samples: 1-D 16-bit PCM channel at config.sample_rate.

        Returns:
            (spectrogram_db (n_frames, n_bins), mfcc (n_frames, n_mfcc))
        """
        audio = self.normalize(samples)
        spec = self.spectrogram(audio)
        spec_db = amplitude_to_db(spec, self.config.amplitude_floor)
        return spec_db, _mfcc_from_spectrogram(spec, self.mel_filters, self.config)
