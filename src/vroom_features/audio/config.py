"""Centralized feature extraction configuration.

Encoding standards (shared with the vehicle-sound classifier):
- Audio: stereo 16 kHz, 16-bit PCM, 3 s clips
- STFT: Hann window, FFT 402 / hop 201 (50% overlap)
- MFCC: 13 mel bands, unnormalized DCT-II
- Output: 241-wide planes stacked to a 428-row uint8 image
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeatureConfig:
    """Feature pipeline constants. Any change breaks model compatibility."""

    # Recording
    sample_rate: int = 16_000
    window_sec: float = 3.0
    pcm_scale: float = 32768.0

    # STFT
    n_fft: int = 402
    hop_length: int = 201

    # MFCC
    n_mfcc: int = 13

    # Output planes (width x height)
    spec_width: int = 241
    spec_height: int = 201
    mfcc_width: int = 241
    mfcc_height: int = 13

    # Numeric policy
    amplitude_floor: float = 1e-10
    degenerate_fill: float = 0.0
    strict: bool = False  # raise on non-finite features instead of clamping

    def __post_init__(self) -> None:
        for name in (
            "sample_rate",
            "n_fft",
            "hop_length",
            "n_mfcc",
            "spec_width",
            "spec_height",
            "mfcc_width",
            "mfcc_height",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.n_fft % 2:
            raise ValueError("n_fft must be even so the last rFFT bin is the real Nyquist term")
        if self.hop_length > self.n_fft:
            raise ValueError("hop_length must be <= n_fft")
        if self.mfcc_width != self.spec_width:
            raise ValueError("mfcc_width and spec_width must match to stack planes")
        if self.amplitude_floor <= 0:
            raise ValueError("amplitude_floor must be > 0")
        if not 0.0 <= self.degenerate_fill <= 255.0:
            raise ValueError("degenerate_fill must be within [0, 255]")

    @property
    def n_bins(self) -> int:
        """Number of rFFT frequency bins."""
        return self.n_fft // 2 + 1

    @property
    def final_height(self) -> int:
        """Rows of the stacked image: MFCC + spectrogram per channel."""
        return 2 * (self.mfcc_height + self.spec_height)

    @property
    def tensor_size(self) -> int:
        """Length in bytes of the combined tensor."""
        return self.spec_width * self.final_height

    @property
    def window_samples(self) -> int:
        """Samples per channel in one clip."""
        return int(self.window_sec * self.sample_rate)

    def frame_count(self, n_samples: int) -> int:
        """STFT frames for a channel of n_samples (0 if shorter than n_fft)."""
        if n_samples < self.n_fft:
            return 0
        return 1 + (n_samples - self.n_fft) // self.hop_length
