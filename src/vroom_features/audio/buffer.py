"""Stereo PCM helpers: interleave split, raw little-endian codec, per-channel ring buffer."""

from typing import Tuple

import numpy as np

_PCM_DTYPE = np.dtype("<i2")


def deinterleave(samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split interleaved stereo (L, R, L, R, ...) into (left, right).

    An odd trailing sample (half a frame) is dropped.
    """
    samples = np.asarray(samples, dtype=np.int16)
    if samples.ndim != 1:
        raise ValueError(f"Expected interleaved 1-D samples, got shape {samples.shape}")
    usable = len(samples) - (len(samples) % 2)
    return samples[0:usable:2].copy(), samples[1:usable:2].copy()


def pcm16_to_bytes(samples: np.ndarray) -> bytes:
    """Encode one channel as raw little-endian 16-bit PCM."""
    return np.asarray(samples, dtype=np.int16).astype(_PCM_DTYPE).tobytes()


def bytes_to_pcm16(data: bytes) -> np.ndarray:
    """Decode raw little-endian 16-bit PCM into an int16 array."""
    if len(data) % 2:
        raise ValueError(f"Raw PCM payload has odd length {len(data)}")
    return np.frombuffer(data, dtype=_PCM_DTYPE).astype(np.int16)


class StereoRingBuffer:
    """Fixed-size ring buffer holding the most recent samples of both channels."""

    def __init__(self, size: int):
        if size <= 0:
            raise ValueError("size must be > 0")
        self.size = size
        self._data = np.zeros((2, size), dtype=np.int16)
        self._write_idx = 0
        self._count = 0
        self._pending = np.array([], dtype=np.int16)  # left sample of a split frame

    def __len__(self) -> int:
        return self._count

    @property
    def is_full(self) -> bool:
        return self._count == self.size

    def push_interleaved(self, chunk: np.ndarray) -> None:
        """Append an interleaved stereo chunk; older frames are overwritten.

        A trailing left sample without its right partner is held back and
        joined to the next chunk, so channel alignment survives odd chunks.
        """
        chunk = np.concatenate([self._pending, np.asarray(chunk, dtype=np.int16).ravel()])
        usable = len(chunk) - (len(chunk) % 2)
        self._pending = chunk[usable:].copy()
        left, right = deinterleave(chunk[:usable])
        self.push(left, right)

    def push(self, left: np.ndarray, right: np.ndarray) -> None:
        """Append per-channel samples of equal length; older samples are overwritten."""
        if len(left) != len(right):
            raise ValueError(f"Channel lengths differ: {len(left)} != {len(right)}")
        pair = np.vstack([np.asarray(left, dtype=np.int16), np.asarray(right, dtype=np.int16)])
        n = pair.shape[1]
        if n == 0:
            return
        if n >= self.size:
            self._data[:] = pair[:, -self.size :]
            self._write_idx = 0
            self._count = self.size
            return
        start = self._write_idx
        end = start + n
        if end <= self.size:
            self._data[:, start:end] = pair
        else:
            head = self.size - start
            self._data[:, start:] = pair[:, :head]
            self._data[:, : end - self.size] = pair[:, head:]
        self._write_idx = end % self.size
        self._count = min(self._count + n, self.size)

    def get_channels(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return (left, right) in chronological order."""
        if self._count == 0:
            empty = np.array([], dtype=np.int16)
            return empty, empty.copy()
        if self._count < self.size:
            data = self._data[:, : self._count].copy()
        else:
            data = np.roll(self._data, -self._write_idx, axis=1)
        return data[0], data[1]

    def clear(self) -> None:
        """Reset buffer."""
        self._write_idx = 0
        self._count = 0
        self._pending = np.array([], dtype=np.int16)
